"""Unit tests for time-ordered ids."""

import pytest

from src.ck_common.id_generator import OrderedIdGenerator, new_attempt_id, new_order_id


def test_ids_are_fixed_width_and_increasing() -> None:
    gen = OrderedIdGenerator(worker_id=1)
    ids = [gen.next_id("ord_") for _ in range(5000)]
    assert len(set(ids)) == 5000
    assert ids == sorted(ids)
    assert {len(i) for i in ids} == {4 + 19}


def test_prefixes() -> None:
    assert new_order_id().startswith("ord_")
    assert new_attempt_id().startswith("pa_")


def test_worker_id_range() -> None:
    with pytest.raises(ValueError):
        OrderedIdGenerator(worker_id=1024)
