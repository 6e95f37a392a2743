"""Unit tests for AttemptRepository using MagicMock AsyncSession."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

from src.ck_payment.domain.models import PaymentAttempt
from src.ck_payment.infrastructure.persistence import AttemptRepository


def _row(**kwargs: object) -> MagicMock:
    row = MagicMock()
    row.id = kwargs.get("id", "pa_1")
    row.order_id = "ord_1"
    row.user_id = "user-1"
    row.client_attempt_id = "c-1"
    row.method = "GATEWAY"
    row.amount = 94000
    row.currency = "INR"
    row.gateway_order_ref = kwargs.get("gateway_order_ref", "order_GW1")
    row.gateway_payment_ref = None
    row.verification_signature = None
    row.outcome = kwargs.get("outcome", "IN_FLIGHT")
    row.failure_reason = None
    row.created_at = datetime.now(UTC)
    row.updated_at = datetime.now(UTC)
    return row


def _result(one: object = None, many: list[object] | None = None, rowcount: int = 0) -> MagicMock:
    result = MagicMock()
    result.fetchone.return_value = one
    result.fetchall.return_value = many or []
    result.rowcount = rowcount
    return result


async def test_insert_params() -> None:
    db = AsyncMock()
    attempt = PaymentAttempt(
        id="pa_1", order_id="ord_1", user_id="user-1", client_attempt_id="c-1",
        method="WALLET", amount=94000, outcome="FAILED", failure_reason="INSUFFICIENT_FUNDS",
    )
    await AttemptRepository().insert(db, attempt)
    params = db.execute.await_args.args[1]
    assert params["outcome"] == "FAILED"
    assert params["failure_reason"] == "INSUFFICIENT_FUNDS"
    assert params["amount"] == 94000


async def test_get_by_gateway_ref() -> None:
    db = AsyncMock()
    db.execute.return_value = _result(one=_row())
    attempt = await AttemptRepository().get_by_gateway_order_ref(db, "order_GW1")
    assert attempt is not None and attempt.is_in_flight


async def test_close_reports_cas_result() -> None:
    db = AsyncMock()
    db.execute.return_value = _result(one=MagicMock())
    assert await AttemptRepository().close(db, "pa_1", "SUCCESS", gateway_payment_ref="pay_1")
    db.execute.return_value = _result(one=None)
    assert not await AttemptRepository().close(db, "pa_1", "SUCCESS")


async def test_fail_in_flight_skips_empty() -> None:
    db = AsyncMock()
    assert await AttemptRepository().fail_in_flight_for_orders(db, [], "TIMEOUT") == 0
    db.execute.assert_not_awaited()


async def test_fail_in_flight_joins_ids() -> None:
    db = AsyncMock()
    db.execute.return_value = _result(rowcount=2)
    closed = await AttemptRepository().fail_in_flight_for_orders(db, ["ord_1", "ord_2"], "TIMEOUT")
    assert closed == 2
    assert db.execute.await_args.args[1] == {"order_ids_csv": "ord_1,ord_2", "reason": "TIMEOUT"}
