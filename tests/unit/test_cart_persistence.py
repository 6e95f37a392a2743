"""Unit tests for CartRepository / AddressDirectory (Decimal → paise/bps at the edge)."""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from src.ck_cart.infrastructure.persistence import AddressDirectory, CartRepository


def _cart_row(
    pid: str, price: str, qty: int, trainee: str, entrepreneur: str, active: bool = True
) -> MagicMock:
    row = MagicMock()
    row.is_active = active
    row.product_id = pid
    row.name = pid.title()
    row.price = Decimal(price)
    row.qty = qty
    row.trainee_entrepreneur_discount = Decimal(trainee)
    row.entrepreneur_discount = Decimal(entrepreneur)
    return row


async def test_snapshot_converts_to_integer_units() -> None:
    db = AsyncMock()
    result = MagicMock()
    result.fetchall.return_value = [_cart_row("p1", "1000.00", 2, "5.00", "10.00")]
    db.execute.return_value = result

    snapshot = await CartRepository().load_snapshot(db, "user-1")

    line = snapshot.lines[0]
    assert line.unit_price == 100000
    assert line.quantity == 2
    assert line.trainee_discount_bps == 500
    assert line.entrepreneur_discount_bps == 1000


async def test_inactive_products_reported_not_priced() -> None:
    db = AsyncMock()
    result = MagicMock()
    result.fetchall.return_value = [
        _cart_row("p1", "1000.00", 1, "0", "0"),
        _cart_row("p2", "250.00", 2, "0", "0", active=False),
    ]
    db.execute.return_value = result

    snapshot = await CartRepository().load_snapshot(db, "user-1")

    assert [line.product_id for line in snapshot.lines] == ["p1"]
    assert snapshot.unavailable == ("p2",)


async def test_empty_cart() -> None:
    db = AsyncMock()
    result = MagicMock()
    result.fetchall.return_value = []
    db.execute.return_value = result
    assert (await CartRepository().load_snapshot(db, "user-1")).is_empty


async def test_clear_returns_rowcount() -> None:
    db = AsyncMock()
    result = MagicMock()
    result.rowcount = 3
    db.execute.return_value = result
    assert await CartRepository().clear(db, "user-1") == 3


async def test_address_scoped_to_user() -> None:
    db = AsyncMock()
    result = MagicMock()
    result.fetchone.return_value = None
    db.execute.return_value = result
    assert not await AddressDirectory().address_exists(db, "user-1", "addr-of-someone-else")
    assert db.execute.await_args.args[1] == {
        "address_id": "addr-of-someone-else",
        "user_id": "user-1",
    }
