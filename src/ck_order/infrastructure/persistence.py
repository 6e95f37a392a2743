"""OrderRepository: raw SQL persistence implementation."""

from datetime import datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.ck_common.enums import OrderStatus
from src.ck_order.domain.models import Order, OrderLine

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_ORDER_COLUMNS = """
    id, user_id, tier, address_id, payment_method,
    subtotal, total_discount, payable_subtotal, delivery_charge, grand_total,
    currency, status, payment_status, flagged_for_audit,
    created_at, updated_at, settled_at
"""

_INSERT_ORDER_SQL = text("""
    INSERT INTO orders (id, user_id, tier, address_id, payment_method,
        subtotal, total_discount, payable_subtotal, delivery_charge, grand_total,
        currency, status, payment_status)
    VALUES (:id, :user_id, :tier, :address_id, :payment_method,
        :subtotal, :total_discount, :payable_subtotal, :delivery_charge, :grand_total,
        :currency, :status, :payment_status)
""")

_INSERT_LINE_SQL = text("""
    INSERT INTO order_lines (order_id, line_no, product_id, product_name,
        unit_price, quantity, discount_bps, line_total, line_discount)
    VALUES (:order_id, :line_no, :product_id, :product_name,
        :unit_price, :quantity, :discount_bps, :line_total, :line_discount)
""")

_GET_ORDER_BY_ID_SQL = text(f"""
    SELECT {_ORDER_COLUMNS}
    FROM orders WHERE id = :id
""")

_GET_LINES_SQL = text("""
    SELECT order_id, product_id, product_name, unit_price, quantity,
           discount_bps, line_total, line_discount
    FROM order_lines
    WHERE order_id = ANY(string_to_array(CAST(:order_ids_csv AS TEXT), ','))
    ORDER BY order_id, line_no
""")

_LIST_ORDERS_SQL = text(f"""
    SELECT {_ORDER_COLUMNS}
    FROM orders
    WHERE user_id = :user_id
      AND (CAST(:status AS TEXT) IS NULL OR status = :status)
      AND (CAST(:cursor_id AS TEXT) IS NULL OR id < :cursor_id)
    ORDER BY id DESC
    LIMIT :limit
""")

# Status CAS: zero rows back means another writer moved the order first.
_TRANSITION_SQL = text(f"""
    UPDATE orders
    SET status = :to_status,
        payment_status = COALESCE(CAST(:payment_status AS TEXT), payment_status),
        flagged_for_audit = flagged_for_audit OR CAST(:flag AS BOOLEAN),
        settled_at = CASE WHEN CAST(:to_status AS TEXT) = 'SETTLED' THEN NOW() ELSE settled_at END,
        updated_at = NOW()
    WHERE id = :id
      AND status = ANY(string_to_array(CAST(:from_csv AS TEXT), ','))
    RETURNING {_ORDER_COLUMNS}
""")


_FAIL_STALE_SQL = text(f"""
    UPDATE orders
    SET status = 'FAILED',
        payment_status = 'FAILED',
        updated_at = NOW()
    WHERE status = ANY(string_to_array(CAST(:statuses_csv AS TEXT), ','))
      AND updated_at < :older_than
    RETURNING {_ORDER_COLUMNS}
""")


# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_order(row: Any, lines: tuple[OrderLine, ...] = ()) -> Order:
    return Order(
        id=row.id,
        user_id=row.user_id,
        tier=row.tier,
        address_id=row.address_id,
        payment_method=row.payment_method,
        subtotal=row.subtotal,
        total_discount=row.total_discount,
        payable_subtotal=row.payable_subtotal,
        delivery_charge=row.delivery_charge,
        grand_total=row.grand_total,
        currency=row.currency,
        status=row.status,
        payment_status=row.payment_status,
        flagged_for_audit=row.flagged_for_audit,
        lines=lines,
        created_at=row.created_at,
        updated_at=row.updated_at,
        settled_at=row.settled_at,
    )


def _row_to_line(row: Any) -> OrderLine:
    return OrderLine(
        product_id=row.product_id,
        product_name=row.product_name,
        unit_price=row.unit_price,
        quantity=row.quantity,
        discount_bps=row.discount_bps,
        line_total=row.line_total,
        line_discount=row.line_discount,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class OrderRepository:
    """Concrete implementation of OrderRepositoryProtocol using raw SQL."""

    async def save(self, db: AsyncSession, order: Order) -> None:
        await db.execute(
            _INSERT_ORDER_SQL,
            {
                "id": order.id,
                "user_id": order.user_id,
                "tier": order.tier,
                "address_id": order.address_id,
                "payment_method": order.payment_method,
                "subtotal": order.subtotal,
                "total_discount": order.total_discount,
                "payable_subtotal": order.payable_subtotal,
                "delivery_charge": order.delivery_charge,
                "grand_total": order.grand_total,
                "currency": order.currency,
                "status": order.status,
                "payment_status": order.payment_status,
            },
        )
        if order.lines:
            await db.execute(
                _INSERT_LINE_SQL,
                [
                    {
                        "order_id": order.id,
                        "line_no": i,
                        "product_id": line.product_id,
                        "product_name": line.product_name,
                        "unit_price": line.unit_price,
                        "quantity": line.quantity,
                        "discount_bps": line.discount_bps,
                        "line_total": line.line_total,
                        "line_discount": line.line_discount,
                    }
                    for i, line in enumerate(order.lines, start=1)
                ],
            )

    async def _lines_by_order(
        self, db: AsyncSession, order_ids: list[str]
    ) -> dict[str, tuple[OrderLine, ...]]:
        if not order_ids:
            return {}
        result = await db.execute(_GET_LINES_SQL, {"order_ids_csv": ",".join(order_ids)})
        grouped: dict[str, list[OrderLine]] = {}
        for row in result.fetchall():
            grouped.setdefault(row.order_id, []).append(_row_to_line(row))
        return {oid: tuple(lines) for oid, lines in grouped.items()}

    async def get_by_id(self, db: AsyncSession, order_id: str) -> Order | None:
        result = await db.execute(_GET_ORDER_BY_ID_SQL, {"id": order_id})
        row = result.fetchone()
        if row is None:
            return None
        lines = await self._lines_by_order(db, [order_id])
        return _row_to_order(row, lines.get(order_id, ()))

    async def list_by_user(
        self,
        db: AsyncSession,
        user_id: str,
        status: str | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Order]:
        result = await db.execute(
            _LIST_ORDERS_SQL,
            {"user_id": user_id, "status": status, "cursor_id": cursor_id, "limit": limit},
        )
        rows = result.fetchall()
        lines = await self._lines_by_order(db, [row.id for row in rows])
        return [_row_to_order(row, lines.get(row.id, ())) for row in rows]

    async def transition(
        self,
        db: AsyncSession,
        order_id: str,
        from_statuses: list[str],
        to_status: OrderStatus,
        *,
        payment_status: str | None = None,
        flag_for_audit: bool = False,
    ) -> Order | None:
        """Returned order carries no lines; callers only need status and totals."""
        result = await db.execute(
            _TRANSITION_SQL,
            {
                "id": order_id,
                "to_status": to_status.value,
                "from_csv": ",".join(from_statuses),
                "payment_status": payment_status,
                "flag": flag_for_audit,
            },
        )
        row = result.fetchone()
        return _row_to_order(row) if row else None

    async def fail_stale(
        self, db: AsyncSession, statuses: list[str], older_than: datetime
    ) -> list[Order]:
        result = await db.execute(
            _FAIL_STALE_SQL,
            {"statuses_csv": ",".join(statuses), "older_than": older_than},
        )
        return [_row_to_order(row) for row in result.fetchall()]
