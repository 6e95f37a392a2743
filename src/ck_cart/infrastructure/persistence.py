"""CartRepository / AddressDirectory: raw SQL over the storefront tables.

Catalog prices and discount percents are NUMERIC rupees/percent in the
storefront schema; they are converted to paise / basis points here so nothing
downstream sees a Decimal.
"""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.ck_common.money import percent_to_bps, to_paise
from src.ck_pricing.domain.models import CartLine, CartSnapshot

# Non-positive quantities never reach pricing. Inactive products are reported
# separately so order creation can refuse them.
_LOAD_CART_SQL = text("""
    SELECT p.id AS product_id, p.name, p.price,
           p.trainee_entrepreneur_discount, p.entrepreneur_discount,
           c.qty, p.is_active
    FROM cart_items c
    JOIN products p ON p.id = c.product_id
    WHERE c.user_id = :user_id
      AND c.qty > 0
    ORDER BY c.id ASC
""")

_CLEAR_CART_SQL = text("""
    DELETE FROM cart_items WHERE user_id = :user_id
""")

_ADDRESS_EXISTS_SQL = text("""
    SELECT 1 FROM addresses WHERE id = :address_id AND user_id = :user_id
""")


def _row_to_line(row: Any) -> CartLine:
    return CartLine(
        product_id=str(row.product_id),
        product_name=row.name,
        unit_price=to_paise(row.price),
        quantity=int(row.qty),
        trainee_discount_bps=percent_to_bps(row.trainee_entrepreneur_discount),
        entrepreneur_discount_bps=percent_to_bps(row.entrepreneur_discount),
    )


class CartRepository:
    async def load_snapshot(self, db: AsyncSession, user_id: str) -> CartSnapshot:
        result = await db.execute(_LOAD_CART_SQL, {"user_id": user_id})
        rows = result.fetchall()
        return CartSnapshot.of(
            (_row_to_line(row) for row in rows if row.is_active),
            unavailable=(str(row.product_id) for row in rows if not row.is_active),
        )

    async def clear(self, db: AsyncSession, user_id: str) -> int:
        """Delete the caller's cart rows inside the caller's transaction."""
        result = await db.execute(_CLEAR_CART_SQL, {"user_id": user_id})
        return int(result.rowcount or 0)


class AddressDirectory:
    async def address_exists(
        self, db: AsyncSession, user_id: str, address_id: str
    ) -> bool:
        result = await db.execute(
            _ADDRESS_EXISTS_SQL, {"address_id": address_id, "user_id": user_id}
        )
        return result.fetchone() is not None
