"""DeliveryRuleRepository: raw SQL, read only."""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.ck_pricing.domain.models import DeliveryFeeRule

# ORDER BY is for display only; resolution does not depend on it.
_LIST_ACTIVE_RULES_SQL = text("""
    SELECT id, min_amount, max_amount, charge, is_active
    FROM delivery_fee_rules
    WHERE is_active
    ORDER BY min_amount ASC, max_amount ASC, id ASC
""")


def _row_to_rule(row: Any) -> DeliveryFeeRule:
    return DeliveryFeeRule(
        id=str(row.id),
        min_amount=row.min_amount,
        max_amount=row.max_amount,
        charge=row.charge,
        active=bool(row.is_active),
    )


class DeliveryRuleRepository:
    async def list_active_rules(self, db: AsyncSession) -> list[DeliveryFeeRule]:
        result = await db.execute(_LIST_ACTIVE_RULES_SQL)
        return [_row_to_rule(row) for row in result.fetchall()]
