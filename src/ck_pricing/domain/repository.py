"""DeliveryRuleRepository Protocol: read-only from pricing's point of view.

Rule mutation belongs to the admin backoffice and never touches an order
whose totals are already frozen.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.ck_pricing.domain.models import DeliveryFeeRule


class DeliveryRuleRepositoryProtocol(Protocol):
    async def list_active_rules(self, db: AsyncSession) -> list[DeliveryFeeRule]: ...
