"""PricingApplicationService: reads the caller's cart and the rule table, prices it.

Read-only: no commit/rollback. Every call re-reads cart, catalog and rules, so
a quote is never stale relative to the cart it was computed from.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from src.ck_cart.domain.repository import CartRepositoryProtocol
from src.ck_cart.infrastructure.persistence import CartRepository
from src.ck_identity.auth.context import CallerContext
from src.ck_pricing.application.schemas import DeliveryRuleItem, QuoteResponse
from src.ck_pricing.domain.engine import price_cart
from src.ck_pricing.domain.repository import DeliveryRuleRepositoryProtocol
from src.ck_pricing.infrastructure.persistence import DeliveryRuleRepository


class PricingApplicationService:
    def __init__(
        self,
        cart_repo: CartRepositoryProtocol | None = None,
        rule_repo: DeliveryRuleRepositoryProtocol | None = None,
    ) -> None:
        self._cart_repo: CartRepositoryProtocol = cart_repo or CartRepository()
        self._rule_repo: DeliveryRuleRepositoryProtocol = rule_repo or DeliveryRuleRepository()

    async def quote(self, db: AsyncSession, caller: CallerContext) -> QuoteResponse:
        """Price the sellable lines; lines for inactive products are listed, not priced."""
        snapshot = await self._cart_repo.load_snapshot(db, caller.user_id)
        rules = await self._rule_repo.list_active_rules(db)
        priced = price_cart(snapshot, caller.tier, rules)
        return QuoteResponse.from_priced(priced, snapshot.unavailable)

    async def list_delivery_rules(self, db: AsyncSession) -> list[DeliveryRuleItem]:
        rules = await self._rule_repo.list_active_rules(db)
        return [DeliveryRuleItem.from_domain(r) for r in rules]
