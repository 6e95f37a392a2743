"""Read side of payment attempts (owner only)."""

from sqlalchemy.ext.asyncio import AsyncSession

from src.ck_order.application.service import OrderQueryService
from src.ck_payment.application.schemas import PaymentAttemptItem
from src.ck_payment.domain.repository import AttemptRepositoryProtocol
from src.ck_payment.infrastructure.persistence import AttemptRepository


class PaymentQueryService:
    def __init__(
        self,
        attempt_repo: AttemptRepositoryProtocol | None = None,
        orders: OrderQueryService | None = None,
    ) -> None:
        self._attempt_repo: AttemptRepositoryProtocol = attempt_repo or AttemptRepository()
        self._orders = orders or OrderQueryService()

    async def list_attempts(
        self, db: AsyncSession, order_id: str, user_id: str
    ) -> list[PaymentAttemptItem]:
        await self._orders.load_owned(db, order_id, user_id)
        attempts = await self._attempt_repo.list_for_order(db, order_id)
        return [PaymentAttemptItem.from_domain(a) for a in attempts]
