"""OrderQueryService: owner-scoped order detail and history."""

from sqlalchemy.ext.asyncio import AsyncSession

from src.ck_common.errors import OrderForbiddenError, OrderNotFoundError
from src.ck_order.application.schemas import OrderListResponse, OrderResponse
from src.ck_order.domain.models import Order
from src.ck_order.domain.repository import OrderRepositoryProtocol
from src.ck_order.infrastructure.persistence import OrderRepository


class OrderQueryService:
    def __init__(self, repo: OrderRepositoryProtocol | None = None) -> None:
        self._repo: OrderRepositoryProtocol = repo or OrderRepository()

    async def load_owned(self, db: AsyncSession, order_id: str, user_id: str) -> Order:
        order = await self._repo.get_by_id(db, order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        if order.user_id != user_id:
            raise OrderForbiddenError(order_id)
        return order

    async def get_order(self, db: AsyncSession, order_id: str, user_id: str) -> OrderResponse:
        return OrderResponse.from_domain(await self.load_owned(db, order_id, user_id))

    async def list_orders(
        self,
        db: AsyncSession,
        user_id: str,
        status: str | None,
        limit: int,
        cursor: str | None,
    ) -> OrderListResponse:
        # Order ids are time-ordered and zero-padded, so the id doubles as the cursor
        orders = await self._repo.list_by_user(db, user_id, status, cursor, limit + 1)
        has_more = len(orders) > limit
        if has_more:
            orders = orders[:limit]
        return OrderListResponse(
            items=[OrderResponse.from_domain(o) for o in orders],
            next_cursor=orders[-1].id if has_more else None,
            has_more=has_more,
        )
