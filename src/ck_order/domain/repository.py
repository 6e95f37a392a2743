"""OrderRepository Protocol: interface contract for persistence layer."""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.ck_common.enums import OrderStatus
from src.ck_order.domain.models import Order


class OrderRepositoryProtocol(Protocol):
    async def save(self, db: AsyncSession, order: Order) -> None: ...

    async def get_by_id(self, db: AsyncSession, order_id: str) -> Order | None: ...

    async def list_by_user(
        self,
        db: AsyncSession,
        user_id: str,
        status: str | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Order]: ...

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
        """Compare-and-swap on status. None when the order was not in ``from_statuses``."""
        ...

    async def fail_stale(
        self, db: AsyncSession, statuses: list[str], older_than: datetime
    ) -> list[Order]:
        """Move orders idle in ``statuses`` since before ``older_than`` to FAILED."""
        ...
