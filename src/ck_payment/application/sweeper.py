"""PaymentTimeoutSweeper: fails gateway attempts whose callback never came."""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.ck_common.database import async_session_factory, unit_of_work
from src.ck_common.datetime_utils import utc_now
from src.ck_common.enums import OrderStatus
from src.ck_order.domain.repository import OrderRepositoryProtocol
from src.ck_order.infrastructure.persistence import OrderRepository
from src.ck_payment.domain.events import payment_failed
from src.ck_payment.domain.repository import AttemptRepositoryProtocol, EventPublisherProtocol
from src.ck_payment.infrastructure.event_publisher import RedisEventPublisher
from src.ck_payment.infrastructure.persistence import AttemptRepository

logger = logging.getLogger(__name__)

TIMEOUT_REASON = "TIMEOUT"

_WAITING_ON_GATEWAY = [OrderStatus.AWAITING_GATEWAY.value, OrderStatus.VERIFYING.value]


class PaymentTimeoutSweeper:
    def __init__(
        self,
        order_repo: OrderRepositoryProtocol | None = None,
        attempt_repo: AttemptRepositoryProtocol | None = None,
        publisher: EventPublisherProtocol | None = None,
        session_factory: Callable[[], AsyncSession] | None = None,
        timeout_seconds: int | None = None,
        interval_seconds: int | None = None,
    ) -> None:
        self._order_repo: OrderRepositoryProtocol = order_repo or OrderRepository()
        self._attempt_repo: AttemptRepositoryProtocol = attempt_repo or AttemptRepository()
        self._publisher: EventPublisherProtocol = publisher or RedisEventPublisher()
        self._session_factory = session_factory or async_session_factory
        if timeout_seconds is None:
            timeout_seconds = settings.PAYMENT_ATTEMPT_TIMEOUT_SECONDS
        if interval_seconds is None:
            interval_seconds = settings.SWEEP_INTERVAL_SECONDS
        self._timeout = timedelta(seconds=timeout_seconds)
        self._interval = interval_seconds

    async def sweep_once(self, db: AsyncSession, now: datetime | None = None) -> list[str]:
        """One short transaction: stale orders → FAILED, their IN_FLIGHT attempts → FAILED(TIMEOUT)."""
        cutoff = (now or utc_now()) - self._timeout
        async with unit_of_work(db):
            expired = await self._order_repo.fail_stale(db, _WAITING_ON_GATEWAY, cutoff)
            order_ids = [o.id for o in expired]
            closed = await self._attempt_repo.fail_in_flight_for_orders(
                db, order_ids, TIMEOUT_REASON
            )
        if expired:
            logger.info(
                "payment sweep: %d order(s) timed out, %d attempt(s) closed: %s",
                len(expired), closed, ", ".join(order_ids),
            )
        for order in expired:
            await self._publisher.publish(
                payment_failed(order.id, order.user_id, None, order.grand_total, TIMEOUT_REASON)
            )
        return order_ids

    async def run_forever(self) -> None:
        logger.info(
            "payment sweeper started: timeout=%ss interval=%ss",
            int(self._timeout.total_seconds()), self._interval,
        )
        while True:
            try:
                async with self._session_factory() as db:
                    await self.sweep_once(db)
            except (SQLAlchemyError, OSError):
                logger.exception("payment sweep failed; retrying next interval")
            await asyncio.sleep(self._interval)
