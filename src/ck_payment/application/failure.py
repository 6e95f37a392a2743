"""Recording a failed attempt: shared by the orchestrator, reconciler and sweeper."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.ck_common.database import unit_of_work
from src.ck_common.enums import AttemptOutcome, OrderStatus, PaymentStatus
from src.ck_order.domain.models import Order
from src.ck_order.domain.repository import OrderRepositoryProtocol
from src.ck_payment.domain.events import payment_failed
from src.ck_payment.domain.repository import AttemptRepositoryProtocol, EventPublisherProtocol

logger = logging.getLogger(__name__)

# Failures that point at tampering rather than a declined payment
INTEGRITY_REASONS = frozenset({"SIGNATURE_INVALID", "AMOUNT_MISMATCH", "PAYMENT_ORDER_MISMATCH"})


async def record_failure(
    db: AsyncSession,
    order_repo: OrderRepositoryProtocol,
    attempt_repo: AttemptRepositoryProtocol,
    publisher: EventPublisherProtocol,
    order: Order,
    attempt_id: str,
    reason: str,
    from_statuses: list[str],
) -> None:
    """Order → FAILED (re-attemptable), attempt → FAILED(reason), then publish PAYMENT_FAILED."""
    flag = reason in INTEGRITY_REASONS
    async with unit_of_work(db):
        moved = await order_repo.transition(
            db,
            order.id,
            from_statuses,
            OrderStatus.FAILED,
            payment_status=PaymentStatus.FAILED.value,
            flag_for_audit=flag,
        )
        await attempt_repo.close(
            db, attempt_id, AttemptOutcome.FAILED.value, failure_reason=reason
        )
    if flag:
        logger.warning(
            "integrity failure: order=%s attempt=%s reason=%s flagged_for_audit",
            order.id, attempt_id, reason,
        )
    else:
        logger.info("payment failed: order=%s attempt=%s reason=%s", order.id, attempt_id, reason)
    if moved is None:
        logger.warning(
            "order %s was not in %s when failing attempt %s", order.id, from_statuses, attempt_id
        )
    await publisher.publish(
        payment_failed(order.id, order.user_id, attempt_id, order.grand_total, reason)
    )
