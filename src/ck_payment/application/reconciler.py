"""SettlementReconciler: verifies a gateway callback and settles or fails the order.

Nothing the client relays is trusted beyond the two refs and the signature:
amount, currency and capture state come from the gateway's own record of the
payment and are compared against the frozen Order.grand_total.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.ck_cart.domain.repository import CartRepositoryProtocol
from src.ck_cart.infrastructure.persistence import CartRepository
from src.ck_common.database import unit_of_work
from src.ck_common.enums import AttemptOutcome, OrderStatus, PaymentStatus
from src.ck_common.errors import (
    AmountMismatchError,
    AttemptClosedError,
    GatewayUnavailableError,
    OrderNotFoundError,
    PaymentAttemptNotFoundError,
    PaymentNotCapturedError,
    PaymentOrderMismatchError,
    SignatureInvalidError,
)
from src.ck_order.domain.models import Order
from src.ck_order.domain.repository import OrderRepositoryProtocol
from src.ck_order.infrastructure.persistence import OrderRepository
from src.ck_payment.application.failure import record_failure
from src.ck_payment.application.locks import OrderLockRegistry, get_order_locks
from src.ck_payment.domain.events import order_settled
from src.ck_payment.domain.models import GatewayPayment, PaymentAttempt, SettlementOutcome
from src.ck_payment.domain.repository import (
    AttemptRepositoryProtocol,
    EventPublisherProtocol,
    PaymentGatewayProtocol,
)
from src.ck_payment.domain.signature import verify_signature
from src.ck_payment.infrastructure.event_publisher import RedisEventPublisher
from src.ck_payment.infrastructure.persistence import AttemptRepository
from src.ck_payment.infrastructure.razorpay_client import RazorpayClient

logger = logging.getLogger(__name__)

_SETTLED = OrderStatus.SETTLED.value
_FAILED = OrderStatus.FAILED.value


def check_gateway_payment(
    payment: GatewayPayment, gateway_order_ref: str, order: Order
) -> str | None:
    """First integrity failure reason, or None when the payment settles ``order``."""
    if payment.order_ref != gateway_order_ref:
        return PaymentOrderMismatchError.reason
    if not payment.is_captured:
        return PaymentNotCapturedError.reason
    if payment.amount != order.grand_total or payment.currency.upper() != order.currency.upper():
        return AmountMismatchError.reason
    return None


class SettlementReconciler:
    def __init__(
        self,
        order_repo: OrderRepositoryProtocol | None = None,
        attempt_repo: AttemptRepositoryProtocol | None = None,
        cart_repo: CartRepositoryProtocol | None = None,
        gateway: PaymentGatewayProtocol | None = None,
        publisher: EventPublisherProtocol | None = None,
        locks: OrderLockRegistry | None = None,
        gateway_secret: str | None = None,
    ) -> None:
        self._order_repo: OrderRepositoryProtocol = order_repo or OrderRepository()
        self._attempt_repo: AttemptRepositoryProtocol = attempt_repo or AttemptRepository()
        self._cart_repo: CartRepositoryProtocol = cart_repo or CartRepository()
        self._gateway: PaymentGatewayProtocol = gateway or RazorpayClient()
        self._publisher: EventPublisherProtocol = publisher or RedisEventPublisher()
        self._locks = locks or get_order_locks()
        self._secret = gateway_secret if gateway_secret is not None else settings.GATEWAY_KEY_SECRET

    async def verify_payment(
        self,
        db: AsyncSession,
        gateway_order_ref: str,
        gateway_payment_ref: str,
        signature: str,
    ) -> SettlementOutcome:
        signature_ok = verify_signature(
            gateway_order_ref, gateway_payment_ref, signature, self._secret
        )
        found = await self._attempt_repo.get_by_gateway_order_ref(db, gateway_order_ref)
        if found is None:
            if not signature_ok:
                raise SignatureInvalidError()
            raise PaymentAttemptNotFoundError(gateway_order_ref)

        async with self._locks.for_order(found.order_id):
            # Re-read under the lock: a concurrent callback may have closed it
            attempt = await self._attempt_repo.get_by_gateway_order_ref(db, gateway_order_ref)
            order = await self._order_repo.get_by_id(db, found.order_id)
            if attempt is None or order is None:
                raise OrderNotFoundError(found.order_id)

            if not signature_ok:
                return await self._reject_signature(db, order, attempt)

            closed = self._outcome_if_closed(order, attempt)
            if closed is not None:
                return closed

            async with unit_of_work(db):
                verifying = await self._order_repo.transition(
                    db,
                    order.id,
                    [OrderStatus.AWAITING_GATEWAY.value],
                    OrderStatus.VERIFYING,
                )
            if verifying is None:
                raise AttemptClosedError(attempt.id)

            try:
                payment = await self._gateway.fetch_payment(gateway_payment_ref)
            except GatewayUnavailableError:
                async with unit_of_work(db):
                    await self._order_repo.transition(
                        db,
                        order.id,
                        [OrderStatus.VERIFYING.value],
                        OrderStatus.AWAITING_GATEWAY,
                    )
                logger.warning(
                    "verify deferred: order=%s gateway unreachable, back to AWAITING_GATEWAY",
                    order.id,
                )
                raise

            reason = check_gateway_payment(payment, gateway_order_ref, order)
            if reason is not None:
                await record_failure(
                    db, self._order_repo, self._attempt_repo, self._publisher,
                    order, attempt.id, reason, [OrderStatus.VERIFYING.value],
                )
                return SettlementOutcome(order.id, _FAILED, reason)

            return await self._settle(db, order, attempt, gateway_payment_ref, signature)

    async def _settle(
        self,
        db: AsyncSession,
        order: Order,
        attempt: PaymentAttempt,
        gateway_payment_ref: str,
        signature: str,
    ) -> SettlementOutcome:
        async with unit_of_work(db):
            settled = await self._order_repo.transition(
                db,
                order.id,
                [OrderStatus.VERIFYING.value],
                OrderStatus.SETTLED,
                payment_status=PaymentStatus.SUCCESS.value,
            )
            if settled is not None:
                await self._attempt_repo.close(
                    db,
                    attempt.id,
                    AttemptOutcome.SUCCESS.value,
                    gateway_payment_ref=gateway_payment_ref,
                    verification_signature=signature,
                )
                await self._cart_repo.clear(db, order.user_id)

        if settled is None:
            # Timed out by the sweeper while the gateway was being asked
            logger.error(
                "captured payment %s for order %s arrived after the order left VERIFYING; "
                "needs manual refund",
                gateway_payment_ref, order.id,
            )
            current = await self._attempt_repo.get_by_gateway_order_ref(
                db, attempt.gateway_order_ref or ""
            )
            reason = current.failure_reason if current else None
            return SettlementOutcome(order.id, _FAILED, reason or AttemptClosedError.reason)

        logger.info(
            "order %s settled via gateway: payment=%s amount=%d",
            order.id, gateway_payment_ref, order.grand_total,
        )
        await self._publisher.publish(
            order_settled(order.id, order.user_id, attempt.id, order.grand_total)
        )
        return SettlementOutcome(order.id, _SETTLED)

    async def _reject_signature(
        self, db: AsyncSession, order: Order, attempt: PaymentAttempt
    ) -> SettlementOutcome:
        reason = SignatureInvalidError.reason
        if attempt.is_in_flight:
            await record_failure(
                db, self._order_repo, self._attempt_repo, self._publisher,
                order, attempt.id, reason,
                [OrderStatus.AWAITING_GATEWAY.value, OrderStatus.VERIFYING.value],
            )
        else:
            # Closed attempts are never reopened or rewritten by a bad callback
            logger.warning(
                "invalid signature for closed attempt %s (order=%s outcome=%s)",
                attempt.id, order.id, attempt.outcome,
            )
        return SettlementOutcome(order.id, _FAILED, reason)

    @staticmethod
    def _outcome_if_closed(order: Order, attempt: PaymentAttempt) -> SettlementOutcome | None:
        if attempt.outcome == AttemptOutcome.SUCCESS.value or order.is_settled:
            return SettlementOutcome(order.id, _SETTLED)
        if attempt.outcome == AttemptOutcome.FAILED.value:
            return SettlementOutcome(order.id, _FAILED, attempt.failure_reason)
        return None


_reconciler: SettlementReconciler | None = None


def get_settlement_reconciler() -> SettlementReconciler:
    global _reconciler  # noqa: PLW0603
    if _reconciler is None:
        _reconciler = SettlementReconciler()
    return _reconciler
