"""PaymentOrchestrator: starts a payment attempt for an order.

Branches on the order's payment method:

  GATEWAY           CREATED|FAILED → AWAITING_GATEWAY, remote order for grand_total,
                    then wait for the callback (no lock or transaction held).
  WALLET            CREATED|FAILED → DEBITING → SETTLED in one transaction with the
                    conditional wallet debit and the cart clear.
  CASH_ON_DELIVERY  CREATED|FAILED → SETTLED; payment_status stays PENDING.

Exclusivity per order comes from an in-process lock plus the status
compare-and-swap in OrderRepository.transition.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.ck_cart.domain.repository import CartRepositoryProtocol
from src.ck_cart.infrastructure.persistence import CartRepository
from src.ck_common.database import unit_of_work
from src.ck_common.enums import AttemptOutcome, OrderStatus, PaymentMethod, PaymentStatus
from src.ck_common.errors import (
    AmountMismatchError,
    GatewayUnavailableError,
    InsufficientFundsError,
    InvalidTransitionError,
    OrderForbiddenError,
    OrderNotFoundError,
    PaymentInFlightError,
    error_for_failure,
)
from src.ck_common.id_generator import new_attempt_id
from src.ck_identity.auth.context import CallerContext
from src.ck_order.domain.models import Order
from src.ck_order.domain.repository import OrderRepositoryProtocol
from src.ck_order.domain.state_machine import ATTEMPTABLE, IN_FLIGHT, sources_for
from src.ck_order.infrastructure.persistence import OrderRepository
from src.ck_payment.application.failure import record_failure
from src.ck_payment.application.locks import OrderLockRegistry, get_order_locks
from src.ck_payment.domain.events import order_settled, payment_failed
from src.ck_payment.domain.models import PaymentAttempt, StartPaymentResult
from src.ck_payment.domain.repository import (
    AttemptRepositoryProtocol,
    EventPublisherProtocol,
    PaymentGatewayProtocol,
)
from src.ck_payment.infrastructure.event_publisher import RedisEventPublisher
from src.ck_payment.infrastructure.persistence import AttemptRepository
from src.ck_payment.infrastructure.razorpay_client import RazorpayClient
from src.ck_wallet.domain.repository import WalletRepositoryProtocol
from src.ck_wallet.infrastructure.persistence import WalletRepository

logger = logging.getLogger(__name__)

_CREATED = OrderStatus.CREATED.value
_FAILED = OrderStatus.FAILED.value


class PaymentOrchestrator:
    def __init__(
        self,
        order_repo: OrderRepositoryProtocol | None = None,
        attempt_repo: AttemptRepositoryProtocol | None = None,
        wallet_repo: WalletRepositoryProtocol | None = None,
        cart_repo: CartRepositoryProtocol | None = None,
        gateway: PaymentGatewayProtocol | None = None,
        publisher: EventPublisherProtocol | None = None,
        locks: OrderLockRegistry | None = None,
        gateway_public_key: str | None = None,
    ) -> None:
        self._order_repo: OrderRepositoryProtocol = order_repo or OrderRepository()
        self._attempt_repo: AttemptRepositoryProtocol = attempt_repo or AttemptRepository()
        self._wallet_repo: WalletRepositoryProtocol = wallet_repo or WalletRepository()
        self._cart_repo: CartRepositoryProtocol = cart_repo or CartRepository()
        self._gateway: PaymentGatewayProtocol = gateway or RazorpayClient()
        self._publisher: EventPublisherProtocol = publisher or RedisEventPublisher()
        self._locks = locks or get_order_locks()
        self._public_key = (
            gateway_public_key if gateway_public_key is not None else settings.GATEWAY_KEY_ID
        )

    async def start_payment(
        self,
        db: AsyncSession,
        caller: CallerContext,
        order_id: str,
        client_attempt_id: str,
    ) -> StartPaymentResult:
        async with self._locks.for_order(order_id):
            order = await self._order_repo.get_by_id(db, order_id)
            if order is None:
                raise OrderNotFoundError(order_id)
            if order.user_id != caller.user_id:
                raise OrderForbiddenError(order_id)

            existing = await self._attempt_repo.get_by_client_id(db, order_id, client_attempt_id)
            if existing is not None:
                return self._replay(order, existing)

            if order.is_settled:
                logger.info("start_payment on settled order %s: no-op", order_id)
                return self._result(order, None, order.status, order.payment_status)

            status = OrderStatus(order.status)
            if status in IN_FLIGHT:
                raise PaymentInFlightError(order_id)
            stray = await self._attempt_repo.get_in_flight(db, order_id)
            if stray is not None:
                # order already left the gateway states; the attempt still awaits a callback
                logger.warning(
                    "order %s is %s with attempt %s in flight", order_id, order.status, stray.id
                )
                raise PaymentInFlightError(order_id)
            if status not in ATTEMPTABLE:
                raise InvalidTransitionError(order_id, order.status, "PAYMENT")

            attempt = PaymentAttempt(
                id=new_attempt_id(),
                order_id=order.id,
                user_id=order.user_id,
                client_attempt_id=client_attempt_id,
                method=order.payment_method,
                amount=order.grand_total,
                currency=order.currency,
            )
            method = PaymentMethod(order.payment_method)
            if method is PaymentMethod.GATEWAY:
                return await self._start_gateway(db, order, attempt)
            if method is PaymentMethod.WALLET:
                return await self._settle_from_wallet(db, order, attempt)
            return await self._settle_cash_on_delivery(db, order, attempt)

    # ------------------------------------------------------------------
    # Branches
    # ------------------------------------------------------------------

    async def _claim(
        self,
        db: AsyncSession,
        order: Order,
        attempt: PaymentAttempt,
        target: OrderStatus,
        payment_status: PaymentStatus = PaymentStatus.PENDING,
    ) -> None:
        """CAS the order out of CREATED/FAILED and register the IN_FLIGHT attempt."""
        moved = await self._order_repo.transition(
            db,
            order.id,
            sources_for(target, among=ATTEMPTABLE),
            target,
            payment_status=payment_status.value,
        )
        if moved is None:
            # Another worker got there first
            raise PaymentInFlightError(order.id)
        await self._attempt_repo.insert(db, attempt)
        logger.info(
            "order %s: %s -> %s (attempt=%s)", order.id, order.status, target.value, attempt.id
        )

    async def _start_gateway(
        self, db: AsyncSession, order: Order, attempt: PaymentAttempt
    ) -> StartPaymentResult:
        async with unit_of_work(db):
            await self._claim(db, order, attempt, OrderStatus.AWAITING_GATEWAY)

        awaiting = [OrderStatus.AWAITING_GATEWAY.value]
        try:
            gateway_order = await self._gateway.create_order(
                order.grand_total, order.currency, order.id
            )
        except GatewayUnavailableError as exc:
            await record_failure(
                db, self._order_repo, self._attempt_repo, self._publisher,
                order, attempt.id, exc.reason, awaiting,
            )
            raise

        if gateway_order.amount != order.grand_total:
            await record_failure(
                db, self._order_repo, self._attempt_repo, self._publisher,
                order, attempt.id, AmountMismatchError.reason, awaiting,
            )
            raise AmountMismatchError(order.grand_total, gateway_order.amount)

        async with unit_of_work(db):
            await self._attempt_repo.set_gateway_order_ref(
                db, attempt.id, gateway_order.gateway_order_ref
            )
        attempt.gateway_order_ref = gateway_order.gateway_order_ref
        return self._result(
            order,
            attempt,
            OrderStatus.AWAITING_GATEWAY.value,
            PaymentStatus.PENDING.value,
            public_key=gateway_order.public_key,
        )

    async def _settle_from_wallet(
        self, db: AsyncSession, order: Order, attempt: PaymentAttempt
    ) -> StartPaymentResult:
        try:
            async with unit_of_work(db):
                await self._claim(db, order, attempt, OrderStatus.DEBITING)
                await self._wallet_repo.debit_for_order(
                    db, order.user_id, order.grand_total, order.id, attempt.id
                )
                await self._order_repo.transition(
                    db,
                    order.id,
                    [OrderStatus.DEBITING.value],
                    OrderStatus.SETTLED,
                    payment_status=PaymentStatus.SUCCESS.value,
                )
                await self._attempt_repo.close(db, attempt.id, AttemptOutcome.SUCCESS.value)
                await self._cart_repo.clear(db, order.user_id)
        except InsufficientFundsError as exc:
            # The claim rolled back with the debit; record the failed attempt on its own
            attempt.outcome = AttemptOutcome.FAILED.value
            attempt.failure_reason = exc.reason
            async with unit_of_work(db):
                await self._order_repo.transition(
                    db,
                    order.id,
                    [_CREATED, _FAILED],
                    OrderStatus.FAILED,
                    payment_status=PaymentStatus.FAILED.value,
                )
                await self._attempt_repo.insert(db, attempt)
            logger.info(
                "wallet debit refused: order=%s required=%d available=%d",
                order.id, exc.required, exc.available,
            )
            await self._publisher.publish(
                payment_failed(order.id, order.user_id, attempt.id, order.grand_total, exc.reason)
            )
            raise

        logger.info("order %s settled from wallet: amount=%d", order.id, order.grand_total)
        await self._publisher.publish(
            order_settled(order.id, order.user_id, attempt.id, order.grand_total)
        )
        attempt.outcome = AttemptOutcome.SUCCESS.value
        return self._result(
            order, attempt, OrderStatus.SETTLED.value, PaymentStatus.SUCCESS.value
        )

    async def _settle_cash_on_delivery(
        self, db: AsyncSession, order: Order, attempt: PaymentAttempt
    ) -> StartPaymentResult:
        async with unit_of_work(db):
            await self._claim(db, order, attempt, OrderStatus.SETTLED)
            await self._attempt_repo.close(db, attempt.id, AttemptOutcome.SUCCESS.value)
            await self._cart_repo.clear(db, order.user_id)
        await self._publisher.publish(
            order_settled(order.id, order.user_id, attempt.id, order.grand_total)
        )
        attempt.outcome = AttemptOutcome.SUCCESS.value
        return self._result(
            order, attempt, OrderStatus.SETTLED.value, PaymentStatus.PENDING.value
        )

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    def _replay(self, order: Order, attempt: PaymentAttempt) -> StartPaymentResult:
        """Same client_attempt_id again: answer from the stored attempt, touch nothing."""
        if attempt.outcome == AttemptOutcome.FAILED.value:
            raise error_for_failure(attempt.failure_reason or "UNKNOWN")
        if attempt.outcome == AttemptOutcome.SUCCESS.value:
            return self._result(order, attempt, order.status, order.payment_status)
        if attempt.gateway_order_ref:
            return self._result(
                order, attempt, order.status, order.payment_status, public_key=self._public_key
            )
        raise PaymentInFlightError(order.id)

    def _result(
        self,
        order: Order,
        attempt: PaymentAttempt | None,
        order_status: str,
        payment_status: str,
        public_key: str | None = None,
    ) -> StartPaymentResult:
        return StartPaymentResult(
            order_id=order.id,
            attempt_id=attempt.id if attempt else None,
            method=order.payment_method,
            order_status=order_status,
            payment_status=payment_status,
            amount=order.grand_total,
            currency=order.currency,
            gateway_order_ref=attempt.gateway_order_ref if attempt else None,
            gateway_public_key=public_key,
        )


_orchestrator: PaymentOrchestrator | None = None


def get_payment_orchestrator() -> PaymentOrchestrator:
    global _orchestrator  # noqa: PLW0603
    if _orchestrator is None:
        _orchestrator = PaymentOrchestrator()
    return _orchestrator
