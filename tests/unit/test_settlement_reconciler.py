"""Unit tests for SettlementReconciler.verify_payment (in-memory repositories)."""

import asyncio

import pytest

from src.ck_common.enums import UserTier
from src.ck_common.errors import (
    AttemptClosedError,
    GatewayUnavailableError,
    PaymentAttemptNotFoundError,
    SignatureInvalidError,
)
from src.ck_identity.auth.context import CallerContext
from src.ck_order.domain.models import Order
from src.ck_payment.application.locks import OrderLockRegistry
from src.ck_payment.application.orchestrator import PaymentOrchestrator
from src.ck_payment.application.reconciler import SettlementReconciler, check_gateway_payment
from src.ck_payment.domain.models import GatewayPayment
from src.ck_payment.domain.signature import compute_signature
from src.ck_pricing.domain.models import CartLine, CartSnapshot
from tests.fakes import (
    FakeAttemptRepository,
    FakeCartRepository,
    FakeGateway,
    FakeOrderRepository,
    FakeSession,
    FakeWalletRepository,
    RecordingPublisher,
)

_SECRET = "test-gateway-secret"
_REF = "order_GW0001"


def _order() -> Order:
    return Order(
        id="ord_1",
        user_id="user-1",
        tier="ENTREPRENEUR",
        address_id="addr-1",
        payment_method="GATEWAY",
        subtotal=100000,
        total_discount=10000,
        payable_subtotal=90000,
        delivery_charge=4000,
        grand_total=94000,
    )


def _payment(
    ref: str = "pay_1",
    order_ref: str = _REF,
    amount: int = 94000,
    currency: str = "INR",
    status: str = "captured",
) -> GatewayPayment:
    return GatewayPayment(
        payment_ref=ref, order_ref=order_ref, amount=amount, currency=currency, status=status
    )


class Harness:
    def __init__(self) -> None:
        self.orders = FakeOrderRepository([_order()])
        self.attempts = FakeAttemptRepository()
        self.carts = FakeCartRepository(
            {"user-1": CartSnapshot.of([CartLine(product_id="p1", unit_price=100000, quantity=1)])}
        )
        self.gateway = FakeGateway()
        self.publisher = RecordingPublisher()
        locks = OrderLockRegistry()
        self.orchestrator = PaymentOrchestrator(
            order_repo=self.orders,
            attempt_repo=self.attempts,
            wallet_repo=FakeWalletRepository(),
            cart_repo=self.carts,
            gateway=self.gateway,
            publisher=self.publisher,
            locks=locks,
            gateway_public_key="rzp_test_key",
        )
        self.reconciler = SettlementReconciler(
            order_repo=self.orders,
            attempt_repo=self.attempts,
            cart_repo=self.carts,
            gateway=self.gateway,
            publisher=self.publisher,
            locks=locks,
            gateway_secret=_SECRET,
        )

    async def start(self, client_attempt_id: str = "c-1") -> str:
        result = await self.orchestrator.start_payment(
            FakeSession(),
            CallerContext(user_id="user-1", tier=UserTier.ENTREPRENEUR),
            "ord_1",
            client_attempt_id,
        )
        assert result.gateway_order_ref is not None
        return result.gateway_order_ref

    async def verify(self, ref: str = _REF, payment_ref: str = "pay_1", signature: str | None = None):  # type: ignore[no-untyped-def]
        if signature is None:
            signature = compute_signature(ref, payment_ref, _SECRET)
        return await self.reconciler.verify_payment(FakeSession(), ref, payment_ref, signature)

    @property
    def order(self) -> Order:
        return self.orders.orders["ord_1"]

    def attempt_for(self, ref: str = _REF):  # type: ignore[no-untyped-def]
        return next(a for a in self.attempts.attempts.values() if a.gateway_order_ref == ref)


@pytest.fixture
async def h() -> Harness:
    harness = Harness()
    await harness.start()
    return harness


class TestSettle:
    async def test_valid_callback_settles(self, h: Harness) -> None:
        h.gateway.payments["pay_1"] = _payment()
        outcome = await h.verify()

        assert outcome.status == "SETTLED"
        assert outcome.reason is None
        assert h.order.status == "SETTLED"
        assert h.order.payment_status == "SUCCESS"
        attempt = h.attempt_for()
        assert attempt.outcome == "SUCCESS"
        assert attempt.gateway_payment_ref == "pay_1"
        assert attempt.verification_signature == compute_signature(_REF, "pay_1", _SECRET)
        assert h.carts.clears == ["user-1"]
        assert h.publisher.types() == ["ORDER_SETTLED"]

    async def test_duplicate_callback_is_idempotent(self, h: Harness) -> None:
        h.gateway.payments["pay_1"] = _payment()
        first = await h.verify()
        second = await h.verify()

        assert first.status == second.status == "SETTLED"
        assert h.carts.clears == ["user-1"]
        assert h.publisher.types() == ["ORDER_SETTLED"]

    async def test_concurrent_callbacks_settle_once(self, h: Harness) -> None:
        h.gateway.payments["pay_1"] = _payment()
        outcomes = await asyncio.gather(h.verify(), h.verify())

        assert [o.status for o in outcomes] == ["SETTLED", "SETTLED"]
        assert h.carts.clears == ["user-1"]
        assert h.publisher.types() == ["ORDER_SETTLED"]

    async def test_authorized_counts_as_captured(self, h: Harness) -> None:
        h.gateway.payments["pay_1"] = _payment(status="authorized")
        assert (await h.verify()).status == "SETTLED"


class TestIntegrity:
    async def test_tampered_amount_fails_and_flags(self, h: Harness) -> None:
        h.gateway.payments["pay_1"] = _payment(amount=100)
        outcome = await h.verify()

        assert outcome.status == "FAILED"
        assert outcome.reason == "AMOUNT_MISMATCH"
        assert h.order.status == "FAILED"
        assert h.order.flagged_for_audit
        assert h.attempt_for().failure_reason == "AMOUNT_MISMATCH"
        assert h.carts.clears == []
        assert h.publisher.types() == ["PAYMENT_FAILED"]

    async def test_currency_mismatch_is_amount_mismatch(self, h: Harness) -> None:
        h.gateway.payments["pay_1"] = _payment(currency="USD")
        assert (await h.verify()).reason == "AMOUNT_MISMATCH"

    async def test_payment_for_another_gateway_order(self, h: Harness) -> None:
        h.gateway.payments["pay_1"] = _payment(order_ref="order_OTHER")
        outcome = await h.verify()
        assert outcome.reason == "PAYMENT_ORDER_MISMATCH"
        assert h.order.flagged_for_audit

    async def test_not_captured_is_plain_failure(self, h: Harness) -> None:
        h.gateway.payments["pay_1"] = _payment(status="failed")
        outcome = await h.verify()
        assert outcome.reason == "PAYMENT_NOT_CAPTURED"
        assert h.order.status == "FAILED"
        assert not h.order.flagged_for_audit

    async def test_bad_signature_fails_in_flight_attempt(self, h: Harness) -> None:
        h.gateway.payments["pay_1"] = _payment()
        outcome = await h.verify(signature="deadbeef")

        assert outcome.status == "FAILED"
        assert outcome.reason == "SIGNATURE_INVALID"
        assert h.order.status == "FAILED"
        assert h.order.flagged_for_audit
        assert h.attempt_for().outcome == "FAILED"

        # The closed attempt cannot be revived by a later valid callback
        later = await h.verify()
        assert later.status == "FAILED"
        assert later.reason == "SIGNATURE_INVALID"
        assert h.order.status == "FAILED"

    async def test_non_ascii_signature_fails_closed(self, h: Harness) -> None:
        h.gateway.payments["pay_1"] = _payment()
        outcome = await h.verify(signature="é" * 64)

        assert outcome.reason == "SIGNATURE_INVALID"
        assert h.order.status == "FAILED"
        assert h.order.flagged_for_audit
        assert h.attempt_for().outcome == "FAILED"

    async def test_bad_signature_never_touches_settled_order(self, h: Harness) -> None:
        h.gateway.payments["pay_1"] = _payment()
        await h.verify()
        outcome = await h.verify(signature="0" * 64)

        assert outcome.reason == "SIGNATURE_INVALID"
        assert h.order.status == "SETTLED"
        assert not h.order.flagged_for_audit
        assert h.attempt_for().outcome == "SUCCESS"


class TestUnknownAndTransient:
    async def test_unknown_ref_with_valid_signature(self, h: Harness) -> None:
        with pytest.raises(PaymentAttemptNotFoundError):
            await h.verify(ref="order_NOPE")

    async def test_unknown_ref_with_bad_signature(self, h: Harness) -> None:
        with pytest.raises(SignatureInvalidError):
            await h.verify(ref="order_NOPE", signature="bad")

    async def test_gateway_down_defers_verification(self, h: Harness) -> None:
        h.gateway.payments["pay_1"] = _payment()
        h.gateway.down = True
        with pytest.raises(GatewayUnavailableError):
            await h.verify()
        assert h.order.status == "AWAITING_GATEWAY"
        assert h.attempt_for().is_in_flight

        h.gateway.down = False
        assert (await h.verify()).status == "SETTLED"

    async def test_retry_after_failure_settles_new_attempt(self, h: Harness) -> None:
        h.gateway.payments["pay_1"] = _payment(status="failed")
        await h.verify()
        new_ref = await h.start("c-2")
        h.gateway.payments["pay_2"] = _payment(ref="pay_2", order_ref=new_ref)

        outcome = await h.verify(ref=new_ref, payment_ref="pay_2")

        assert outcome.status == "SETTLED"
        assert h.order.status == "SETTLED"
        assert h.publisher.types() == ["PAYMENT_FAILED", "ORDER_SETTLED"]

    async def test_order_moved_by_another_worker(self, h: Harness) -> None:
        h.orders.orders["ord_1"].status = "VERIFYING"
        with pytest.raises(AttemptClosedError):
            await h.verify()


class _TimingOutGateway(FakeGateway):
    """Simulates the sweeper failing the order while the payment is being fetched."""

    def __init__(self, harness: Harness) -> None:
        super().__init__()
        self._harness = harness

    async def fetch_payment(self, gateway_payment_ref):  # type: ignore[no-untyped-def]
        order = self._harness.orders.orders["ord_1"]
        order.status = "FAILED"
        attempt = self._harness.attempt_for()
        attempt.outcome = "FAILED"
        attempt.failure_reason = "TIMEOUT"
        return _payment()


async def test_capture_after_timeout_is_reported_not_settled(h: Harness) -> None:
    h.reconciler._gateway = _TimingOutGateway(h)
    outcome = await h.verify()

    assert outcome.status == "FAILED"
    assert outcome.reason == "TIMEOUT"
    assert h.order.status == "FAILED"
    assert h.carts.clears == []


def test_check_gateway_payment_order_of_checks() -> None:
    order = _order()
    # Wrong order ref wins over every other defect
    bad = _payment(order_ref="x", amount=1, status="created")
    assert check_gateway_payment(bad, _REF, order) == "PAYMENT_ORDER_MISMATCH"
    assert check_gateway_payment(_payment(amount=1, status="created"), _REF, order) == (
        "PAYMENT_NOT_CAPTURED"
    )
    assert check_gateway_payment(_payment(currency="inr"), _REF, order) is None
