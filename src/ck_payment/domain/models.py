"""Payment domain models: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime

from src.ck_common.enums import AttemptOutcome


@dataclass
class PaymentAttempt:
    """One try at paying an order. Rows are append-only per order; at most one is IN_FLIGHT."""

    id: str
    order_id: str
    user_id: str
    client_attempt_id: str
    method: str
    amount: int                 # paise; always copied from Order.grand_total
    currency: str = "INR"
    gateway_order_ref: str | None = None
    gateway_payment_ref: str | None = None
    verification_signature: str | None = None
    outcome: str = AttemptOutcome.IN_FLIGHT.value
    failure_reason: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_in_flight(self) -> bool:
        return self.outcome == AttemptOutcome.IN_FLIGHT.value


@dataclass(frozen=True)
class GatewayOrder:
    gateway_order_ref: str
    public_key: str
    amount: int
    currency: str


@dataclass(frozen=True)
class GatewayPayment:
    """Payment as the gateway reports it. Only these fields are trusted, never the client's."""

    payment_ref: str
    order_ref: str
    amount: int
    currency: str
    status: str

    @property
    def is_captured(self) -> bool:
        return self.status in ("captured", "authorized")


@dataclass(frozen=True)
class StartPaymentResult:
    order_id: str
    attempt_id: str | None
    method: str
    order_status: str
    payment_status: str
    amount: int
    currency: str
    gateway_order_ref: str | None = None
    gateway_public_key: str | None = None


@dataclass(frozen=True)
class SettlementOutcome:
    order_id: str
    status: str                 # SETTLED | FAILED
    reason: str | None = None
