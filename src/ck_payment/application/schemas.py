"""Pydantic schemas for the payment API."""

from pydantic import BaseModel, Field

from src.ck_common.datetime_utils import to_iso
from src.ck_common.money import paise_to_display
from src.ck_payment.domain.models import PaymentAttempt, SettlementOutcome, StartPaymentResult


class StartPaymentRequest(BaseModel):
    client_attempt_id: str = Field(..., min_length=1, max_length=64, pattern=r"^\S+$")


class StartPaymentResponse(BaseModel):
    order_id: str
    attempt_id: str | None
    method: str
    order_status: str
    payment_status: str
    amount_paise: int
    amount_display: str
    currency: str
    gateway_order_ref: str | None = None
    gateway_public_key: str | None = None

    @classmethod
    def from_domain(cls, result: StartPaymentResult) -> "StartPaymentResponse":
        return cls(
            order_id=result.order_id,
            attempt_id=result.attempt_id,
            method=result.method,
            order_status=result.order_status,
            payment_status=result.payment_status,
            amount_paise=result.amount,
            amount_display=paise_to_display(result.amount),
            currency=result.currency,
            gateway_order_ref=result.gateway_order_ref,
            gateway_public_key=result.gateway_public_key,
        )


class VerifyPaymentRequest(BaseModel):
    gateway_order_ref: str = Field(..., min_length=1)
    gateway_payment_ref: str = Field(..., min_length=1)
    signature: str = Field(..., min_length=1, max_length=128, pattern=r"^[0-9a-fA-F]+$")


class VerifyPaymentResponse(BaseModel):
    order_id: str
    status: str
    reason: str | None = None

    @classmethod
    def from_domain(cls, outcome: SettlementOutcome) -> "VerifyPaymentResponse":
        return cls(order_id=outcome.order_id, status=outcome.status, reason=outcome.reason)


class PaymentAttemptItem(BaseModel):
    id: str
    client_attempt_id: str
    method: str
    amount_paise: int
    currency: str
    outcome: str
    failure_reason: str | None
    gateway_order_ref: str | None
    gateway_payment_ref: str | None
    created_at: str | None
    updated_at: str | None

    @classmethod
    def from_domain(cls, attempt: PaymentAttempt) -> "PaymentAttemptItem":
        return cls(
            id=attempt.id,
            client_attempt_id=attempt.client_attempt_id,
            method=attempt.method,
            amount_paise=attempt.amount,
            currency=attempt.currency,
            outcome=attempt.outcome,
            failure_reason=attempt.failure_reason,
            gateway_order_ref=attempt.gateway_order_ref,
            gateway_payment_ref=attempt.gateway_payment_ref,
            created_at=to_iso(attempt.created_at),
            updated_at=to_iso(attempt.updated_at),
        )
