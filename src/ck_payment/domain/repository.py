"""Payment-side collaborator contracts: attempt store, gateway, event publisher."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.ck_payment.domain.events import SettlementEvent
from src.ck_payment.domain.models import GatewayOrder, GatewayPayment, PaymentAttempt


class AttemptRepositoryProtocol(Protocol):
    async def insert(self, db: AsyncSession, attempt: PaymentAttempt) -> None: ...

    async def get_by_client_id(
        self, db: AsyncSession, order_id: str, client_attempt_id: str
    ) -> PaymentAttempt | None: ...

    async def get_by_gateway_order_ref(
        self, db: AsyncSession, gateway_order_ref: str
    ) -> PaymentAttempt | None: ...

    async def get_in_flight(self, db: AsyncSession, order_id: str) -> PaymentAttempt | None: ...

    async def list_for_order(self, db: AsyncSession, order_id: str) -> list[PaymentAttempt]: ...

    async def set_gateway_order_ref(
        self, db: AsyncSession, attempt_id: str, gateway_order_ref: str
    ) -> None: ...

    async def close(
        self,
        db: AsyncSession,
        attempt_id: str,
        outcome: str,
        *,
        failure_reason: str | None = None,
        gateway_payment_ref: str | None = None,
        verification_signature: str | None = None,
    ) -> bool:
        """IN_FLIGHT → outcome. False when the attempt was already closed."""
        ...

    async def fail_in_flight_for_orders(
        self, db: AsyncSession, order_ids: list[str], reason: str
    ) -> int: ...


class PaymentGatewayProtocol(Protocol):
    async def create_order(self, amount: int, currency: str, internal_order_id: str) -> GatewayOrder: ...

    async def fetch_payment(self, gateway_payment_ref: str) -> GatewayPayment: ...


class EventPublisherProtocol(Protocol):
    async def publish(self, event: SettlementEvent) -> None: ...
