"""In-memory collaborators for service-level tests.

FakeSession keeps an undo log: repositories register how to revert each write,
``rollback`` replays it backwards and ``commit`` forgets it. That is enough to
exercise the commit/rollback paths of unit_of_work without PostgreSQL.
"""

import asyncio
from collections.abc import Callable, Iterable
from dataclasses import replace
from datetime import datetime

from src.ck_common.datetime_utils import utc_now
from src.ck_common.enums import AttemptOutcome, OrderStatus, WalletEntryType
from src.ck_common.errors import GatewayUnavailableError, InsufficientFundsError
from src.ck_order.domain.models import Order
from src.ck_payment.domain.events import SettlementEvent
from src.ck_payment.domain.models import GatewayOrder, GatewayPayment, PaymentAttempt
from src.ck_pricing.domain.models import CartSnapshot, DeliveryFeeRule
from src.ck_wallet.domain.models import Wallet, WalletTransaction


class UniqueViolation(Exception):
    pass


class FakeSession:
    def __init__(self) -> None:
        self._undo: list[Callable[[], None]] = []
        self.commits = 0
        self.rollbacks = 0

    def on_rollback(self, fn: Callable[[], None]) -> None:
        self._undo.append(fn)

    async def commit(self) -> None:
        self._undo.clear()
        self.commits += 1

    async def rollback(self) -> None:
        while self._undo:
            self._undo.pop()()
        self.rollbacks += 1


class FakeOrderRepository:
    def __init__(self, orders: Iterable[Order] = ()) -> None:
        self.orders: dict[str, Order] = {o.id: o for o in orders}

    async def save(self, db: FakeSession, order: Order) -> None:
        self.orders[order.id] = replace(order)
        db.on_rollback(lambda: self.orders.pop(order.id, None))

    async def get_by_id(self, db: FakeSession, order_id: str) -> Order | None:
        order = self.orders.get(order_id)
        return replace(order) if order else None

    async def list_by_user(self, db, user_id, status, cursor_id, limit):  # type: ignore[no-untyped-def]
        rows = sorted(
            (o for o in self.orders.values() if o.user_id == user_id),
            key=lambda o: o.id,
            reverse=True,
        )
        if status:
            rows = [o for o in rows if o.status == status]
        if cursor_id:
            rows = [o for o in rows if o.id < cursor_id]
        return [replace(o) for o in rows[:limit]]

    async def transition(
        self,
        db: FakeSession,
        order_id: str,
        from_statuses: list[str],
        to_status: OrderStatus,
        *,
        payment_status: str | None = None,
        flag_for_audit: bool = False,
    ) -> Order | None:
        current = self.orders.get(order_id)
        if current is None or current.status not in from_statuses:
            return None
        before = replace(current)
        now = utc_now()
        current.status = to_status.value
        if payment_status is not None:
            current.payment_status = payment_status
        current.flagged_for_audit = current.flagged_for_audit or flag_for_audit
        if to_status is OrderStatus.SETTLED:
            current.settled_at = now
        current.updated_at = now
        db.on_rollback(lambda: self.orders.__setitem__(order_id, before))
        return replace(current, lines=())

    async def fail_stale(
        self, db: FakeSession, statuses: list[str], older_than: datetime
    ) -> list[Order]:
        expired = []
        for order in list(self.orders.values()):
            if order.status in statuses and order.updated_at and order.updated_at < older_than:
                before = replace(order)
                order.status = OrderStatus.FAILED.value
                order.payment_status = "FAILED"
                order.updated_at = utc_now()
                db.on_rollback(lambda o=before: self.orders.__setitem__(o.id, o))
                expired.append(replace(order))
        return expired


class FakeAttemptRepository:
    def __init__(self) -> None:
        self.attempts: dict[str, PaymentAttempt] = {}

    def _restore(self, db: FakeSession, attempt: PaymentAttempt) -> None:
        before = replace(attempt)
        db.on_rollback(lambda: self.attempts.__setitem__(before.id, before))

    async def insert(self, db: FakeSession, attempt: PaymentAttempt) -> None:
        for existing in self.attempts.values():
            if existing.order_id != attempt.order_id:
                continue
            if existing.client_attempt_id == attempt.client_attempt_id:
                raise UniqueViolation("uq_attempt_client_id")
            if existing.is_in_flight and attempt.is_in_flight:
                raise UniqueViolation("uq_attempt_one_in_flight")
        self.attempts[attempt.id] = replace(attempt, created_at=utc_now(), updated_at=utc_now())
        db.on_rollback(lambda: self.attempts.pop(attempt.id, None))

    async def get_by_client_id(self, db, order_id, client_attempt_id):  # type: ignore[no-untyped-def]
        for a in self.attempts.values():
            if a.order_id == order_id and a.client_attempt_id == client_attempt_id:
                return replace(a)
        return None

    async def get_by_gateway_order_ref(self, db, gateway_order_ref):  # type: ignore[no-untyped-def]
        for a in self.attempts.values():
            if a.gateway_order_ref == gateway_order_ref:
                return replace(a)
        return None

    async def get_in_flight(self, db, order_id):  # type: ignore[no-untyped-def]
        for a in self.attempts.values():
            if a.order_id == order_id and a.is_in_flight:
                return replace(a)
        return None

    async def list_for_order(self, db, order_id):  # type: ignore[no-untyped-def]
        return [replace(a) for a in self.attempts.values() if a.order_id == order_id]

    async def set_gateway_order_ref(self, db, attempt_id, gateway_order_ref):  # type: ignore[no-untyped-def]
        attempt = self.attempts[attempt_id]
        self._restore(db, attempt)
        attempt.gateway_order_ref = gateway_order_ref

    async def close(
        self,
        db: FakeSession,
        attempt_id: str,
        outcome: str,
        *,
        failure_reason: str | None = None,
        gateway_payment_ref: str | None = None,
        verification_signature: str | None = None,
    ) -> bool:
        attempt = self.attempts.get(attempt_id)
        if attempt is None or not attempt.is_in_flight:
            return False
        self._restore(db, attempt)
        attempt.outcome = outcome
        attempt.failure_reason = failure_reason
        attempt.gateway_payment_ref = gateway_payment_ref or attempt.gateway_payment_ref
        attempt.verification_signature = verification_signature or attempt.verification_signature
        return True

    async def fail_in_flight_for_orders(self, db, order_ids, reason):  # type: ignore[no-untyped-def]
        closed = 0
        for attempt in self.attempts.values():
            if attempt.order_id in order_ids and attempt.is_in_flight:
                self._restore(db, attempt)
                attempt.outcome = AttemptOutcome.FAILED.value
                attempt.failure_reason = reason
                closed += 1
        return closed


class FakeWalletRepository:
    """Balance check and decrement happen with no await in between,
    like the single conditional UPDATE they stand in for."""

    def __init__(self, balances: dict[str, int] | None = None) -> None:
        self.balances: dict[str, int] = dict(balances or {})
        self.ledger: list[WalletTransaction] = []

    async def get_wallet(self, db, user_id):  # type: ignore[no-untyped-def]
        if user_id not in self.balances:
            return None
        return Wallet(
            id=f"w-{user_id}", user_id=user_id,
            available_balance=self.balances[user_id], locked_balance=0, version=0,
        )

    async def debit_for_order(self, db, user_id, amount, order_id, attempt_id):  # type: ignore[no-untyped-def]
        await asyncio.sleep(0)
        available = self.balances.get(user_id)
        if available is None or available < amount:
            raise InsufficientFundsError(amount, available or 0)
        if any(tx.reference_id == attempt_id for tx in self.ledger):
            raise UniqueViolation("uq_wallet_tx_reference")
        self.balances[user_id] = available - amount
        tx = WalletTransaction(
            id=len(self.ledger) + 1,
            user_id=user_id,
            entry_type=WalletEntryType.ORDER_DEBIT.value,
            amount=-amount,
            balance_after=available - amount,
            reference_type="PAYMENT_ATTEMPT",
            reference_id=attempt_id,
        )
        self.ledger.append(tx)

        def undo() -> None:
            self.balances[user_id] += amount
            self.ledger.remove(tx)

        db.on_rollback(undo)
        return await self.get_wallet(db, user_id), tx

    async def list_transactions(self, db, user_id, cursor_id, limit, entry_type):  # type: ignore[no-untyped-def]
        return [tx for tx in reversed(self.ledger) if tx.user_id == user_id][:limit]


class FakeCartRepository:
    def __init__(self, carts: dict[str, CartSnapshot] | None = None) -> None:
        self.carts: dict[str, CartSnapshot] = dict(carts or {})
        self.clears: list[str] = []

    async def load_snapshot(self, db, user_id):  # type: ignore[no-untyped-def]
        return self.carts.get(user_id, CartSnapshot())

    async def clear(self, db, user_id):  # type: ignore[no-untyped-def]
        snapshot = self.carts.pop(user_id, CartSnapshot())
        self.clears.append(user_id)

        def undo() -> None:
            self.carts[user_id] = snapshot
            self.clears.remove(user_id)

        db.on_rollback(undo)
        return len(snapshot.lines)


class FakeAddressDirectory:
    def __init__(self, known: Iterable[tuple[str, str]] = ()) -> None:
        self.known = set(known)

    async def address_exists(self, db, user_id, address_id):  # type: ignore[no-untyped-def]
        return (user_id, address_id) in self.known


class FakeRuleRepository:
    def __init__(self, rules: Iterable[DeliveryFeeRule] = ()) -> None:
        self.rules = list(rules)

    async def list_active_rules(self, db):  # type: ignore[no-untyped-def]
        return [r for r in self.rules if r.active]


class FakeGateway:
    def __init__(self, public_key: str = "rzp_test_key") -> None:
        self.public_key = public_key
        self.created: list[tuple[int, str, str]] = []
        self.payments: dict[str, GatewayPayment] = {}
        self.down = False
        self.echo_amount: int | None = None

    async def create_order(self, amount, currency, internal_order_id):  # type: ignore[no-untyped-def]
        if self.down:
            raise GatewayUnavailableError("Payment gateway unreachable: ConnectError")
        self.created.append((amount, currency, internal_order_id))
        return GatewayOrder(
            gateway_order_ref=f"order_GW{len(self.created):04d}",
            public_key=self.public_key,
            amount=self.echo_amount if self.echo_amount is not None else amount,
            currency=currency,
        )

    async def fetch_payment(self, gateway_payment_ref):  # type: ignore[no-untyped-def]
        await asyncio.sleep(0)
        if self.down:
            raise GatewayUnavailableError("Payment gateway returned HTTP 502")
        return self.payments[gateway_payment_ref]


class RecordingPublisher:
    def __init__(self) -> None:
        self.events: list[SettlementEvent] = []

    async def publish(self, event: SettlementEvent) -> None:
        self.events.append(event)

    def types(self) -> list[str]:
        return [e.event_type.value for e in self.events]
