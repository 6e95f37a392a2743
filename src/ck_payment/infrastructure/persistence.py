"""AttemptRepository: raw SQL persistence for payment attempts."""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.ck_payment.domain.models import PaymentAttempt

_COLUMNS = """
    id, order_id, user_id, client_attempt_id, method, amount, currency,
    gateway_order_ref, gateway_payment_ref, verification_signature,
    outcome, failure_reason, created_at, updated_at
"""

_INSERT_SQL = text("""
    INSERT INTO payment_attempts (id, order_id, user_id, client_attempt_id, method,
        amount, currency, outcome, failure_reason)
    VALUES (:id, :order_id, :user_id, :client_attempt_id, :method,
        :amount, :currency, :outcome, :failure_reason)
""")

_GET_BY_CLIENT_ID_SQL = text(f"""
    SELECT {_COLUMNS} FROM payment_attempts
    WHERE order_id = :order_id AND client_attempt_id = :client_attempt_id
""")

_GET_BY_GATEWAY_REF_SQL = text(f"""
    SELECT {_COLUMNS} FROM payment_attempts
    WHERE gateway_order_ref = :gateway_order_ref
""")

_GET_IN_FLIGHT_SQL = text(f"""
    SELECT {_COLUMNS} FROM payment_attempts
    WHERE order_id = :order_id AND outcome = 'IN_FLIGHT'
""")

_LIST_FOR_ORDER_SQL = text(f"""
    SELECT {_COLUMNS} FROM payment_attempts
    WHERE order_id = :order_id
    ORDER BY created_at ASC, id ASC
""")

_SET_GATEWAY_REF_SQL = text("""
    UPDATE payment_attempts
    SET gateway_order_ref = :gateway_order_ref, updated_at = NOW()
    WHERE id = :id
""")

_CLOSE_SQL = text("""
    UPDATE payment_attempts
    SET outcome = :outcome,
        failure_reason = :failure_reason,
        gateway_payment_ref = COALESCE(CAST(:gateway_payment_ref AS TEXT), gateway_payment_ref),
        verification_signature = COALESCE(CAST(:signature AS TEXT), verification_signature),
        updated_at = NOW()
    WHERE id = :id AND outcome = 'IN_FLIGHT'
    RETURNING id
""")

_FAIL_IN_FLIGHT_SQL = text("""
    UPDATE payment_attempts
    SET outcome = 'FAILED', failure_reason = :reason, updated_at = NOW()
    WHERE order_id = ANY(string_to_array(CAST(:order_ids_csv AS TEXT), ','))
      AND outcome = 'IN_FLIGHT'
""")


def _row_to_attempt(row: Any) -> PaymentAttempt:
    return PaymentAttempt(
        id=row.id,
        order_id=row.order_id,
        user_id=row.user_id,
        client_attempt_id=row.client_attempt_id,
        method=row.method,
        amount=row.amount,
        currency=row.currency,
        gateway_order_ref=row.gateway_order_ref,
        gateway_payment_ref=row.gateway_payment_ref,
        verification_signature=row.verification_signature,
        outcome=row.outcome,
        failure_reason=row.failure_reason,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class AttemptRepository:
    """Concrete implementation of AttemptRepositoryProtocol using raw SQL."""

    async def insert(self, db: AsyncSession, attempt: PaymentAttempt) -> None:
        await db.execute(
            _INSERT_SQL,
            {
                "id": attempt.id,
                "order_id": attempt.order_id,
                "user_id": attempt.user_id,
                "client_attempt_id": attempt.client_attempt_id,
                "method": attempt.method,
                "amount": attempt.amount,
                "currency": attempt.currency,
                "outcome": attempt.outcome,
                "failure_reason": attempt.failure_reason,
            },
        )

    async def get_by_client_id(
        self, db: AsyncSession, order_id: str, client_attempt_id: str
    ) -> PaymentAttempt | None:
        result = await db.execute(
            _GET_BY_CLIENT_ID_SQL,
            {"order_id": order_id, "client_attempt_id": client_attempt_id},
        )
        row = result.fetchone()
        return _row_to_attempt(row) if row else None

    async def get_by_gateway_order_ref(
        self, db: AsyncSession, gateway_order_ref: str
    ) -> PaymentAttempt | None:
        result = await db.execute(
            _GET_BY_GATEWAY_REF_SQL, {"gateway_order_ref": gateway_order_ref}
        )
        row = result.fetchone()
        return _row_to_attempt(row) if row else None

    async def get_in_flight(self, db: AsyncSession, order_id: str) -> PaymentAttempt | None:
        result = await db.execute(_GET_IN_FLIGHT_SQL, {"order_id": order_id})
        row = result.fetchone()
        return _row_to_attempt(row) if row else None

    async def list_for_order(self, db: AsyncSession, order_id: str) -> list[PaymentAttempt]:
        result = await db.execute(_LIST_FOR_ORDER_SQL, {"order_id": order_id})
        return [_row_to_attempt(row) for row in result.fetchall()]

    async def set_gateway_order_ref(
        self, db: AsyncSession, attempt_id: str, gateway_order_ref: str
    ) -> None:
        await db.execute(
            _SET_GATEWAY_REF_SQL, {"id": attempt_id, "gateway_order_ref": gateway_order_ref}
        )

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
        result = await db.execute(
            _CLOSE_SQL,
            {
                "id": attempt_id,
                "outcome": outcome,
                "failure_reason": failure_reason,
                "gateway_payment_ref": gateway_payment_ref,
                "signature": verification_signature,
            },
        )
        return result.fetchone() is not None

    async def fail_in_flight_for_orders(
        self, db: AsyncSession, order_ids: list[str], reason: str
    ) -> int:
        if not order_ids:
            return 0
        result = await db.execute(
            _FAIL_IN_FLIGHT_SQL, {"order_ids_csv": ",".join(order_ids), "reason": reason}
        )
        return result.rowcount or 0
