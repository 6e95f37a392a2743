"""WalletRepository: concrete implementation of WalletRepositoryProtocol.

The order debit is one conditional UPDATE ... RETURNING: the balance check and
the decrement happen in the same statement, so two concurrent checkouts
against one wallet cannot both pass. Zero rows back means insufficient funds.

The ledger row for a debit is keyed by (reference_type='PAYMENT_ATTEMPT',
reference_id=attempt id, entry_type) with a UNIQUE constraint, so an attempt
can never be debited twice even if application-level idempotency is bypassed.

Transaction ownership: the CALLER opens and commits the transaction.
"""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.ck_common.enums import WalletEntryType
from src.ck_common.errors import InsufficientFundsError, InternalError
from src.ck_wallet.domain.models import Wallet, WalletTransaction

_WALLET_COLUMNS = "id, user_id, available_balance, locked_balance, version, created_at, updated_at"

_GET_WALLET_SQL = text(f"""
    SELECT {_WALLET_COLUMNS}
    FROM wallets
    WHERE user_id = :user_id
""")

_DEBIT_SQL = text(f"""
    UPDATE wallets
    SET available_balance = available_balance - :amount,
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id AND available_balance >= :amount
    RETURNING {_WALLET_COLUMNS}
""")

_INSERT_TX_SQL = text("""
    INSERT INTO wallet_transactions
        (user_id, entry_type, amount, balance_after,
         reference_type, reference_id, description)
    VALUES
        (:user_id, :entry_type, :amount, :balance_after,
         :reference_type, :reference_id, :description)
    RETURNING id, user_id, entry_type, amount, balance_after,
              reference_type, reference_id, description, created_at
""")

_LIST_TX_SQL = text("""
    SELECT id, user_id, entry_type, amount, balance_after,
           reference_type, reference_id, description, created_at
    FROM wallet_transactions
    WHERE user_id = :user_id
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < :cursor_id)
      AND (CAST(:entry_type AS TEXT) IS NULL OR entry_type = :entry_type)
    ORDER BY id DESC
    LIMIT :limit
""")


def _row_to_wallet(row: Any) -> Wallet:
    return Wallet(
        id=str(row.id),
        user_id=row.user_id,
        available_balance=row.available_balance,
        locked_balance=row.locked_balance,
        version=row.version,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_tx(row: Any) -> WalletTransaction:
    return WalletTransaction(
        id=row.id,
        user_id=row.user_id,
        entry_type=row.entry_type,
        amount=row.amount,
        balance_after=row.balance_after,
        reference_type=row.reference_type,
        reference_id=row.reference_id,
        description=row.description,
        created_at=row.created_at,
    )


class WalletRepository:
    """Concrete repository: every balance mutation atomic at the SQL level."""

    async def get_wallet(self, db: AsyncSession, user_id: str) -> Wallet | None:
        result = await db.execute(_GET_WALLET_SQL, {"user_id": user_id})
        row = result.fetchone()
        return _row_to_wallet(row) if row else None

    async def debit_for_order(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        order_id: str,
        attempt_id: str,
    ) -> tuple[Wallet, WalletTransaction]:
        result = await db.execute(_DEBIT_SQL, {"user_id": user_id, "amount": amount})
        row = result.fetchone()
        if row is None:
            current = await self.get_wallet(db, user_id)
            available = current.available_balance if current else 0
            raise InsufficientFundsError(amount, available)
        wallet = _row_to_wallet(row)
        tx_result = await db.execute(
            _INSERT_TX_SQL,
            {
                "user_id": user_id,
                "entry_type": WalletEntryType.ORDER_DEBIT.value,
                "amount": -amount,
                "balance_after": wallet.available_balance,
                "reference_type": "PAYMENT_ATTEMPT",
                "reference_id": attempt_id,
                "description": f"Payment for order {order_id}",
            },
        )
        tx_row = tx_result.fetchone()
        if tx_row is None:
            raise InternalError("Wallet ledger insert returned no rows")
        return wallet, _row_to_tx(tx_row)

    async def list_transactions(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        entry_type: str | None,
    ) -> list[WalletTransaction]:
        result = await db.execute(
            _LIST_TX_SQL,
            {
                "user_id": user_id,
                "cursor_id": cursor_id,
                "entry_type": entry_type,
                "limit": limit,
            },
        )
        return [_row_to_tx(row) for row in result.fetchall()]
