"""WalletRepository Protocol: the persistence contract the wallet services depend on.

Unit tests inject a mock or an in-memory fake that conforms to this Protocol.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.ck_wallet.domain.models import Wallet, WalletTransaction


class WalletRepositoryProtocol(Protocol):
    async def get_wallet(self, db: AsyncSession, user_id: str) -> Wallet | None: ...

    async def debit_for_order(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        order_id: str,
        attempt_id: str,
    ) -> tuple[Wallet, WalletTransaction]: ...

    async def list_transactions(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        entry_type: str | None,
    ) -> list[WalletTransaction]: ...
