"""WalletApplicationService: read side of the wallet.

Debits happen inside the payment orchestrator's transaction, not here.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from src.ck_common.errors import WalletNotFoundError
from src.ck_wallet.application.schemas import (
    BalanceResponse,
    WalletLedgerResponse,
    WalletTransactionItem,
    cursor_decode,
    cursor_encode,
)
from src.ck_wallet.domain.repository import WalletRepositoryProtocol
from src.ck_wallet.infrastructure.persistence import WalletRepository


class WalletApplicationService:
    def __init__(self, repo: WalletRepositoryProtocol | None = None) -> None:
        self._repo: WalletRepositoryProtocol = repo or WalletRepository()

    async def get_balance(self, db: AsyncSession, user_id: str) -> BalanceResponse:
        wallet = await self._repo.get_wallet(db, user_id)
        if wallet is None:
            raise WalletNotFoundError(user_id)
        return BalanceResponse.from_wallet(wallet)

    async def list_ledger(
        self,
        db: AsyncSession,
        user_id: str,
        cursor: str | None,
        limit: int,
        entry_type: str | None,
    ) -> WalletLedgerResponse:
        cursor_id = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        entries = await self._repo.list_transactions(
            db, user_id, cursor_id, limit + 1, entry_type
        )
        has_more = len(entries) > limit
        page = entries[:limit]
        next_cursor = cursor_encode(page[-1].id) if has_more and page else None
        return WalletLedgerResponse(
            items=[WalletTransactionItem.from_domain(e) for e in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )
