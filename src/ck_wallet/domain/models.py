"""Domain models for ck_wallet: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Wallet:
    id: str
    user_id: str
    available_balance: int   # paise, spendable at checkout
    locked_balance: int      # paise, released by the storefront's unlock rule
    version: int
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def total_balance(self) -> int:
        return self.available_balance + self.locked_balance


@dataclass
class WalletTransaction:
    id: int                          # BIGSERIAL
    user_id: str
    entry_type: str                  # WalletEntryType value
    amount: int                      # paise, positive=credit negative=debit
    balance_after: int               # paise, available_balance snapshot after op
    reference_type: str | None = None
    reference_id: str | None = None
    description: str | None = None
    created_at: datetime | None = None
