"""Pydantic schemas and cursor utilities for the wallet view."""

import base64
import json

from pydantic import BaseModel

from src.ck_common.datetime_utils import to_iso
from src.ck_common.money import paise_to_display
from src.ck_wallet.domain.models import Wallet, WalletTransaction


def cursor_encode(last_id: int) -> str:
    """Encode a BIGINT primary key into an opaque Base64 cursor string."""
    payload = json.dumps({"id": last_id})
    return base64.urlsafe_b64encode(payload.encode()).decode()


def cursor_decode(cursor: str | None) -> int | None:
    """Decode a cursor string back to the last seen id. Malformed cursors restart paging."""
    if not cursor:
        return None
    try:
        payload = json.loads(base64.urlsafe_b64decode(cursor.encode()).decode())
        return int(payload["id"])
    except (ValueError, KeyError, TypeError):
        return None


class BalanceResponse(BaseModel):
    user_id: str
    available_balance_paise: int
    available_balance_display: str
    locked_balance_paise: int
    locked_balance_display: str
    total_balance_paise: int
    total_balance_display: str

    @classmethod
    def from_wallet(cls, wallet: Wallet) -> "BalanceResponse":
        return cls(
            user_id=wallet.user_id,
            available_balance_paise=wallet.available_balance,
            available_balance_display=paise_to_display(wallet.available_balance),
            locked_balance_paise=wallet.locked_balance,
            locked_balance_display=paise_to_display(wallet.locked_balance),
            total_balance_paise=wallet.total_balance,
            total_balance_display=paise_to_display(wallet.total_balance),
        )


class WalletTransactionItem(BaseModel):
    id: int
    entry_type: str
    amount_paise: int
    amount_display: str
    balance_after_paise: int
    reference_type: str | None
    reference_id: str | None
    description: str | None
    created_at: str | None

    @classmethod
    def from_domain(cls, tx: WalletTransaction) -> "WalletTransactionItem":
        return cls(
            id=tx.id,
            entry_type=tx.entry_type,
            amount_paise=tx.amount,
            amount_display=paise_to_display(tx.amount),
            balance_after_paise=tx.balance_after,
            reference_type=tx.reference_type,
            reference_id=tx.reference_id,
            description=tx.description,
            created_at=to_iso(tx.created_at),
        )


class WalletLedgerResponse(BaseModel):
    items: list[WalletTransactionItem]
    next_cursor: str | None
    has_more: bool
