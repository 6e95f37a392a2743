"""Global enums: must match DB CHECK constraints exactly (see alembic/versions)."""

from enum import Enum


class UserTier(str, Enum):
    """Decides which per-product discount column applies to the caller."""
    STANDARD = "STANDARD"
    TRAINEE_ENTREPRENEUR = "TRAINEE_ENTREPRENEUR"
    ENTREPRENEUR = "ENTREPRENEUR"


class PaymentMethod(str, Enum):
    GATEWAY = "GATEWAY"
    WALLET = "WALLET"
    CASH_ON_DELIVERY = "CASH_ON_DELIVERY"


class OrderStatus(str, Enum):
    CREATED = "CREATED"
    AWAITING_GATEWAY = "AWAITING_GATEWAY"
    VERIFYING = "VERIFYING"
    DEBITING = "DEBITING"
    SETTLED = "SETTLED"
    FAILED = "FAILED"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class AttemptOutcome(str, Enum):
    IN_FLIGHT = "IN_FLIGHT"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class WalletEntryType(str, Enum):
    ORDER_DEBIT = "ORDER_DEBIT"
    CREDIT = "CREDIT"
    REFUND = "REFUND"


class SettlementEventType(str, Enum):
    ORDER_SETTLED = "ORDER_SETTLED"
    PAYMENT_FAILED = "PAYMENT_FAILED"
