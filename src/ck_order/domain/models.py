"""Order domain model: pure dataclasses, no SQLAlchemy dependency.

An Order owns a frozen copy of its priced lines and totals. Nothing written
after creation (catalog edits, rule edits, tier changes) reaches these fields.
"""

from dataclasses import dataclass, field
from datetime import datetime

from src.ck_common.enums import OrderStatus


@dataclass(frozen=True)
class OrderLine:
    product_id: str
    product_name: str
    unit_price: int       # paise at order time
    quantity: int
    discount_bps: int
    line_total: int
    line_discount: int


@dataclass
class Order:
    id: str
    user_id: str
    tier: str
    address_id: str
    payment_method: str        # PaymentMethod value
    subtotal: int              # paise
    total_discount: int
    payable_subtotal: int
    delivery_charge: int
    grand_total: int           # frozen; the only amount ever sent to the gateway
    currency: str = "INR"
    status: str = OrderStatus.CREATED.value
    payment_status: str = "PENDING"
    flagged_for_audit: bool = False
    lines: tuple[OrderLine, ...] = field(default_factory=tuple)
    created_at: datetime | None = None
    updated_at: datetime | None = None
    settled_at: datetime | None = None

    @property
    def is_settled(self) -> bool:
        return self.status == OrderStatus.SETTLED.value

    @property
    def is_awaiting_gateway(self) -> bool:
        return self.status in (
            OrderStatus.AWAITING_GATEWAY.value,
            OrderStatus.VERIFYING.value,
        )
