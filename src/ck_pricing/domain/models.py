"""Domain models for ck_pricing: frozen dataclasses, no SQLAlchemy dependency.

All amounts are int paise; discounts are int basis points.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field

from src.ck_common.enums import UserTier


@dataclass(frozen=True)
class CartLine:
    product_id: str
    unit_price: int                     # paise
    quantity: int
    trainee_discount_bps: int = 0       # TRAINEE_ENTREPRENEUR discount
    entrepreneur_discount_bps: int = 0  # ENTREPRENEUR discount
    product_name: str = ""

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise ValueError(f"quantity must be >= 1, got {self.quantity} for {self.product_id}")
        if self.unit_price < 0:
            raise ValueError(f"unit_price must be >= 0, got {self.unit_price} for {self.product_id}")

    def discount_bps_for(self, tier: UserTier) -> int:
        if tier is UserTier.ENTREPRENEUR:
            return max(0, self.entrepreneur_discount_bps)
        if tier is UserTier.TRAINEE_ENTREPRENEUR:
            return max(0, self.trainee_discount_bps)
        return 0


@dataclass(frozen=True)
class CartSnapshot:
    """Cart contents captured for one pricing computation. Never mutated."""

    lines: tuple[CartLine, ...] = ()
    unavailable: tuple[str, ...] = ()   # product ids in the cart that can no longer be sold

    @classmethod
    def of(
        cls, lines: Iterable[CartLine], unavailable: Iterable[str] = ()
    ) -> "CartSnapshot":
        return cls(lines=tuple(lines), unavailable=tuple(unavailable))

    @property
    def is_empty(self) -> bool:
        return len(self.lines) == 0

    @property
    def total_quantity(self) -> int:
        return sum(line.quantity for line in self.lines)


@dataclass(frozen=True)
class DeliveryFeeRule:
    id: str
    min_amount: int   # paise, inclusive
    max_amount: int   # paise, inclusive
    charge: int       # paise
    active: bool = True

    def matches(self, amount: int) -> bool:
        return self.active and self.min_amount <= amount <= self.max_amount


@dataclass(frozen=True)
class PricedLine:
    product_id: str
    product_name: str
    unit_price: int
    quantity: int
    discount_bps: int
    line_total: int
    line_discount: int


@dataclass(frozen=True)
class PricedCart:
    tier: UserTier
    lines: tuple[PricedLine, ...]
    subtotal: int
    total_discount: int
    payable_subtotal: int
    delivery_charge: int
    grand_total: int
    applied_rule_id: str | None = field(default=None)
