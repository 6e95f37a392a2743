"""Pricing engine: cart snapshot + tier + delivery rules → PricedCart.

Pure function, no I/O, safe to call repeatedly and concurrently.

    line_total       = unit_price * quantity
    line_discount    = line_total * discount_bps / 10000, rounded half up (display)
    subtotal         = Σ line_total
    total_discount   = min(round_half_up(Σ line_total * discount_bps / 10000), subtotal)
    payable_subtotal = max(0, subtotal - total_discount)
    delivery_charge  = tightest matching bracket, 0 when none matches
    grand_total      = payable_subtotal + delivery_charge
"""

from collections.abc import Iterable

from src.ck_common.enums import UserTier
from src.ck_common.money import apply_bps, bps_to_paise
from src.ck_pricing.domain.delivery import resolve_delivery_charge
from src.ck_pricing.domain.models import (
    CartSnapshot,
    DeliveryFeeRule,
    PricedCart,
    PricedLine,
)


def price_cart(
    snapshot: CartSnapshot,
    tier: UserTier,
    rules: Iterable[DeliveryFeeRule],
) -> PricedCart:
    priced_lines: list[PricedLine] = []
    weighted_discount = 0
    for line in snapshot.lines:
        line_total = line.unit_price * line.quantity
        bps = line.discount_bps_for(tier)
        weighted_discount += line_total * bps
        priced_lines.append(
            PricedLine(
                product_id=line.product_id,
                product_name=line.product_name,
                unit_price=line.unit_price,
                quantity=line.quantity,
                discount_bps=bps,
                line_total=line_total,
                line_discount=apply_bps(line_total, bps),
            )
        )

    subtotal = sum(pl.line_total for pl in priced_lines)
    # exact sum, rounded once; per-line figures may not add up to it
    total_discount = min(bps_to_paise(weighted_discount), subtotal)
    payable_subtotal = max(0, subtotal - total_discount)
    delivery_charge, rule = resolve_delivery_charge(payable_subtotal, rules)

    return PricedCart(
        tier=tier,
        lines=tuple(priced_lines),
        subtotal=subtotal,
        total_discount=total_discount,
        payable_subtotal=payable_subtotal,
        delivery_charge=delivery_charge,
        grand_total=payable_subtotal + delivery_charge,
        applied_rule_id=rule.id if rule else None,
    )
