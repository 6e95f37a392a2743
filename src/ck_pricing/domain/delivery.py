"""Delivery bracket resolution.

A rule table is unordered input. Of the active rules whose inclusive
[min_amount, max_amount] range contains the payable subtotal, the tightest
bracket wins: smallest max_amount. Ties on max_amount go to the larger
min_amount, then the lower charge, then the rule id, so the result never
depends on the order the rules were listed in.
No match means free delivery.
"""

from collections.abc import Iterable

from src.ck_pricing.domain.models import DeliveryFeeRule


def _tightness_key(rule: DeliveryFeeRule) -> tuple[int, int, int, str]:
    return (rule.max_amount, -rule.min_amount, rule.charge, rule.id)


def choose_delivery_rule(
    payable_subtotal: int, rules: Iterable[DeliveryFeeRule]
) -> DeliveryFeeRule | None:
    matches = [r for r in rules if r.matches(payable_subtotal)]
    if not matches:
        return None
    return min(matches, key=_tightness_key)


def resolve_delivery_charge(
    payable_subtotal: int, rules: Iterable[DeliveryFeeRule]
) -> tuple[int, DeliveryFeeRule | None]:
    """Return (charge, chosen rule). (0, None) when no bracket applies."""
    rule = choose_delivery_rule(payable_subtotal, rules)
    if rule is None:
        return 0, None
    return max(0, rule.charge), rule
