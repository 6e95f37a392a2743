"""Integer arithmetic utilities for paise-based pricing.

All prices, charges, and balances are int paise (1 rupee = 100 paise).
Discount percents carry two decimal places and are handled as integer basis
points (10.00 % = 1000 bps). No float anywhere on the money path.
"""

from decimal import Decimal, InvalidOperation

BPS_DENOMINATOR = 10_000


def to_paise(amount: Decimal | str | int) -> int:
    """Convert a rupee amount with at most two decimal places to paise.

    "12.50" -> 1250. Raises ValueError on more than two decimal places.
    """
    try:
        value = Decimal(str(amount))
    except InvalidOperation:
        raise ValueError(f"Not a monetary amount: {amount!r}") from None
    paise = value * 100
    if paise != paise.to_integral_value():
        raise ValueError(f"Amount has more than two decimal places: {amount}")
    return int(paise)


def percent_to_bps(percent: Decimal | str | int | None) -> int:
    """Convert a two-decimal percent ("10.00") to basis points (1000).

    None and negative percents become 0: a discount never raises a price.
    """
    if percent is None:
        return 0
    bps = Decimal(str(percent)) * 100
    if bps != bps.to_integral_value():
        raise ValueError(f"Percent has more than two decimal places: {percent}")
    return max(0, int(bps))


def bps_to_paise(weighted: int) -> int:
    """Round an exact ``amount * bps`` product to paise, halves up. Never negative."""
    if weighted <= 0:
        return 0
    return (weighted + BPS_DENOMINATOR // 2) // BPS_DENOMINATOR


def apply_bps(amount: int, bps: int) -> int:
    """amount * bps / 10000, rounded half up to the paise. Never negative."""
    if amount <= 0 or bps <= 0:
        return 0
    return bps_to_paise(amount * bps)


def paise_to_display(paise: int) -> str:
    """Convert paise to display string: 94000 -> '₹940.00', -1250 -> '-₹12.50'."""
    if paise < 0:
        abs_paise = -paise
        return f"-₹{abs_paise // 100:,}.{abs_paise % 100:02d}"
    return f"₹{paise // 100:,}.{paise % 100:02d}"
