"""Pydantic schemas for the pricing API.

Every amount is exposed twice: exact paise and a display string.
"""

from pydantic import BaseModel

from src.ck_common.money import paise_to_display
from src.ck_pricing.domain.models import DeliveryFeeRule, PricedCart, PricedLine


class QuoteLineItem(BaseModel):
    product_id: str
    product_name: str
    unit_price_paise: int
    quantity: int
    discount_bps: int
    line_total_paise: int
    line_discount_paise: int
    line_total_display: str

    @classmethod
    def from_domain(cls, line: PricedLine) -> "QuoteLineItem":
        return cls(
            product_id=line.product_id,
            product_name=line.product_name,
            unit_price_paise=line.unit_price,
            quantity=line.quantity,
            discount_bps=line.discount_bps,
            line_total_paise=line.line_total,
            line_discount_paise=line.line_discount,
            line_total_display=paise_to_display(line.line_total),
        )


class QuoteResponse(BaseModel):
    tier: str
    items: list[QuoteLineItem]
    total_quantity: int
    subtotal_paise: int
    total_discount_paise: int
    payable_subtotal_paise: int
    delivery_charge_paise: int
    grand_total_paise: int
    grand_total_display: str
    free_delivery: bool
    applied_rule_id: str | None
    unavailable_product_ids: list[str] = []

    @classmethod
    def from_priced(
        cls, priced: PricedCart, unavailable: tuple[str, ...] = ()
    ) -> "QuoteResponse":
        return cls(
            tier=priced.tier.value,
            items=[QuoteLineItem.from_domain(pl) for pl in priced.lines],
            total_quantity=sum(pl.quantity for pl in priced.lines),
            subtotal_paise=priced.subtotal,
            total_discount_paise=priced.total_discount,
            payable_subtotal_paise=priced.payable_subtotal,
            delivery_charge_paise=priced.delivery_charge,
            grand_total_paise=priced.grand_total,
            grand_total_display=paise_to_display(priced.grand_total),
            free_delivery=priced.delivery_charge == 0,
            applied_rule_id=priced.applied_rule_id,
            unavailable_product_ids=list(unavailable),
        )


class DeliveryRuleItem(BaseModel):
    id: str
    min_amount_paise: int
    max_amount_paise: int
    charge_paise: int
    charge_display: str

    @classmethod
    def from_domain(cls, rule: DeliveryFeeRule) -> "DeliveryRuleItem":
        return cls(
            id=rule.id,
            min_amount_paise=rule.min_amount,
            max_amount_paise=rule.max_amount,
            charge_paise=rule.charge,
            charge_display=paise_to_display(rule.charge),
        )
