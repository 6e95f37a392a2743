"""Pydantic schemas for the order API."""

from typing import Literal

from pydantic import BaseModel, field_validator

from src.ck_common.datetime_utils import to_iso
from src.ck_common.money import paise_to_display
from src.ck_order.domain.models import Order, OrderLine


class CreateOrderRequest(BaseModel):
    address_id: str
    payment_method: Literal["GATEWAY", "WALLET", "CASH_ON_DELIVERY"]

    @field_validator("address_id")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("address_id must not be blank")
        return v.strip()


class CreateOrderResponse(BaseModel):
    order_id: str
    grand_total_paise: int
    grand_total_display: str
    status: str


class OrderLineResponse(BaseModel):
    product_id: str
    product_name: str
    unit_price_paise: int
    quantity: int
    discount_bps: int
    line_total_paise: int
    line_discount_paise: int

    @classmethod
    def from_domain(cls, line: OrderLine) -> "OrderLineResponse":
        return cls(
            product_id=line.product_id,
            product_name=line.product_name,
            unit_price_paise=line.unit_price,
            quantity=line.quantity,
            discount_bps=line.discount_bps,
            line_total_paise=line.line_total,
            line_discount_paise=line.line_discount,
        )


class OrderResponse(BaseModel):
    id: str
    tier: str
    address_id: str
    payment_method: str
    items: list[OrderLineResponse]
    subtotal_paise: int
    total_discount_paise: int
    payable_subtotal_paise: int
    delivery_charge_paise: int
    grand_total_paise: int
    grand_total_display: str
    currency: str
    status: str
    payment_status: str
    flagged_for_audit: bool
    created_at: str | None = None
    updated_at: str | None = None
    settled_at: str | None = None

    @classmethod
    def from_domain(cls, order: Order) -> "OrderResponse":
        return cls(
            id=order.id,
            tier=order.tier,
            address_id=order.address_id,
            payment_method=order.payment_method,
            items=[OrderLineResponse.from_domain(line) for line in order.lines],
            subtotal_paise=order.subtotal,
            total_discount_paise=order.total_discount,
            payable_subtotal_paise=order.payable_subtotal,
            delivery_charge_paise=order.delivery_charge,
            grand_total_paise=order.grand_total,
            grand_total_display=paise_to_display(order.grand_total),
            currency=order.currency,
            status=order.status,
            payment_status=order.payment_status,
            flagged_for_audit=order.flagged_for_audit,
            created_at=to_iso(order.created_at),
            updated_at=to_iso(order.updated_at),
            settled_at=to_iso(order.settled_at),
        )


class OrderListResponse(BaseModel):
    items: list[OrderResponse]
    next_cursor: str | None
    has_more: bool
