"""OrderAssembler: turns the caller's current cart into a persisted Order.

Validation happens before anything is written: an input error leaves no row
behind. The order row and its lines are inserted in one transaction with
status CREATED / payment_status PENDING, and the priced totals are frozen.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.ck_cart.domain.repository import AddressDirectoryProtocol, CartRepositoryProtocol
from src.ck_cart.infrastructure.persistence import AddressDirectory, CartRepository
from src.ck_common.database import unit_of_work
from src.ck_common.datetime_utils import utc_now
from src.ck_common.enums import OrderStatus, PaymentMethod, PaymentStatus
from src.ck_common.errors import (
    AddressNotFoundError,
    EmptyCartError,
    InsufficientFundsError,
    ProductUnavailableError,
)
from src.ck_common.id_generator import new_order_id
from src.ck_common.money import paise_to_display
from src.ck_identity.auth.context import CallerContext
from src.ck_order.application.schemas import CreateOrderResponse
from src.ck_order.domain.models import Order, OrderLine
from src.ck_order.domain.repository import OrderRepositoryProtocol
from src.ck_order.infrastructure.persistence import OrderRepository
from src.ck_pricing.domain.engine import price_cart
from src.ck_pricing.domain.models import PricedCart
from src.ck_pricing.domain.repository import DeliveryRuleRepositoryProtocol
from src.ck_pricing.infrastructure.persistence import DeliveryRuleRepository
from src.ck_wallet.domain.repository import WalletRepositoryProtocol
from src.ck_wallet.infrastructure.persistence import WalletRepository

logger = logging.getLogger(__name__)


def _order_from_priced(
    caller: CallerContext,
    address_id: str,
    method: PaymentMethod,
    priced: PricedCart,
    currency: str,
) -> Order:
    now = utc_now()
    return Order(
        id=new_order_id(),
        user_id=caller.user_id,
        tier=priced.tier.value,
        address_id=address_id,
        payment_method=method.value,
        subtotal=priced.subtotal,
        total_discount=priced.total_discount,
        payable_subtotal=priced.payable_subtotal,
        delivery_charge=priced.delivery_charge,
        grand_total=priced.grand_total,
        currency=currency,
        status=OrderStatus.CREATED.value,
        payment_status=PaymentStatus.PENDING.value,
        lines=tuple(
            OrderLine(
                product_id=pl.product_id,
                product_name=pl.product_name,
                unit_price=pl.unit_price,
                quantity=pl.quantity,
                discount_bps=pl.discount_bps,
                line_total=pl.line_total,
                line_discount=pl.line_discount,
            )
            for pl in priced.lines
        ),
        created_at=now,
        updated_at=now,
    )


class OrderAssembler:
    def __init__(
        self,
        order_repo: OrderRepositoryProtocol | None = None,
        cart_repo: CartRepositoryProtocol | None = None,
        address_directory: AddressDirectoryProtocol | None = None,
        rule_repo: DeliveryRuleRepositoryProtocol | None = None,
        wallet_repo: WalletRepositoryProtocol | None = None,
        currency: str = "INR",
    ) -> None:
        self._order_repo: OrderRepositoryProtocol = order_repo or OrderRepository()
        self._cart_repo: CartRepositoryProtocol = cart_repo or CartRepository()
        self._addresses: AddressDirectoryProtocol = address_directory or AddressDirectory()
        self._rule_repo: DeliveryRuleRepositoryProtocol = rule_repo or DeliveryRuleRepository()
        self._wallet_repo: WalletRepositoryProtocol = wallet_repo or WalletRepository()
        self._currency = currency

    async def create_order(
        self,
        db: AsyncSession,
        caller: CallerContext,
        address_id: str,
        payment_method: PaymentMethod,
    ) -> CreateOrderResponse:
        snapshot = await self._cart_repo.load_snapshot(db, caller.user_id)
        if snapshot.unavailable:
            raise ProductUnavailableError(snapshot.unavailable)
        if snapshot.is_empty:
            raise EmptyCartError()
        if not await self._addresses.address_exists(db, caller.user_id, address_id):
            raise AddressNotFoundError(address_id)

        rules = await self._rule_repo.list_active_rules(db)
        priced = price_cart(snapshot, caller.tier, rules)

        if payment_method is PaymentMethod.WALLET:
            # Optimistic only; the conditional debit at payment time is authoritative
            wallet = await self._wallet_repo.get_wallet(db, caller.user_id)
            available = wallet.available_balance if wallet else 0
            if available < priced.grand_total:
                raise InsufficientFundsError(priced.grand_total, available)

        order = _order_from_priced(caller, address_id, payment_method, priced, self._currency)
        async with unit_of_work(db):
            await self._order_repo.save(db, order)

        logger.info(
            "order created: id=%s user=%s method=%s grand_total=%d",
            order.id, order.user_id, order.payment_method, order.grand_total,
        )
        return CreateOrderResponse(
            order_id=order.id,
            grand_total_paise=order.grand_total,
            grand_total_display=paise_to_display(order.grand_total),
            status=order.status,
        )
