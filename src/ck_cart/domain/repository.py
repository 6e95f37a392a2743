"""Collaborator Protocols for the storefront's cart and address book.

Checkout only reads the cart (to capture a snapshot), clears it on
settlement, and checks that an address belongs to the caller. Cart and address
CRUD live in the storefront.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.ck_pricing.domain.models import CartSnapshot


class CartRepositoryProtocol(Protocol):
    async def load_snapshot(self, db: AsyncSession, user_id: str) -> CartSnapshot: ...

    async def clear(self, db: AsyncSession, user_id: str) -> int: ...


class AddressDirectoryProtocol(Protocol):
    async def address_exists(
        self, db: AsyncSession, user_id: str, address_id: str
    ) -> bool: ...
