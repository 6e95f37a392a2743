"""Per-order asyncio locks shared by every payment path in this process."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class OrderLockRegistry:
    """One lock per order id. Serializes start/verify for an order inside one
    worker; the status compare-and-swap covers other workers.

    Entries are reference counted and dropped when the last holder or waiter
    leaves, so the map only holds orders with a payment call in progress.
    """

    def __init__(self) -> None:
        self._locks: dict[str, tuple[asyncio.Lock, int]] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def for_order(self, order_id: str) -> AsyncIterator[None]:
        lock, users = self._locks.get(order_id, (None, 0))
        if lock is None:
            lock = asyncio.Lock()
        self._locks[order_id] = (lock, users + 1)
        try:
            async with lock:
                yield
        finally:
            _, users = self._locks[order_id]
            if users <= 1:
                del self._locks[order_id]
            else:
                self._locks[order_id] = (lock, users - 1)


_registry: OrderLockRegistry | None = None


def get_order_locks() -> OrderLockRegistry:
    global _registry  # noqa: PLW0603
    if _registry is None:
        _registry = OrderLockRegistry()
    return _registry
