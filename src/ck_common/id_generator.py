"""Time-ordered string IDs for orders and payment attempts.

IDs sort by creation time, which the order history cursor relies on
(``WHERE id < :cursor ORDER BY id DESC``). Every ID has the same width so
lexical order equals numeric order.
"""

import os
import threading
import time

_EPOCH_MS = 1_760_000_000_000  # 2025-10-09 approx
_WORKER_BITS = 10
_SEQUENCE_BITS = 12
_MAX_SEQUENCE = (1 << _SEQUENCE_BITS) - 1
_WIDTH = 19  # digits in a 63-bit integer


class OrderedIdGenerator:
    """Snowflake layout: 41 bits ms timestamp | 10 bits worker | 12 bits sequence."""

    def __init__(self, worker_id: int | None = None) -> None:
        if worker_id is None:
            worker_id = os.getpid() & ((1 << _WORKER_BITS) - 1)
        if not (0 <= worker_id < (1 << _WORKER_BITS)):
            raise ValueError(f"worker_id must be 0-{(1 << _WORKER_BITS) - 1}")
        self._worker_id = worker_id
        self._sequence = 0
        self._last_ms = -1
        self._lock = threading.Lock()

    def next_int(self) -> int:
        with self._lock:
            now_ms = int(time.time() * 1000)
            if now_ms <= self._last_ms:
                # same millisecond, or the clock stepped back: keep counting on the last tick
                now_ms = self._last_ms
                self._sequence = (self._sequence + 1) & _MAX_SEQUENCE
                if self._sequence == 0:
                    now_ms += 1
            else:
                self._sequence = 0
            self._last_ms = now_ms
            return (
                ((now_ms - _EPOCH_MS) << (_WORKER_BITS + _SEQUENCE_BITS))
                | (self._worker_id << _SEQUENCE_BITS)
                | self._sequence
            )

    def next_id(self, prefix: str = "") -> str:
        return f"{prefix}{self.next_int():0{_WIDTH}d}"


_default_generator = OrderedIdGenerator()


def new_order_id() -> str:
    return _default_generator.next_id("ord_")


def new_attempt_id() -> str:
    return _default_generator.next_id("pa_")
