"""Redis access: rate-limit counters and settlement event fan-out only.

NOT used for balances or order state (those live in PostgreSQL).
"""

import json
from typing import Any

import redis.asyncio as aioredis

from config.settings import settings

_redis_pool: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    """Get or create the shared connection pool."""
    global _redis_pool  # noqa: PLW0603
    if _redis_pool is None:
        _redis_pool = aioredis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
        )
    return _redis_pool


async def close_redis() -> None:
    global _redis_pool  # noqa: PLW0603
    if _redis_pool is not None:
        await _redis_pool.aclose()
        _redis_pool = None


async def publish_json(channel: str, payload: dict[str, Any]) -> int:
    """Publish one JSON message. Returns the number of subscribers reached."""
    redis = await get_redis()
    return int(await redis.publish(channel, json.dumps(payload, default=str)))


async def incr_fixed_window(key: str, window_seconds: int) -> int:
    """INCR a counter that expires ``window_seconds`` after its first hit."""
    redis = await get_redis()
    count = int(await redis.incr(key))
    if count == 1:
        await redis.expire(key, window_seconds)
    return count
