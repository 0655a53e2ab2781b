"""Fixed-window request counter backed by Redis."""

from __future__ import annotations

import time

import redis.asyncio as aioredis

KEY_PREFIX = "sqlsandbox:rate"


def window_key(scope: str, window: int, now: float | None = None) -> str:
    """Counter key for the window containing *now*."""
    bucket = int(time.time() if now is None else now) // window
    return f"{KEY_PREFIX}:{scope}:{bucket}"


async def hit(client: aioredis.Redis, scope: str, *, limit: int, window: int) -> bool:
    """Count one request against *scope*.  Returns False once *limit* is exceeded."""
    key = window_key(scope, window)
    async with client.pipeline(transaction=True) as pipe:
        pipe.incr(key)
        pipe.expire(key, window)
        count, _ = await pipe.execute()
    return int(count) <= limit
