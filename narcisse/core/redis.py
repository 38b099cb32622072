"""Process-wide async Redis client (rate limiting, availability cache, planning notifications).

`get_redis()` returns None when no URL is configured or the server cannot be
reached; every caller then falls back to process-local state.
"""

from __future__ import annotations

import logging

from redis.asyncio import Redis

from narcisse.core.config import settings

logger = logging.getLogger(__name__)

_redis: Redis | None = None


def _redis_url() -> str | None:
    return settings.rate_limit_redis_url or settings.redis_url


async def get_redis() -> Redis | None:
    """Return the singleton client, connecting on first use."""
    global _redis
    if _redis is not None:
        return _redis

    url = _redis_url()
    if not url:
        return None

    client = Redis.from_url(url, decode_responses=True)
    try:
        await client.ping()
    except Exception as exc:
        logger.warning("Redis unavailable (%s), using in-memory fallback", exc)
        try:
            await client.aclose()
        except Exception:
            logger.debug("Redis close after failed ping raised", exc_info=True)
        return None

    _redis = client
    return _redis


async def close_redis() -> None:
    global _redis
    if _redis is None:
        return
    try:
        await _redis.aclose()
    finally:
        _redis = None
