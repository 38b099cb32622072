"""Token-bucket rate limiter.

Buckets live in Redis (atomic Lua script) when a Redis URL is configured, and in
a process-local map otherwise. A Redis error on a given call falls back to the
local map for that call.

Semantics (both backends): the first call in a window leaves `limit - 1`
tokens, the bucket refills completely once `window` has elapsed since it was
(re)filled, and an empty bucket is blocked with
`retry_after = window - elapsed`.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from typing import Mapping, NamedTuple

from fastapi import Request

from narcisse.core.exceptions import RateLimitedError
from narcisse.core.metrics import record_rate_limit_event
from narcisse.core.redis import get_redis

logger = logging.getLogger(__name__)


class RateLimitResult(NamedTuple):
    allowed: bool
    remaining: int
    retry_after_ms: int = 0

    @property
    def retry_after_seconds(self) -> int:
        return max(1, math.ceil(self.retry_after_ms / 1000))


# ---------------------------------------------------------------------------
# In-memory backend
# ---------------------------------------------------------------------------

@dataclass
class _Bucket:
    tokens: int
    updated: int  # epoch milliseconds
    window: int


_buckets: dict[str, _Bucket] = {}
_last_sweep = 0

SWEEP_INTERVAL_MS = 60_000


def _now_ms() -> int:
    return int(time.time() * 1000)


def _sweep(now: int) -> None:
    """Drop buckets whose window has elapsed, at most once per sweep interval."""
    global _last_sweep
    if now - _last_sweep < SWEEP_INTERVAL_MS:
        return
    _last_sweep = now
    for key in [k for k, b in _buckets.items() if now - b.updated >= b.window]:
        del _buckets[key]


def memory_rate_limit(key: str, limit: int, window_ms: int, now_ms: int | None = None) -> RateLimitResult:
    now = _now_ms() if now_ms is None else now_ms
    bucket = _buckets.get(key)
    if bucket is None:
        _sweep(now)
        _buckets[key] = _Bucket(tokens=limit - 1, updated=now, window=window_ms)
        return RateLimitResult(True, limit - 1)

    elapsed = now - bucket.updated
    if elapsed >= window_ms:
        bucket.tokens = limit - 1
        bucket.updated = now
        bucket.window = window_ms
        return RateLimitResult(True, bucket.tokens)

    if bucket.tokens <= 0:
        return RateLimitResult(False, 0, window_ms - elapsed)

    bucket.tokens -= 1
    return RateLimitResult(True, bucket.tokens)


def reset_memory_buckets() -> None:
    global _last_sweep
    _buckets.clear()
    _last_sweep = 0


# ---------------------------------------------------------------------------
# Redis backend
# ---------------------------------------------------------------------------

# KEYS[1] bucket key; ARGV: limit, window_ms, now_ms
# Returns {allowed, remaining, retry_after_ms}
TOKEN_BUCKET_LUA = """
local key = KEYS[1]
local limit = tonumber(ARGV[1])
local window = tonumber(ARGV[2])
local now = tonumber(ARGV[3])
local state = redis.call('HMGET', key, 'tokens', 'updated')
local tokens = tonumber(state[1])
local updated = tonumber(state[2])
if tokens == nil or updated == nil or (now - updated) >= window then
  redis.call('HSET', key, 'tokens', limit - 1, 'updated', now)
  redis.call('PEXPIRE', key, window)
  return {1, limit - 1, 0}
end
if tokens <= 0 then
  return {0, 0, window - (now - updated)}
end
redis.call('HSET', key, 'tokens', tokens - 1)
return {1, tokens - 1, 0}
"""


async def _redis_rate_limit(key: str, limit: int, window_ms: int) -> RateLimitResult | None:
    client = await get_redis()
    if client is None:
        return None
    try:
        allowed, remaining, retry_after = await client.eval(
            TOKEN_BUCKET_LUA, 1, f"ratelimit:{key}", limit, window_ms, _now_ms()
        )
    except Exception as exc:
        logger.warning("Redis rate limit failed for %s, using memory: %s", key, exc)
        return None
    return RateLimitResult(bool(int(allowed)), int(remaining), int(retry_after))


async def rate_limit(key: str, limit: int, window_seconds: int) -> RateLimitResult:
    window_ms = window_seconds * 1000
    result = await _redis_rate_limit(key, limit, window_ms)
    if result is None:
        result = memory_rate_limit(key, limit, window_ms)
    return result


# ---------------------------------------------------------------------------
# HTTP helpers
# ---------------------------------------------------------------------------

def get_client_ip(headers: Mapping[str, str]) -> str:
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real = headers.get("x-real-ip")
    if real:
        return real.strip()
    return "unknown"


async def enforce_rate_limit(request: Request, bucket: str, limit: int, window_seconds: int) -> None:
    """Consume one token for the caller's IP or raise RateLimitedError (429)."""
    ip = get_client_ip(request.headers)
    result = await rate_limit(f"{bucket}:{ip}", limit, window_seconds)
    record_rate_limit_event(bucket, result.allowed)
    if not result.allowed:
        logger.info("Rate limit hit bucket=%s ip=%s", bucket, ip)
        raise RateLimitedError(result.retry_after_seconds, "Trop de requêtes, réessayez plus tard.")
