"""Short-lived JSON cache (Redis with in-memory fallback) and planning notifications.

Writes that change availability or published content queue their invalidations
on the SQLAlchemy session; `flush_after_commit()` runs them once the
transaction is committed, so no reader can re-cache rows that are about to change.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from narcisse.core.metrics import CACHE_HITS, CACHE_MISSES
from narcisse.core.redis import get_redis

logger = logging.getLogger(__name__)

# TTLs in seconds
CACHE_TTL_AVAILABILITY = 60
CACHE_TTL_CMS = 300

PLANNING_UPDATE_KEY = "planning:last_update"

_PENDING_PREFIXES = "cache.pending_prefixes"
_PENDING_PLANNING = "cache.pending_planning"

# Used only when Redis is not configured or failing
_memory: dict[str, tuple[Any, float]] = {}


def availability_key(day: str, lang: str, people: int) -> str:
    return f"availability:{day}:{lang}:{people}"


def availability_prefix(day: str) -> str:
    return f"availability:{day}:"


def _memory_get(key: str) -> Any | None:
    entry = _memory.get(key)
    if entry is None:
        return None
    value, expires_at = entry
    if time.monotonic() >= expires_at:
        _memory.pop(key, None)
        return None
    return value


def _memory_set(key: str, value: Any, ttl_seconds: int) -> None:
    now = time.monotonic()
    for stale in [k for k, (_, expires_at) in _memory.items() if expires_at <= now]:
        _memory.pop(stale, None)
    _memory[key] = (value, now + ttl_seconds)


async def cache_get(key: str) -> Any | None:
    client = await get_redis()
    value = None
    if client is not None:
        try:
            raw = await client.get(key)
            value = json.loads(raw) if raw is not None else None
        except Exception as exc:
            logger.warning("Cache GET %s failed, using memory: %s", key, exc)
            value = _memory_get(key)
    else:
        value = _memory_get(key)

    if value is None:
        CACHE_MISSES.inc()
    else:
        CACHE_HITS.inc()
    return value


async def cache_set(key: str, value: Any, ttl_seconds: int = 60) -> None:
    client = await get_redis()
    if client is not None:
        try:
            await client.setex(key, ttl_seconds, json.dumps(value))
            return
        except Exception as exc:
            logger.warning("Cache SET %s failed, using memory: %s", key, exc)
    _memory_set(key, value, ttl_seconds)


async def cache_invalidate_prefix(prefix: str) -> None:
    client = await get_redis()
    if client is not None:
        try:
            async for key in client.scan_iter(match=f"{prefix}*", count=100):
                await client.delete(key)
        except Exception as exc:
            logger.warning("Cache invalidation %s failed: %s", prefix, exc)
    for key in [k for k in _memory if k.startswith(prefix)]:
        _memory.pop(key, None)


async def invalidate_date(day: str) -> None:
    """Drop every cached availability answer for a `YYYY-MM-DD` day."""
    await cache_invalidate_prefix(availability_prefix(day))


def clear_memory_cache() -> None:
    _memory.clear()


async def notify_planning_update() -> None:
    """Bump the planning timestamp polled by the back-office calendar."""
    client = await get_redis()
    if client is None:
        return
    try:
        await client.set(PLANNING_UPDATE_KEY, str(int(time.time() * 1000)))
    except Exception as exc:
        logger.warning("Planning notification failed: %s", exc)


# ---------------------------------------------------------------------------
# Post-commit hooks
# ---------------------------------------------------------------------------

def invalidate_after_commit(session: AsyncSession, prefix: str) -> None:
    session.info.setdefault(_PENDING_PREFIXES, set()).add(prefix)


def invalidate_date_after_commit(session: AsyncSession, day: str) -> None:
    invalidate_after_commit(session, availability_prefix(day))


def notify_planning_after_commit(session: AsyncSession) -> None:
    session.info[_PENDING_PLANNING] = True


def discard_pending(session: AsyncSession) -> None:
    session.info.pop(_PENDING_PREFIXES, None)
    session.info.pop(_PENDING_PLANNING, None)


async def flush_after_commit(session: AsyncSession) -> None:
    prefixes = session.info.pop(_PENDING_PREFIXES, set())
    planning = session.info.pop(_PENDING_PLANNING, False)
    for prefix in sorted(prefixes):
        await cache_invalidate_prefix(prefix)
    if planning:
        await notify_planning_update()
