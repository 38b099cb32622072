"""Availability cache: Redis as the single source when configured, invalidation after commit."""

import fnmatch

import pytest

from narcisse.core.cache import (
    availability_key,
    cache_get,
    cache_set,
    invalidate_date_after_commit,
)
from narcisse.db.base import session_scope
from narcisse.services.booking import BookingService
from tests.test_bookings_api import DAY, booking_payload


class FakeRedis:
    def __init__(self):
        self.store: dict[str, str] = {}

    async def get(self, key):
        return self.store.get(key)

    async def setex(self, key, ttl, value):
        self.store[key] = value

    async def set(self, key, value):
        self.store[key] = value

    async def delete(self, key):
        self.store.pop(key, None)

    async def scan_iter(self, match="*", count=100):
        for key in list(self.store):
            if fnmatch.fnmatch(key, match):
                yield key


@pytest.fixture
def redis(monkeypatch) -> FakeRedis:
    fake = FakeRedis()

    async def get_fake():
        return fake

    monkeypatch.setattr("narcisse.core.cache.get_redis", get_fake)
    return fake


async def test_redis_delete_is_not_hidden_by_a_local_copy(redis):
    key = availability_key(DAY, "FR", 2)
    await cache_set(key, {"availableSlots": ["10:00"]}, 60)
    assert await cache_get(key) == {"availableSlots": ["10:00"]}

    # Another worker invalidates the day directly in Redis
    await redis.delete(key)
    assert await cache_get(key) is None


async def test_memory_is_used_without_redis():
    key = availability_key(DAY, "FR", 2)
    await cache_set(key, {"availableSlots": []}, 60)
    assert await cache_get(key) == {"availableSlots": []}


async def test_expired_memory_entry_is_a_miss():
    key = availability_key(DAY, "EN", 2)
    await cache_set(key, {"availableSlots": []}, 0)
    assert await cache_get(key) is None


async def test_cancellation_invalidates_only_after_commit(client, boats, session_factory):
    booking_id = (await client.post("/api/bookings", json=booking_payload())).json()["bookingId"]
    key = availability_key(DAY, "FR", 2)
    await cache_set(key, {"date": DAY, "availableSlots": []}, 60)

    async with session_scope(session_factory) as session:
        await BookingService(session).cancel_booking(booking_id, reason="météo")
        assert await cache_get(key) is not None

    assert await cache_get(key) is None


async def test_rolled_back_write_keeps_the_cache(session_factory):
    key = availability_key(DAY, "FR", 2)
    await cache_set(key, {"date": DAY, "availableSlots": ["10:00"]}, 60)

    with pytest.raises(RuntimeError):
        async with session_scope(session_factory) as session:
            invalidate_date_after_commit(session, DAY)
            raise RuntimeError("écriture annulée")

    assert await cache_get(key) == {"date": DAY, "availableSlots": ["10:00"]}
