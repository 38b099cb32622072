"""In-memory token bucket."""

from narcisse.core import ratelimit
from narcisse.core.ratelimit import get_client_ip, memory_rate_limit


def test_first_call_leaves_limit_minus_one():
    result = memory_rate_limit("t:first", 3, 60_000, now_ms=1_000)
    assert result.allowed
    assert result.remaining == 2


def test_request_beyond_limit_is_blocked_with_retry_after():
    for i in range(3):
        assert memory_rate_limit("t:burst", 3, 60_000, now_ms=1_000 + i).allowed

    blocked = memory_rate_limit("t:burst", 3, 60_000, now_ms=11_000)
    assert not blocked.allowed
    assert blocked.remaining == 0
    assert blocked.retry_after_ms == 50_000
    assert blocked.retry_after_seconds == 50


def test_bucket_refills_after_window():
    for _ in range(4):
        memory_rate_limit("t:window", 3, 1_000, now_ms=0)
    assert not memory_rate_limit("t:window", 3, 1_000, now_ms=500).allowed

    refreshed = memory_rate_limit("t:window", 3, 1_000, now_ms=1_000)
    assert refreshed.allowed
    assert refreshed.remaining == 2


def test_buckets_are_independent():
    memory_rate_limit("t:a", 1, 60_000, now_ms=0)
    assert not memory_rate_limit("t:a", 1, 60_000, now_ms=1).allowed
    assert memory_rate_limit("t:b", 1, 60_000, now_ms=1).allowed


def test_expired_buckets_are_swept_when_new_keys_arrive():
    memory_rate_limit("t:old", 3, 1_000, now_ms=100_000)
    memory_rate_limit("t:live", 3, 600_000, now_ms=100_000)

    memory_rate_limit("t:new", 3, 1_000, now_ms=200_000)
    assert "t:old" not in ratelimit._buckets
    assert set(ratelimit._buckets) == {"t:live", "t:new"}


def test_sweep_runs_at_most_once_per_interval():
    memory_rate_limit("t:a", 3, 1_000, now_ms=100_000)
    memory_rate_limit("t:b", 3, 1_000, now_ms=100_500)
    memory_rate_limit("t:c", 3, 1_000, now_ms=150_000)
    assert {"t:a", "t:b"} <= set(ratelimit._buckets)


def test_client_ip_resolution_order():
    assert get_client_ip({"x-forwarded-for": "1.2.3.4, 10.0.0.1", "x-real-ip": "9.9.9.9"}) == "1.2.3.4"
    assert get_client_ip({"x-real-ip": "9.9.9.9"}) == "9.9.9.9"
    assert get_client_ip({}) == "unknown"
