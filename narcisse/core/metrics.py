"""Prometheus metrics registry and the counters/gauges exported on /api/metrics."""

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    generate_latest,
)

# One registry for the process; it is what /api/metrics serializes
registry = CollectorRegistry(auto_describe=True)

RATE_LIMIT_ALLOWED = Counter(
    "rate_limiter_allowed_total",
    "Total number of requests allowed by the rate limiter",
    ["bucket"],
    registry=registry,
)
RATE_LIMIT_BLOCKED = Counter(
    "rate_limiter_blocked_total",
    "Total number of requests blocked by the rate limiter",
    ["bucket"],
    registry=registry,
)
BOAT_CAPACITY = Gauge(
    "boat_capacity",
    "Seats available on each boat",
    ["boat"],
    registry=registry,
)
HTTP_REQUESTS = Counter(
    "http_requests_total",
    "HTTP requests handled",
    ["method", "route", "status"],
    registry=registry,
)
BOOKINGS_CREATED = Counter(
    "bookings_created_total",
    "Bookings created",
    ["source"],
    registry=registry,
)
CACHE_HITS = Counter("cache_hits_total", "Availability cache hits", registry=registry)
CACHE_MISSES = Counter("cache_misses_total", "Availability cache misses", registry=registry)


def record_rate_limit_event(bucket: str, allowed: bool) -> None:
    if allowed:
        RATE_LIMIT_ALLOWED.labels(bucket=bucket).inc()
    else:
        RATE_LIMIT_BLOCKED.labels(bucket=bucket).inc()


def set_boat_capacity(boat_name: str, capacity: int) -> None:
    BOAT_CAPACITY.labels(boat=boat_name).set(capacity)


def serialize_metrics() -> tuple[bytes, str]:
    """Text exposition of the registry and its content type."""
    return generate_latest(registry), CONTENT_TYPE_LATEST
