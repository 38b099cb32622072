"""Counts handled requests per method / route template / status for Prometheus."""

from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from narcisse.core.metrics import HTTP_REQUESTS


def route_label(request: Request) -> str:
    # Route template keeps the label set bounded (/api/bookings/{booking_id})
    route = request.scope.get("route")
    path = getattr(route, "path", None)
    return path or "unmatched"


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        HTTP_REQUESTS.labels(
            method=request.method,
            route=route_label(request),
            status=str(response.status_code),
        ).inc()
        return response
