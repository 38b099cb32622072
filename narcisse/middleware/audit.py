"""Audit logging middleware: records every state-changing request to audit_trail."""


import asyncio
import logging
import time
from collections.abc import Callable
from typing import Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from narcisse.core.exceptions import UnauthorizedError
from narcisse.core.ratelimit import get_client_ip
from narcisse.core.security import decode_token
from narcisse.db.base import session_scope
from narcisse.domain.audit import AuditTrail

logger = logging.getLogger(__name__)

# Methods that mutate state
_WRITE_METHODS = {"POST", "PUT", "PATCH", "DELETE"}

# Tasks still writing; held so they are not garbage collected mid-flight
_pending: set[asyncio.Task] = set()


def acting_user_id(request: Request) -> Optional[str]:
    """`sub` of the bearer token, without touching the database."""
    header = request.headers.get("authorization") or ""
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    try:
        return decode_token(token).get("sub")
    except UnauthorizedError:
        return None


def entity_from_path(path: str) -> tuple[str, Optional[str]]:
    """/api/admin/bookings/<uuid>/checkin → ("booking", "<uuid>")."""
    parts = [p for p in path.strip("/").split("/") if p and p not in ("api", "admin")]
    if not parts:
        return "unknown", None
    entity_id = next((p for p in parts if len(p) == 36 and p.count("-") == 4), None)
    entity_type = parts[0].rstrip("s") or parts[0]
    return entity_type, entity_id


class AuditMiddleware(BaseHTTPMiddleware):
    """Logs all write operations.

    Each audit row is written in a background task after the response is
    built. Failures are logged and never reach the caller.
    """

    def __init__(self, app, enabled: bool = True):
        super().__init__(app)
        self.enabled = enabled

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start = time.monotonic()
        response = await call_next(request)
        duration_ms = round((time.monotonic() - start) * 1000)

        if self.enabled and request.method in _WRITE_METHODS:
            task = asyncio.create_task(self._record(request, response.status_code, duration_ms))
            _pending.add(task)
            task.add_done_callback(_pending.discard)

        return response

    async def _record(self, request: Request, status_code: int, duration_ms: int) -> None:
        entity_type, entity_id = entity_from_path(request.url.path)
        try:
            async with session_scope() as session:
                session.add(
                    AuditTrail(
                        user_id=acting_user_id(request),
                        ip_address=get_client_ip(request.headers),
                        user_agent=(request.headers.get("user-agent") or "")[:512] or None,
                        action=f"{request.method}:{status_code}",
                        entity_type=entity_type,
                        entity_id=entity_id,
                        status_code=status_code,
                        duration_ms=duration_ms,
                        description=f"{request.method} {request.url.path} → {status_code} ({duration_ms}ms)",
                    )
                )
        except Exception:  # pragma: no cover
            logger.exception("Audit trail write failed for %s %s", request.method, request.url.path)
