"""Operator-facing business log (the back-office activity feed)."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from narcisse.core.pagination import PaginationParams
from narcisse.domain.audit import Log
from narcisse.repositories.audit import LogRepository

logger = logging.getLogger(__name__)


def create_log(
    session: AsyncSession,
    action: str,
    details: str,
    user_id: Optional[str] = None,
) -> None:
    """Queue a log line for the acting user; written with the request's transaction.

    Anonymous actions (public bookings, scripts) have no author and are not logged.
    """
    if not user_id:
        return
    session.add(Log(action=action, details=details[:2000], user_id=user_id))
    logger.debug("%s by %s: %s", action, user_id, details)


async def list_logs(session: AsyncSession, pagination: PaginationParams) -> tuple[list[Log], int]:
    return await LogRepository(session).list(
        offset=pagination.offset,
        limit=pagination.limit,
        order_by=pagination.sort,
        order=pagination.order,
    )
