"""Booking access tokens and seasonal public references."""

from __future__ import annotations

import hashlib
import hmac
import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from narcisse.core.config import settings
from narcisse.repositories.booking import SequenceRepository

logger = logging.getLogger(__name__)

REFERENCE_PREFIX = "SN"


def compute_booking_token(booking_id: str) -> str:
    """First 16 hex chars of HMAC-SHA256(secret, booking_id)."""
    secret = settings.booking_token_secret or "changeme"
    digest = hmac.new(secret.encode("utf-8"), booking_id.encode("utf-8"), hashlib.sha256)
    return digest.hexdigest()[:16]


def verify_booking_token(booking_id: str, token: str | None) -> bool:
    if not token:
        return False
    return hmac.compare_digest(compute_booking_token(booking_id), token)


def format_booking_reference(season: int, counter: int) -> str:
    return f"{REFERENCE_PREFIX}-{str(season)[-2:]}-{counter:04d}"


async def generate_booking_reference(session: AsyncSession, departure: datetime) -> str:
    """Next `SN-yy-nnnn` reference of the departure's season (calendar year)."""
    season = departure.year
    counter = await SequenceRepository(session).next_value(f"booking_ref_{season}")
    return format_booking_reference(season, counter)


async def next_receipt_number(session: AsyncSession, year: int) -> int:
    return await SequenceRepository(session).next_value(f"receipt_{year}")
