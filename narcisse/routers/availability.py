"""Public availability endpoint polled by the booking widget."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from narcisse.core.business import normalize_language
from narcisse.core.exceptions import BadRequestError
from narcisse.db.base import get_db
from narcisse.services.availability import AvailabilityService

router = APIRouter(prefix="/api/availability", tags=["Availability"])


@router.get("")
async def get_availability(
    date: Optional[str] = Query(default=None, description="Day as YYYY-MM-DD"),
    lang: Optional[str] = Query(default=None, description="Tour language (FR, EN, DE, ES)"),
    adults: int = Query(default=0, ge=0, le=500),
    children: int = Query(default=0, ge=0, le=500),
    babies: int = Query(default=0, ge=0, le=500),
    session: AsyncSession = Depends(get_db),
):
    """Bookable departures for a day: `{date, availableSlots, blockedReason?}`."""
    if not date or not lang:
        raise BadRequestError("Paramètres date et lang requis")
    people = adults + children + babies
    return await AvailabilityService(session).get_availability(date, normalize_language(lang), people)
