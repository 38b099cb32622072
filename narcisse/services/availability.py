"""Departure availability for the public booking widget.

`compute_availability` is pure: it receives the day's active boats, its
non-cancelled bookings and the blocks intersecting the day, and returns the
departure times (`HH:MM`) still open for a party of `people` speaking
`language`. `AvailabilityService` loads those inputs and caches the answer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from narcisse.core.business import (
    CLOSE_MINUTES,
    DEPARTURE_INTERVAL_MINUTES,
    OPEN_MINUTES,
    TOUR_BUFFER_MINUTES,
    TOUR_DURATION_MINUTES,
    in_departure_window,
    rotation_index,
)
from narcisse.core.cache import CACHE_TTL_AVAILABILITY, availability_key, cache_get, cache_set
from narcisse.core.timeutils import as_utc, day_bounds, paris_now_minutes, paris_today_iso, parse_iso_day
from narcisse.repositories.accounting import BlockRepository
from narcisse.repositories.boat import BoatRepository
from narcisse.repositories.booking import BookingRepository

logger = logging.getLogger(__name__)

FULL_DAY_REASON = "Journée indisponible"
NO_SLOT_REASON = "Aucun créneau disponible sur ce créneau"

# Lead time for same-day departures shown to the public
SAME_DAY_MARGIN_MINUTES = 5


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Open-interval overlap: intervals that only touch do not overlap."""
    return a_start < b_end and b_start < a_end


@dataclass
class AvailabilityResult:
    date: str
    available_slots: list[str]
    blocked_reason: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"date": self.date, "availableSlots": self.available_slots}
        if self.blocked_reason:
            body["blockedReason"] = self.blocked_reason
        return body


def _is_full_day_block(block, day_start: datetime, day_end: datetime) -> bool:
    return (
        block.scope == "day"
        and as_utc(block.start) <= day_start
        and as_utc(block.end) >= day_end - timedelta(milliseconds=1)
    )


def compute_availability(
    day: str,
    language: str,
    people: int,
    boats: Sequence,
    bookings: Sequence,
    blocks: Sequence,
    today: Optional[str] = None,
    now_minutes: Optional[int] = None,
) -> AvailabilityResult:
    if not boats:
        return AvailabilityResult(date=day, available_slots=[])

    day_start, day_end = day_bounds(parse_iso_day(day))
    full_day_block = next((b for b in blocks if _is_full_day_block(b, day_start, day_end)), None)
    if full_day_block is not None:
        return AvailabilityResult(
            date=day,
            available_slots=[],
            blocked_reason=full_day_block.reason or FULL_DAY_REASON,
        )

    today = paris_today_iso() if today is None else today
    now_minutes = paris_now_minutes() if now_minutes is None else now_minutes
    window = timedelta(minutes=TOUR_DURATION_MINUTES + TOUR_BUFFER_MINUTES)
    buffer = timedelta(minutes=TOUR_BUFFER_MINUTES)

    slots: list[str] = []
    for minutes_total in range(OPEN_MINUTES, CLOSE_MINUTES + 1, DEPARTURE_INTERVAL_MINUTES):
        if not in_departure_window(minutes_total):
            continue
        if day == today and minutes_total <= now_minutes + SAME_DAY_MARGIN_MINUTES:
            continue

        boat = boats[rotation_index(minutes_total, len(boats))]
        slot_start = day_start + timedelta(minutes=minutes_total)
        slot_end = slot_start + window

        if any(overlaps(slot_start, slot_end, as_utc(b.start), as_utc(b.end)) for b in blocks):
            continue

        conflicts = [
            b for b in bookings
            if b.boat_id == boat.id
            and overlaps(slot_start, slot_end, as_utc(b.start_time), as_utc(b.end_time) + buffer)
        ]
        if conflicts:
            exact_start = all(as_utc(b.start_time) == slot_start for b in conflicts)
            same_language = all(b.language == language for b in conflicts)
            seated = sum(b.number_of_people for b in conflicts)
            if not (exact_start and same_language and seated + people <= boat.capacity):
                continue

        slots.append(f"{minutes_total // 60:02d}:{minutes_total % 60:02d}")

    blocked_reason = None
    if not slots and blocks:
        blocked_reason = blocks[0].reason or NO_SLOT_REASON
    return AvailabilityResult(date=day, available_slots=slots, blocked_reason=blocked_reason)


class AvailabilityService:
    def __init__(self, session: AsyncSession):
        self._boats = BoatRepository(session)
        self._bookings = BookingRepository(session)
        self._blocks = BlockRepository(session)

    async def get_availability(self, day: str, language: str, people: int) -> dict[str, Any]:
        if people <= 0:
            return AvailabilityResult(date=day, available_slots=[]).to_dict()

        key = availability_key(day, language, people)
        cached = await cache_get(key)
        if cached is not None:
            return cached

        parsed: date = parse_iso_day(day)
        day_start, day_end = day_bounds(parsed)
        boats = await self._boats.list_active()
        bookings = await self._bookings.list_for_day(parsed)
        blocks = await self._blocks.list_intersecting(day_start, day_end)

        result = compute_availability(day, language, people, boats, bookings, blocks).to_dict()
        await cache_set(key, result, CACHE_TTL_AVAILABILITY)
        logger.debug("Availability %s %s %sp -> %d slots", day, language, people, len(result["availableSlots"]))
        return result
