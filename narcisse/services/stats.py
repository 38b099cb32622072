"""Back-office statistics over departures in a date range."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from narcisse.core.timeutils import as_utc, day_bounds, paris_now
from narcisse.domain.booking import Booking
from narcisse.repositories.booking import BookingRepository


def compute_stats(bookings: list[Booking]) -> dict[str, Any]:
    count = len(bookings)
    people = sum(b.number_of_people for b in bookings)
    revenue = sum(b.total_price or 0 for b in bookings)

    status_dist: dict[str, int] = {}
    lang_dist: dict[str, int] = {}
    by_day: dict[str, dict[str, float]] = {}
    by_hour: dict[str, dict[str, float]] = {}
    for booking in bookings:
        checkin = booking.checkin_status or "CONFIRMED"
        status_dist[checkin] = status_dist.get(checkin, 0) + 1
        language = booking.language or "FR"
        lang_dist[language] = lang_dist.get(language, 0) + 1

        start = as_utc(booking.start_time)
        day = by_day.setdefault(start.date().isoformat(), {"bookings": 0, "revenue": 0})
        day["bookings"] += 1
        day["revenue"] += booking.total_price or 0
        hour = by_hour.setdefault(f"{start.hour:02d}:00", {"count": 0, "revenue": 0})
        hour["count"] += 1
        hour["revenue"] += booking.total_price or 0

    return {
        "kpis": {
            "bookings": count,
            "embarked": sum(1 for b in bookings if b.checkin_status == "EMBARQUED"),
            "no_show": sum(1 for b in bookings if b.checkin_status == "NO_SHOW"),
            "cancelled": sum(1 for b in bookings if b.status == "CANCELLED"),
            "people": people,
            "adults": sum(b.adults or 0 for b in bookings),
            "children": sum(b.children or 0 for b in bookings),
            "babies": sum(b.babies or 0 for b in bookings),
            "revenue": revenue,
            "avg_per_booking": round(revenue / count) if count else 0,
            "avg_per_person": round(revenue / people) if people else 0,
        },
        "status_dist": status_dist,
        "lang_dist": lang_dist,
        "series_daily": [{"date": k, **by_day[k]} for k in sorted(by_day)],
        "by_hour": [{"hour": k, **by_hour[k]} for k in sorted(by_hour)],
    }


class StatsService:
    def __init__(self, session: AsyncSession):
        self._bookings = BookingRepository(session)

    async def get_stats(
        self,
        start: Optional[date] = None,
        end: Optional[date] = None,
        statuses: Optional[list[str]] = None,
        languages: Optional[list[str]] = None,
    ) -> dict[str, Any]:
        """Defaults to the current month up to today (Paris)."""
        today = paris_now().date()
        first = start or today.replace(day=1)
        last = end or today
        lower, _ = day_bounds(first)
        upper, _ = day_bounds(last + timedelta(days=1))
        bookings = await self._bookings.list_for_stats(lower, upper, statuses, languages)
        return compute_stats(bookings)
