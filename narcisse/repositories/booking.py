"""Booking queries: overlap windows, planning ranges, references, stale holds."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from sqlalchemy import func, select

from narcisse.domain.booking import Booking, Sequence
from narcisse.repositories.base import BaseRepository


class BookingRepository(BaseRepository[Booking]):
    model = Booking

    async def create(self, **kwargs: Any) -> Booking:
        booking = await super().create(**kwargs)
        # Reload with boat and user eagerly attached
        return await self.reload(booking.id)

    async def reload(self, booking_id: str) -> Booking:
        result = await self._session.execute(
            select(Booking)
            .where(Booking.id == booking_id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().one()

    async def get_by_reference(self, reference: str) -> Booking | None:
        result = await self._session.execute(
            select(Booking).where(Booking.public_reference == reference)
        )
        return result.scalars().first()

    async def find_overlapping(self, boat_id: int, start: datetime, end: datetime) -> list[Booking]:
        """Non-cancelled bookings of a boat whose [start_time, end_time) meets [start, end)."""
        result = await self._session.execute(
            select(Booking)
            .where(Booking.boat_id == boat_id)
            .where(Booking.status != "CANCELLED")
            .where(Booking.start_time < end)
            .where(Booking.end_time > start)
            .order_by(Booking.start_time.asc())
        )
        return list(result.scalars().all())

    async def list_for_day(self, day: date) -> list[Booking]:
        result = await self._session.execute(
            select(Booking)
            .where(Booking.date == day)
            .where(Booking.status != "CANCELLED")
            .order_by(Booking.start_time.asc())
        )
        return list(result.scalars().all())

    async def list_between(
        self,
        start: datetime | None,
        end: datetime | None,
        *,
        status: str | None = None,
        boat_id: int | None = None,
        language: str | None = None,
        offset: int = 0,
        limit: int | None = None,
    ) -> tuple[list[Booking], int]:
        q = select(Booking)
        if start is not None:
            q = q.where(Booking.start_time >= start)
        if end is not None:
            q = q.where(Booking.start_time < end)
        if status:
            q = q.where(Booking.status == status)
        if boat_id is not None:
            q = q.where(Booking.boat_id == boat_id)
        if language:
            q = q.where(Booking.language == language)

        total = (await self._session.execute(select(func.count()).select_from(q.subquery()))).scalar_one()
        q = q.order_by(Booking.start_time.asc()).offset(offset)
        if limit is not None:
            q = q.limit(limit)
        items = (await self._session.execute(q)).scalars().all()
        return list(items), total

    async def list_for_stats(
        self,
        start: datetime,
        end: datetime,
        statuses: list[str] | None = None,
        languages: list[str] | None = None,
    ) -> list[Booking]:
        q = select(Booking).where(Booking.start_time >= start).where(Booking.start_time < end)
        if statuses:
            q = q.where(Booking.status.in_(statuses))
        if languages:
            q = q.where(Booking.language.in_(languages))
        result = await self._session.execute(q.order_by(Booking.start_time.asc()))
        return list(result.scalars().all())

    async def list_stale_pending(self, cutoff: datetime) -> list[Booking]:
        result = await self._session.execute(
            select(Booking)
            .where(Booking.status == "PENDING")
            .where(Booking.is_paid.is_(False))
            .where(Booking.created_at < cutoff)
        )
        return list(result.scalars().all())


class SequenceRepository(BaseRepository[Sequence]):
    model = Sequence

    async def next_value(self, name: str) -> int:
        """Upsert-and-increment a named counter inside the caller's transaction."""
        sequence = await self._session.get(Sequence, name, with_for_update=True)
        if sequence is None:
            sequence = Sequence(name=name, current=1)
            self._session.add(sequence)
        else:
            sequence.current += 1
        await self._session.flush()
        return sequence.current
