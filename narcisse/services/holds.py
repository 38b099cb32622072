"""Pending holds: bookings waiting for an online payment.

A hold is released explicitly by the widget (payment abandoned) or by the
cleanup job once it is older than `PENDING_BOOKING_TTL_MIN` minutes.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from narcisse.core.cache import invalidate_date_after_commit, notify_planning_after_commit
from narcisse.core.config import settings
from narcisse.core.exceptions import AppException, BadRequestError
from narcisse.core.timeutils import utcnow
from narcisse.domain.booking import Booking
from narcisse.repositories.booking import BookingRepository
from narcisse.repositories.payment import PaymentRepository
from narcisse.services.stripe_service import get_stripe_service

logger = logging.getLogger(__name__)


class HoldService:
    def __init__(self, session: AsyncSession):
        self._session = session
        self._bookings = BookingRepository(session)
        self._payments = PaymentRepository(session)

    async def _cancel_open_intents(self, booking: Booking) -> None:
        for payment in await self._payments.list_for_booking(booking.id):
            if payment.status == "succeeded":
                continue
            if payment.provider == "stripe" and payment.intent_id and settings.stripe_enabled:
                try:
                    await get_stripe_service().cancel_payment_intent(payment.intent_id)
                except AppException as exc:
                    logger.warning("Stripe cancel failed for %s: %s", payment.intent_id, exc.message)
            await self._payments.update(payment, status="cancelled")

    async def _release(self, booking: Booking) -> None:
        await self._cancel_open_intents(booking)
        await self._bookings.update(booking, status="CANCELLED")
        invalidate_date_after_commit(self._session, booking.date.isoformat())

    async def release(self, booking_id: Optional[str]) -> dict[str, Any]:
        """Cancel an unpaid PENDING booking. Anything else is left untouched."""
        if not booking_id:
            raise BadRequestError("bookingId requis")
        booking = await self._bookings.get_by_id(booking_id)
        if booking is None or booking.status != "PENDING" or booking.is_paid:
            return {"success": True}

        await self._release(booking)
        notify_planning_after_commit(self._session)
        logger.info("Pending hold %s released", booking.id)
        return {"success": True}

    async def cleanup_stale(self, ttl_minutes: Optional[int] = None) -> int:
        """Release every unpaid hold created more than `ttl_minutes` ago."""
        ttl = ttl_minutes or settings.pending_ttl_minutes
        cutoff = utcnow() - timedelta(minutes=ttl)
        stale = await self._bookings.list_stale_pending(cutoff)
        for booking in stale:
            await self._release(booking)
        if stale:
            notify_planning_after_commit(self._session)
            logger.info("Released %d stale pending booking(s) older than %d min", len(stale), ttl)
        return len(stale)
