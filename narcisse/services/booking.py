"""Booking service: slot validation, conflict rules, creation and the booking lifecycle.

The whole creation flow (conflict check, reference sequence, customer upsert,
group chain, counter payment) runs in the request's transaction; `get_db`
commits it once the route returns.
"""

from __future__ import annotations

import logging
import math
import secrets
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from narcisse.core.business import (
    DEPARTURE_INTERVAL_MINUTES,
    INSTANT_CAPTURE_METHODS,
    TOUR_BUFFER_MINUTES,
    TOUR_DURATION_MINUTES,
    calculate_price,
    in_departure_window,
)
from narcisse.core.cache import invalidate_date_after_commit, notify_planning_after_commit
from narcisse.core.config import settings
from narcisse.core.exceptions import BadRequestError, BookingError, ConflictError, ForbiddenError, NotFoundError
from narcisse.core.metrics import BOOKINGS_CREATED
from narcisse.core.pagination import DateRangeParams, PaginationParams
from narcisse.core.timeutils import (
    as_utc,
    hhmm,
    paris_now_minutes,
    paris_now_wall,
    paris_today_iso,
    parse_iso_day,
    parse_paris_wall_date,
)
from narcisse.domain.boat import Boat
from narcisse.domain.booking import Booking
from narcisse.domain.user import User
from narcisse.repositories.accounting import ClosureRepository
from narcisse.repositories.booking import BookingRepository
from narcisse.repositories.payment import PaymentRepository
from narcisse.repositories.user import UserRepository
from narcisse.schemas.booking import BookingRequest, BookingUpdate
from narcisse.services.activity_log import create_log
from narcisse.services.availability import overlaps
from narcisse.services.booking_tokens import generate_booking_reference, verify_booking_token
from narcisse.services.emails import send_booking_confirmation, send_cancellation_emails
from narcisse.services.fleet import FleetService
from narcisse.services.manual_payments import amount_from_metadata
from narcisse.services.payment import PaymentService, to_cents

logger = logging.getLogger(__name__)

PLACEHOLDER_EMAIL = "override@sweetnarcisse.local"
CHAIN_OVERLAP_REASON = "Conflit avec réservation existante"
CLOSED_PERIOD_MESSAGE = "Période clôturée: modifications interdites"

_TOUR = timedelta(minutes=TOUR_DURATION_MINUTES)
_BUFFER = timedelta(minutes=TOUR_BUFFER_MINUTES)


# ---------------------------------------------------------------------------
# Pure rules
# ---------------------------------------------------------------------------

def validate_slot_time(
    hour: int,
    minute: int,
    day: str,
    staff: bool = False,
    today: Optional[str] = None,
    now_minutes: Optional[int] = None,
) -> None:
    """Raise INVALID_TIME outside the departure windows, TOO_LATE for last-minute public bookings."""
    minutes_total = hour * 60 + minute
    if not in_departure_window(minutes_total):
        raise BookingError(
            f"Horaire {hour:02d}:{minute:02d} impossible. (10h-11h45 / 13h30-17h45)", "INVALID_TIME"
        )
    if staff:
        return
    today = paris_today_iso() if today is None else today
    if day != today:
        return
    now_minutes = paris_now_minutes() if now_minutes is None else now_minutes
    delay = settings.min_booking_delay_minutes
    if minutes_total - now_minutes < delay:
        raise BookingError(
            f"Réservation trop tardive: moins de {delay} minutes avant le départ.", "TOO_LATE"
        )


def is_slot_bookable(
    conflicts: list[Booking],
    start: datetime,
    language: str,
    people: int,
    capacity: int,
    staff: bool = False,
) -> bool:
    """Shared slot rule: same start minute, same language and enough seats left."""
    if not conflicts or staff:
        return True
    exact_start = all(as_utc(b.start_time) == start for b in conflicts)
    same_language = all(b.language == language for b in conflicts)
    seated = sum(b.number_of_people for b in conflicts)
    return exact_start and same_language and seated + people <= capacity


def generate_local_email(first_name: Optional[str], last_name: Optional[str]) -> str:
    """Placeholder address for counter customers who gave no e-mail."""
    last = "".join((last_name or "Inconnu").split()).lower()
    first = "".join((first_name or "Client").split()).lower()
    return f"guichet.{last}.{first}.{secrets.token_hex(3)}@local.com"


def should_mark_paid(mark_as_paid: bool, method: Optional[str], pending_only: bool) -> bool:
    if pending_only or not mark_as_paid:
        return False
    return method in INSTANT_CAPTURE_METHODS


def _iso(value: datetime) -> str:
    return as_utc(value).isoformat().replace("+00:00", "Z")


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass
class BookingCreation:
    booking: Booking
    chain_created: list[dict[str, Any]] = field(default_factory=list)
    overlaps: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class CompletionResult:
    booking: Booking
    boat: Optional[Boat]
    already_completed: bool = False


class BookingService:
    def __init__(self, session: AsyncSession):
        self._session = session
        self._repo = BookingRepository(session)
        self._users = UserRepository(session)
        self._payments_repo = PaymentRepository(session)
        self._closures = ClosureRepository(session)
        self._fleet = FleetService(session)
        self._payments = PaymentService(session)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def get_booking(self, id_or_reference: str) -> Booking:
        """By UUID first, then by public reference (`SN-25-0042`)."""
        booking = await self._repo.get_by_id(id_or_reference)
        if booking is None:
            booking = await self._repo.get_by_reference(id_or_reference.strip().upper())
        if booking is None:
            raise NotFoundError("Booking", id_or_reference)
        return booking

    async def list_bookings(
        self,
        date_range: DateRangeParams,
        pagination: PaginationParams,
        status: Optional[str] = None,
        boat_id: Optional[int] = None,
    ) -> tuple[list[Booking], int]:
        return await self._repo.list_between(
            date_range.start_instant,
            date_range.end_instant,
            status=status,
            boat_id=boat_id,
            offset=pagination.offset,
            limit=pagination.limit,
        )

    async def check_conflicts(
        self,
        boat: Boat,
        start: datetime,
        end: datetime,
        language: str,
        people: int,
        staff: bool = False,
    ) -> bool:
        """True when the slot [start, end) can take this party on `boat`."""
        window_end = end + _BUFFER
        candidates = await self._repo.find_overlapping(boat.id, start - _BUFFER, window_end)
        conflicts = [
            b for b in candidates
            if overlaps(start, window_end, as_utc(b.start_time), as_utc(b.end_time) + _BUFFER)
        ]
        return is_slot_bookable(conflicts, start, language, people, boat.capacity, staff)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    async def _upsert_customer(self, data: BookingRequest, email: str) -> User:
        user = await self._users.get_by_email(email)
        if user is not None:
            return user
        details = data.user_details
        return await self._users.create(
            email=email,
            first_name=details.first_name,
            last_name=details.last_name,
            phone=details.phone,
            role="CLIENT",
        )

    def _customer_email(self, data: BookingRequest, staff: bool) -> str:
        email = (data.user_details.email or "").strip()
        if staff and (not email or email.lower() == PLACEHOLDER_EMAIL):
            return generate_local_email(data.user_details.first_name, data.user_details.last_name)
        if not email:
            raise BookingError("Adresse email manquante pour la réservation.", "VALIDATION")
        return email

    async def create_booking(
        self,
        data: BookingRequest,
        staff: bool = False,
        actor_id: Optional[str] = None,
    ) -> BookingCreation:
        wall = parse_paris_wall_date(data.date, data.time)
        validate_slot_time(wall.hour, wall.minute, data.date, staff)

        # Boat override and counter payment are staff-only
        forced_boat_id = data.forced_boat_id if staff else None
        boat = await self._fleet.select_boat_for_slot(wall.hour, wall.minute, forced_boat_id)
        email = self._customer_email(data, staff)
        method = data.payment_method_name
        is_paid = staff and should_mark_paid(data.mark_as_paid, method, data.pending_only)

        start = wall.instant
        end = start + _TOUR
        seats = boat.capacity if data.is_private else data.people
        if not await self.check_conflicts(boat, start, end, data.language, seats, staff):
            raise BookingError(f"Conflit sur {boat.name}", "CONFLICT")

        adults = boat.capacity if data.is_private else data.adults
        children = 0 if data.is_private else data.children
        babies = 0 if data.is_private else data.babies
        price = calculate_price(adults, children, babies)

        reference = await generate_booking_reference(self._session, start)
        customer = await self._upsert_customer(data, email)
        booking = await self._repo.create(
            public_reference=reference,
            date=parse_iso_day(data.date),
            start_time=start,
            end_time=end,
            number_of_people=adults + children + babies,
            adults=adults,
            children=children,
            babies=babies,
            language=data.language,
            total_price=price,
            status="PENDING" if data.pending_only else "CONFIRMED",
            is_paid=is_paid,
            is_private=data.is_private,
            message=data.message,
            invoice_email=data.invoice_email,
            boat_id=boat.id,
            user_id=customer.id,
        )

        prefix = "[STAFF OVERRIDE] " if staff else ""
        private = " PRIVATISATION" if data.is_private else ""
        create_log(
            self._session,
            "NEW_BOOKING",
            f"{prefix}Réservation de {data.user_details.last_name} ({booking.number_of_people}p{private}) sur {boat.name}",
            actor_id,
        )
        BOOKINGS_CREATED.labels(source="staff" if staff else "public").inc()

        result = BookingCreation(booking=booking)
        if staff and data.group_chain and data.group_chain > boat.capacity:
            await self._create_group_chain(data, booking, boat, customer, result, actor_id)

        if staff and is_paid:
            await self._payments.record_counter_payment(
                booking,
                method,
                data.payment_method_type,
                amount=amount_from_metadata(data.payment_metadata, to_cents(price)),
                actor_id=actor_id,
                raw_payload=data.payment_metadata,
            )

        invalidate_date_after_commit(self._session, data.date)
        notify_planning_after_commit(self._session)

        if not data.pending_only:
            outcome = await send_booking_confirmation(self._session, booking.id, invoice_email=data.invoice_email)
            if not outcome.ok:
                logger.info("Confirmation e-mail for %s not sent: %s", booking.id, outcome.reason)

        result.booking = await self._repo.reload(booking.id)
        return result

    async def _create_group_chain(
        self,
        data: BookingRequest,
        first: Booking,
        target: Boat,
        customer: User,
        result: BookingCreation,
        actor_id: Optional[str],
    ) -> None:
        """Seat the rest of a large group on the following departures.

        Each extra chunk starts 10 minutes after the previous one, on the
        target boat when it is free, otherwise spread over the other active
        boats (largest first). People that cannot be seated are reported in
        `overlaps`.
        """
        group = data.group_chain or 0
        chunks = math.ceil(group / target.capacity)
        others = sorted(
            (b for b in await self._fleet.list_active() if b.id != target.id and b.capacity > 0),
            key=lambda b: b.capacity,
            reverse=True,
        )
        paid = first.is_paid and data.inherit_payment_for_chain

        for index in range(1, chunks):
            chunk_start = as_utc(first.start_time) + timedelta(minutes=index * DEPARTURE_INTERVAL_MINUTES)
            chunk_end = chunk_start + _TOUR
            remaining = min(target.capacity, group - index * target.capacity)

            for boat in [target, *others]:
                if remaining <= 0:
                    break
                if await self._repo.find_overlapping(boat.id, chunk_start, chunk_end):
                    continue
                seated = min(boat.capacity, remaining)
                chained = await self._repo.create(
                    public_reference=await generate_booking_reference(self._session, chunk_start),
                    date=first.date,
                    start_time=chunk_start,
                    end_time=chunk_end,
                    number_of_people=seated,
                    adults=seated,
                    children=0,
                    babies=0,
                    language=first.language,
                    total_price=calculate_price(seated, 0, 0),
                    status="CONFIRMED",
                    is_paid=paid,
                    boat_id=boat.id,
                    user_id=customer.id,
                )
                result.chain_created.append(
                    {
                        "index": index,
                        "id": chained.id,
                        "boat_id": boat.id,
                        "start": _iso(chunk_start),
                        "end": _iso(chunk_end),
                        "people": seated,
                    }
                )
                remaining -= seated

            if remaining > 0:
                result.overlaps.append(
                    {
                        "index": index,
                        "start": _iso(chunk_start),
                        "end": _iso(chunk_end),
                        "people": remaining,
                        "reason": CHAIN_OVERLAP_REASON,
                    }
                )

        if result.overlaps:
            summary = ", ".join(f"#{o['index']} {o['start']} {o['people']}p" for o in result.overlaps)
            create_log(self._session, "GROUP_CHAIN_OVERLAPS", f"Chaînage incomplet: {summary}", actor_id)

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------

    async def cancel_booking(self, booking_id: str, reason: Optional[str] = None, actor_id: Optional[str] = None) -> Booking:
        booking = await self.get_booking(booking_id)
        if booking.status == "CANCELLED":
            raise ConflictError("Réservation déjà annulée", code="ALREADY_CANCELLED")
        booking = await self._repo.update(booking, status="CANCELLED")
        invalidate_date_after_commit(self._session, booking.date.isoformat())
        notify_planning_after_commit(self._session)
        details = f"Réservation {booking.public_reference or booking.id} annulée"
        create_log(self._session, "BOOKING_CANCELLED", f"{details}: {reason}" if reason else details, actor_id)
        return booking

    async def cancel_with_token(self, booking_id: str, token: Optional[str]) -> dict[str, Any]:
        """Customer self-service cancellation from the link in the confirmation e-mail."""
        booking = await self._repo.get_by_id(booking_id)
        if booking is None:
            raise NotFoundError("Booking", booking_id)
        if not verify_booking_token(booking.id, token):
            raise ForbiddenError("Lien d'annulation invalide")
        if booking.status == "CANCELLED":
            return {"success": True, "status": "CANCELLED", "already_cancelled": True}
        if as_utc(booking.start_time) <= paris_now_wall():
            raise BookingError("Trop tard pour annuler cette réservation", "TOO_LATE")

        booking = await self.cancel_booking(booking.id, reason="annulation client par lien")
        await send_cancellation_emails(booking)
        logger.info("Booking %s cancelled by customer link", booking.id)
        return {"success": True, "status": "CANCELLED", "already_cancelled": False}

    # ------------------------------------------------------------------
    # Day-of-departure operations
    # ------------------------------------------------------------------

    async def checkin(self, booking_id: str, status: str = "EMBARQUED", actor_id: Optional[str] = None) -> Booking:
        booking = await self.get_booking(booking_id)
        if booking.status == "CANCELLED":
            raise ConflictError("Réservation annulée", code="BOOKING_CANCELLED")
        if booking.checkin_status == status:
            return booking
        booking = await self._repo.update(booking, checkin_status=status)
        notify_planning_after_commit(self._session)
        create_log(
            self._session,
            "BOOKING_CHECKIN",
            f"{booking.public_reference or booking.id} -> {status}",
            actor_id,
        )
        return booking

    async def complete(
        self,
        booking_id: str,
        duration_minutes: Optional[int] = None,
        actor_id: Optional[str] = None,
    ) -> CompletionResult:
        booking = await self.get_booking(booking_id)
        if booking.status == "CANCELLED":
            raise ConflictError("Réservation annulée", code="BOOKING_CANCELLED")
        if booking.status == "COMPLETED":
            return CompletionResult(booking, booking.boat, already_completed=True)

        booking = await self._repo.update(booking, status="COMPLETED")
        boat = await self._fleet.record_trip(booking, duration_minutes)
        notify_planning_after_commit(self._session)
        create_log(
            self._session,
            "BOOKING_COMPLETED",
            f"{booking.public_reference or booking.id} terminée ({boat.name if boat else 'barque inconnue'})",
            actor_id,
        )
        return CompletionResult(booking, boat)

    # ------------------------------------------------------------------
    # Admin edits
    # ------------------------------------------------------------------

    async def _is_locked(self, *days: date) -> bool:
        for day in days:
            closure = await self._closures.get_by_day(day)
            if closure and closure.locked:
                return True
        return False

    async def update_booking(self, booking_id: str, data: BookingUpdate, actor_id: Optional[str] = None) -> Booking:
        booking = await self.get_booking(booking_id)
        sent = data.model_dump(exclude_unset=True)
        if not sent:
            raise BadRequestError("Aucune donnée à mettre à jour.", code="EMPTY_UPDATE")
        changes: dict[str, Any] = {}

        new_start: Optional[datetime] = None
        if data.start is not None:
            new_start = as_utc(data.start)
        elif data.date and data.time:
            new_start = parse_paris_wall_date(data.date, data.time).instant

        touches_payment = "is_paid" in sent or "payment_method" in sent
        days = [booking.date] + ([new_start.date()] if new_start is not None else [])
        if (new_start is not None or touches_payment) and await self._is_locked(*days):
            raise ForbiddenError(CLOSED_PERIOD_MESSAGE)

        old_day = booking.date.isoformat()
        if new_start is not None and new_start != as_utc(booking.start_time):
            changes.update(start_time=new_start, end_time=new_start + _TOUR, date=new_start.date())

        if data.checkin_status is not None:
            changes["checkin_status"] = data.checkin_status
        if data.language is not None:
            changes["language"] = data.language
        if "message" in sent:
            changes["message"] = data.message

        if any(key in sent for key in ("adults", "children", "babies")):
            adults = booking.adults if data.adults is None else data.adults
            children = booking.children if data.children is None else data.children
            babies = booking.babies if data.babies is None else data.babies
            changes.update(adults=adults, children=children, babies=babies, number_of_people=adults + children + babies)
            if not booking.is_private:
                changes["total_price"] = calculate_price(adults, children, babies)

        if data.is_paid is not None:
            changes["is_paid"] = data.is_paid

        booking = await self._repo.update(booking, **changes)

        if data.is_paid and data.payment_method:
            existing = await self._payments_repo.list_for_booking(booking.id)
            if not existing:
                await self._payments.record_counter_payment(
                    booking,
                    data.payment_method,
                    actor_id=actor_id,
                    event_type="PAID",
                    with_receipt=True,
                )

        invalidate_date_after_commit(self._session, old_day)
        if booking.date.isoformat() != old_day:
            invalidate_date_after_commit(self._session, booking.date.isoformat())
        notify_planning_after_commit(self._session)
        create_log(
            self._session,
            "UPDATE_BOOKING_ADMIN",
            f"{booking.public_reference or booking.id}: {', '.join(sorted(sent)) or 'aucun champ'}"
            f" ({hhmm(as_utc(booking.start_time))})",
            actor_id,
        )
        return await self._repo.reload(booking.id)

    async def delete_booking(self, booking_id: str, actor_id: Optional[str] = None) -> None:
        booking = await self.get_booking(booking_id)
        if await self._is_locked(booking.date):
            raise ForbiddenError(CLOSED_PERIOD_MESSAGE)
        label = booking.public_reference or booking.id
        day = booking.date.isoformat()
        await self._payments_repo.delete_for_booking(booking.id)
        await self._repo.delete(booking)
        invalidate_date_after_commit(self._session, day)
        notify_planning_after_commit(self._session)
        create_log(self._session, "BOOKING_DELETED", f"Réservation {label} supprimée", actor_id)
