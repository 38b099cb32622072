"""Group / private-tour requests: stored on submission, followed up from the back-office.

A request can be turned into a staff booking. Group requests larger than the
boat of the slot go through the group chain, private requests book the whole
boat. The request is CLOSED once the booking exists.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from narcisse.core.business import normalize_language
from narcisse.core.exceptions import BadRequestError, NotFoundError
from narcisse.core.timeutils import paris_today_iso, parse_paris_wall_date
from narcisse.domain.contact import ContactRequest
from narcisse.repositories.contact import ContactRequestRepository
from narcisse.schemas.booking import BookingRequest
from narcisse.schemas.contact import ContactConvert, ContactForm
from narcisse.services.activity_log import create_log
from narcisse.services.booking import BookingCreation, BookingService
from narcisse.services.fleet import FleetService

logger = logging.getLogger(__name__)

_DAY = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class ContactService:
    def __init__(self, session: AsyncSession):
        self._session = session
        self._contacts = ContactRequestRepository(session)

    async def record(self, kind: str, form: ContactForm) -> ContactRequest:
        contact = await self._contacts.create(
            kind=kind,
            first_name=form.first_name,
            last_name=form.last_name,
            email=form.email,
            phone=form.phone,
            date=form.date,
            people=form.people,
            lang=normalize_language(form.lang or "") or None,
            message=form.message,
        )
        logger.info("Contact request %s (%s) stored", contact.id, kind)
        return contact

    async def list_contacts(self, status: Optional[str] = None) -> list[ContactRequest]:
        return await self._contacts.list_recent(status=status)

    async def get_contact(self, contact_id: Optional[str]) -> ContactRequest:
        if not contact_id:
            raise BadRequestError("contactId requis")
        contact = await self._contacts.get_by_id(contact_id)
        if contact is None:
            raise NotFoundError("Contact", contact_id)
        return contact

    async def set_status(self, contact_id: str, status: str, actor_id: Optional[str] = None) -> ContactRequest:
        contact = await self.get_contact(contact_id)
        contact = await self._contacts.update(contact, status=status)
        create_log(self._session, "CONTACT_STATUS", f"Demande {contact.id}: {status}", actor_id)
        return contact

    async def _booking_request(self, contact: ContactRequest, body: ContactConvert) -> BookingRequest:
        day = body.date or (contact.date if contact.date and _DAY.match(contact.date) else paris_today_iso())
        people = contact.people or 0
        request = {
            "date": day,
            "time": body.time,
            "language": contact.lang or "FR",
            "user_details": dict(
                first_name=contact.first_name, last_name=contact.last_name, email=contact.email, phone=contact.phone
            ),
            "is_staff_override": True,
            "message": (contact.message or "")[:1000] or None,
        }
        if contact.kind == "private":
            request.update(adults=max(1, min(people, 100)), is_private=True)
        elif people > 0:
            wall = parse_paris_wall_date(day, body.time)
            boat = await FleetService(self._session).select_boat_for_slot(wall.hour, wall.minute)
            first_chunk = min(people, boat.capacity)
            request.update(adults=first_chunk, group_chain=people if people > first_chunk else None)
        else:
            request.update(adults=1)
        try:
            return BookingRequest(**request)
        except PydanticValidationError as exc:
            raise BadRequestError(f"Demande incomplète pour une réservation: {exc.errors()[0]['msg']}") from exc

    async def convert(self, body: ContactConvert, actor_id: Optional[str] = None) -> tuple[ContactRequest, BookingCreation]:
        contact = await self.get_contact(body.contact_id)
        if contact.booking_id:
            raise BadRequestError("Demande déjà convertie en réservation", code="ALREADY_CONVERTED")

        request = await self._booking_request(contact, body)
        result = await BookingService(self._session).create_booking(request, staff=True, actor_id=actor_id)
        contact = await self._contacts.update(contact, status="CLOSED", booking_id=result.booking.id)
        create_log(
            self._session,
            "CONTACT_CONVERTED",
            f"Demande {contact.id} convertie en {result.booking.public_reference}",
            actor_id,
        )
        return contact, result
