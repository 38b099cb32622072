"""Back-office inbox of group and private-tour requests."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from narcisse.core.response import DataResponse, ListResponse, listed
from narcisse.core.security import admin_user, staff_user
from narcisse.db.base import get_db
from narcisse.domain.user import User
from narcisse.schemas.booking import BookingCreatedResponse, BookingOut
from narcisse.schemas.contact import (
    ContactConversion,
    ContactConvert,
    ContactOut,
    ContactStatus,
    ContactStatusUpdate,
)
from narcisse.services.contacts import ContactService

router = APIRouter(prefix="/contacts", tags=["Admin contacts"])


@router.get("", response_model=ListResponse[ContactOut])
async def list_contacts(
    contact_status: Optional[ContactStatus] = Query(default=None, alias="status"),
    _: User = Depends(staff_user),
    session: AsyncSession = Depends(get_db),
):
    """The 50 latest requests, newest first."""
    contacts = await ContactService(session).list_contacts(contact_status)
    return listed(contacts, ContactOut)


@router.patch("/{contact_id}", response_model=DataResponse[ContactOut])
async def update_contact_status(
    contact_id: str,
    body: ContactStatusUpdate,
    user: User = Depends(admin_user),
    session: AsyncSession = Depends(get_db),
):
    contact = await ContactService(session).set_status(contact_id, body.status, actor_id=user.id)
    return {"data": ContactOut.model_validate(contact)}


@router.post("/convert", response_model=DataResponse[ContactConversion])
async def convert_contact(
    body: ContactConvert,
    user: User = Depends(admin_user),
    session: AsyncSession = Depends(get_db),
):
    """Book the request as a staff booking and close it."""
    contact, result = await ContactService(session).convert(body, actor_id=user.id)
    created = BookingCreatedResponse(
        booking_id=result.booking.id,
        status=result.booking.status,
        booking=BookingOut.model_validate(result.booking),
        chain_created=result.chain_created,
        overlaps=result.overlaps,
    )
    return {"data": ContactConversion(contact=ContactOut.model_validate(contact), result=created)}
