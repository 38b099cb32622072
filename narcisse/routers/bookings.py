"""Public booking endpoints used by the booking widget.

These keep the flat payload the widget expects (`{success, bookingId, ...}`)
rather than the `{data: ...}` envelope of the back-office routes.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from narcisse.core.business import STAFF_ROLES
from narcisse.core.exceptions import BadRequestError, ForbiddenError
from narcisse.core.ratelimit import enforce_rate_limit, get_client_ip
from narcisse.core.security import optional_user
from narcisse.db.base import get_db
from narcisse.domain.user import User
from narcisse.schemas.booking import (
    BookingCreatedResponse,
    BookingIdRequest,
    BookingOut,
    BookingRequest,
    ConfirmRequest,
)
from narcisse.schemas.payment import ConfirmResponse
from narcisse.services.booking import BookingService
from narcisse.services.booking_tokens import verify_booking_token
from narcisse.services.captcha import verify_captcha
from narcisse.services.holds import HoldService
from narcisse.services.online_payments import OnlinePaymentService
from narcisse.services.qr import booking_qr_png

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bookings", tags=["Bookings"])
qr_router = APIRouter(prefix="/api/booking-qr", tags=["Bookings"])


@router.post("", response_model=BookingCreatedResponse)
async def create_booking(
    body: BookingRequest,
    request: Request,
    user: Optional[User] = Depends(optional_user),
    session: AsyncSession = Depends(get_db),
):
    """Book a departure. Staff overrides need a staff bearer token, everyone else a captcha."""
    await enforce_rate_limit(request, "booking:create", 50, 60)

    staff = False
    if body.is_staff_override:
        if user is None or user.role not in STAFF_ROLES:
            raise ForbiddenError("Réservation staff réservée au personnel")
        staff = True
    else:
        await verify_captcha(body.captcha_token, get_client_ip(request.headers))

    result = await BookingService(session).create_booking(body, staff=staff, actor_id=user.id if staff else None)
    return BookingCreatedResponse(
        booking_id=result.booking.id,
        status=result.booking.status,
        booking=BookingOut.model_validate(result.booking),
        chain_created=result.chain_created,
        overlaps=result.overlaps,
    )


@router.post("/release")
async def release_booking(
    body: BookingIdRequest,
    request: Request,
    session: AsyncSession = Depends(get_db),
):
    """Give back the seats of an unpaid pending hold (payment abandoned in the widget)."""
    await enforce_rate_limit(request, "booking:release", 30, 60)
    return await HoldService(session).release(body.booking_id)


@router.post("/confirm", response_model=ConfirmResponse)
async def confirm_booking(
    body: ConfirmRequest,
    session: AsyncSession = Depends(get_db),
):
    booking = await OnlinePaymentService(session).confirm_stripe_booking(
        body.booking_id, body.provider, body.intent_id
    )
    return ConfirmResponse(
        booking_id=booking.id,
        status=booking.status,
        email=booking.user.email if booking.user else None,
    )


@router.get("/{booking_id}")
async def booking_action(
    booking_id: str,
    action: Optional[str] = Query(default=None),
    token: Optional[str] = Query(default=None),
    session: AsyncSession = Depends(get_db),
):
    """Customer cancellation link: `?action=cancel&token=...`."""
    if action != "cancel":
        raise BadRequestError("Action non supportée")
    outcome = await BookingService(session).cancel_with_token(booking_id, token)
    return {
        "success": outcome["success"],
        "status": outcome["status"],
        "alreadyCancelled": outcome["already_cancelled"],
    }


@qr_router.get("/{booking_id}/{token}")
async def booking_qr(
    booking_id: str,
    token: str,
    session: AsyncSession = Depends(get_db),
):
    if not verify_booking_token(booking_id, token):
        raise ForbiddenError("Jeton invalide")
    booking = await BookingService(session).get_booking(booking_id)
    return Response(
        content=booking_qr_png(booking.id, booking.public_reference),
        media_type="image/png",
        headers={"Cache-Control": "private, max-age=300"},
    )
