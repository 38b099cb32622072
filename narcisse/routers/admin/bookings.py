"""Back-office booking routes: planning calendar, edits, boarding.

Folder intent:
  Reads (planning, detail, payment history) are open to every staff role.
  Writes go through ADMIN / SUPERADMIN; check-in is a staff action on the pier.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from narcisse.core.pagination import DateRangeParams, PaginationParams
from narcisse.core.response import DataResponse, ListResponse, SuccessResponse, paginated
from narcisse.core.security import admin_user, staff_user
from narcisse.db.base import get_db
from narcisse.domain.user import User
from narcisse.schemas.booking import BookingOut, BookingUpdate, CheckinRequest, CompleteRequest
from narcisse.schemas.payment import PaymentHistory
from narcisse.services.booking import BookingService
from narcisse.services.payment import PaymentService

router = APIRouter(prefix="/bookings", tags=["Admin bookings"])


def _svc(session: AsyncSession) -> BookingService:
    return BookingService(session)


# ------------------------------------------------------------------
# Reads
# ------------------------------------------------------------------

@router.get("", response_model=ListResponse[BookingOut])
async def list_bookings(
    filter_status: Optional[str] = Query(default=None, alias="status"),
    boat_id: Optional[int] = Query(default=None, alias="boatId"),
    date_range: DateRangeParams = Depends(),
    pagination: PaginationParams = Depends(),
    _: User = Depends(staff_user),
    session: AsyncSession = Depends(get_db),
):
    """Planning calendar: departures between ?start and ?end (inclusive days)."""
    items, total = await _svc(session).list_bookings(
        date_range, pagination, status=filter_status, boat_id=boat_id
    )
    return paginated(items, total, pagination, BookingOut)


@router.get("/{booking_id}", response_model=DataResponse[BookingOut])
async def get_booking(
    booking_id: str,
    _: User = Depends(staff_user),
    session: AsyncSession = Depends(get_db),
):
    """Lookup by UUID or public reference."""
    booking = await _svc(session).get_booking(booking_id)
    return {"data": BookingOut.model_validate(booking)}


@router.get("/{booking_id}/payments", response_model=DataResponse[PaymentHistory])
async def payment_history(
    booking_id: str,
    _: User = Depends(staff_user),
    session: AsyncSession = Depends(get_db),
):
    booking = await _svc(session).get_booking(booking_id)
    history = await PaymentService(session).get_payment_history(booking.id)
    return {"data": PaymentHistory.model_validate(history)}


# ------------------------------------------------------------------
# Writes
# ------------------------------------------------------------------

@router.patch("/{booking_id}", response_model=DataResponse[BookingOut])
async def update_booking(
    booking_id: str,
    body: BookingUpdate,
    user: User = Depends(admin_user),
    session: AsyncSession = Depends(get_db),
):
    booking = await _svc(session).update_booking(booking_id, body, actor_id=user.id)
    return {"data": BookingOut.model_validate(booking)}


@router.delete("/{booking_id}", response_model=SuccessResponse)
async def delete_booking(
    booking_id: str,
    user: User = Depends(admin_user),
    session: AsyncSession = Depends(get_db),
):
    await _svc(session).delete_booking(booking_id, actor_id=user.id)
    return SuccessResponse()


@router.post("/{booking_id}/checkin", response_model=DataResponse[BookingOut])
async def checkin_booking(
    booking_id: str,
    body: Optional[CheckinRequest] = None,
    user: User = Depends(staff_user),
    session: AsyncSession = Depends(get_db),
):
    """Mark the party as boarded (EMBARQUED, default) or NO_SHOW."""
    checkin_status = body.status if body else "EMBARQUED"
    booking = await _svc(session).checkin(booking_id, checkin_status, actor_id=user.id)
    return {"data": BookingOut.model_validate(booking)}


@router.post("/{booking_id}/complete", status_code=status.HTTP_200_OK)
async def complete_booking(
    booking_id: str,
    body: Optional[CompleteRequest] = None,
    user: User = Depends(staff_user),
    session: AsyncSession = Depends(get_db),
):
    """Close the ride and add its trip / hours to the boat counters."""
    result = await _svc(session).complete(
        booking_id,
        duration_minutes=body.duration_minutes if body else None,
        actor_id=user.id,
    )
    return {
        "data": BookingOut.model_validate(result.booking).model_dump(by_alias=True, mode="json"),
        "alreadyCompleted": result.already_completed,
    }
