"""Back-office fleet routes: boats, battery alerts and service counters."""

from __future__ import annotations

from datetime import timedelta

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from narcisse.core.business import TOUR_DURATION_MINUTES
from narcisse.core.response import DataResponse
from narcisse.core.security import admin_user, staff_user
from narcisse.core.timeutils import parse_paris_wall_date
from narcisse.db.base import get_db
from narcisse.domain.user import User
from narcisse.schemas.boat import BoatCreate, BoatOut, BoatUpdate, FleetCapacity, FleetSnapshot
from narcisse.services.fleet import FleetService

router = APIRouter(prefix="/boats", tags=["Admin fleet"])


def _svc(session: AsyncSession) -> FleetService:
    return FleetService(session)


@router.get("", response_model=DataResponse[FleetSnapshot])
async def list_boats(
    _: User = Depends(staff_user),
    session: AsyncSession = Depends(get_db),
):
    """Every boat with its battery / mechanical alert, plus fleet totals."""
    snapshot = await _svc(session).fleet_snapshot()
    return {"data": FleetSnapshot.model_validate(snapshot)}


@router.get("/capacity", response_model=DataResponse[FleetCapacity])
async def slot_capacity(
    date: str = Query(..., description="YYYY-MM-DD"),
    time: str = Query(..., description="HH:MM"),
    _: User = Depends(staff_user),
    session: AsyncSession = Depends(get_db),
):
    """Seats left on each active boat for one departure."""
    start = parse_paris_wall_date(date, time).instant
    capacity = await _svc(session).fleet_capacity_for_slot(start, start + timedelta(minutes=TOUR_DURATION_MINUTES))
    return {"data": FleetCapacity.model_validate(capacity)}


@router.post("", response_model=DataResponse[BoatOut], status_code=status.HTTP_201_CREATED)
async def create_boat(
    body: BoatCreate,
    user: User = Depends(admin_user),
    session: AsyncSession = Depends(get_db),
):
    boat = await _svc(session).create_boat(body.model_dump(), actor_id=user.id)
    return {"data": BoatOut.model_validate(boat)}


@router.patch("/{boat_id}", response_model=DataResponse[BoatOut])
async def update_boat(
    boat_id: int,
    body: BoatUpdate,
    user: User = Depends(admin_user),
    session: AsyncSession = Depends(get_db),
):
    boat = await _svc(session).update_boat(boat_id, body.model_dump(exclude_unset=True), actor_id=user.id)
    return {"data": BoatOut.model_validate(boat)}


@router.post("/{boat_id}/charge", response_model=DataResponse[BoatOut])
async def charge_boat(
    boat_id: int,
    user: User = Depends(staff_user),
    session: AsyncSession = Depends(get_db),
):
    """Record a full battery charge now."""
    boat = await _svc(session).charge_boat(boat_id, actor_id=user.id)
    return {"data": BoatOut.model_validate(boat)}
