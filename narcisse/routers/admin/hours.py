"""Back-office work hours: shift entry and the monthly report."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from narcisse.core.response import DataResponse, ListResponse, SuccessResponse, listed
from narcisse.core.security import admin_user
from narcisse.db.base import get_db
from narcisse.domain.user import User
from narcisse.schemas.employee import HoursReportRow, WorkShiftCreate, WorkShiftOut
from narcisse.services.hours import HoursService

router = APIRouter(prefix="/hours", tags=["Admin hours"])


@router.get("", response_model=ListResponse[HoursReportRow])
async def hours_report(
    month: Optional[str] = Query(default=None, description="Month as YYYY-MM"),
    _: User = Depends(admin_user),
    session: AsyncSession = Depends(get_db),
):
    """One row per staff member: worked hours net of breaks, shift count and details."""
    rows = await HoursService(session).monthly_report(month)
    return listed(rows, HoursReportRow)


@router.post("", response_model=DataResponse[WorkShiftOut], status_code=status.HTTP_201_CREATED)
async def add_shift(
    body: WorkShiftCreate,
    user: User = Depends(admin_user),
    session: AsyncSession = Depends(get_db),
):
    shift = await HoursService(session).add_shift(body, actor_id=user.id)
    return {"data": WorkShiftOut.model_validate(shift)}


@router.delete("/{shift_id}", response_model=SuccessResponse)
async def delete_shift(
    shift_id: str,
    user: User = Depends(admin_user),
    session: AsyncSession = Depends(get_db),
):
    await HoursService(session).delete_shift(shift_id, actor_id=user.id)
    return SuccessResponse()
