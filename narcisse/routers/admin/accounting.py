"""Back-office accounting routes: blocked slots, day closures, cash drawer,
payment ledger, statistics and the business log.

Folder intent:
  Blocked slots are visible to every staff role (the planning shows them);
  everything that touches money or the audit feed is ADMIN / SUPERADMIN.
"""

from __future__ import annotations

import datetime as dt
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from narcisse.core.pagination import PaginationParams
from narcisse.core.response import DataResponse, ListResponse, SuccessResponse, listed, paginated
from narcisse.core.security import admin_user, staff_user
from narcisse.db.base import get_db
from narcisse.domain.accounting import CashMovement
from narcisse.domain.user import User
from narcisse.schemas.accounting import (
    BlockCreate,
    BlockOut,
    BlockUpdate,
    CashAction,
    CashMovementOut,
    CashSessionOut,
    ClosureOut,
    ClosureRequest,
    LedgerEntryCreate,
    LedgerEntryOut,
    LogOut,
    StatsOut,
)
from narcisse.services.accounting import AccountingService, BlockService
from narcisse.services.activity_log import list_logs
from narcisse.services.stats import StatsService

router = APIRouter(tags=["Admin accounting"])


def _csv(value: Optional[str]) -> Optional[list[str]]:
    """`?status=CONFIRMED,COMPLETED` → ["CONFIRMED", "COMPLETED"]."""
    if not value:
        return None
    items = [v.strip().upper() for v in value.split(",") if v.strip()]
    return items or None


# ------------------------------------------------------------------
# Blocked slots
# ------------------------------------------------------------------

@router.get("/blocks", response_model=ListResponse[BlockOut])
async def list_blocks(
    _: User = Depends(staff_user),
    session: AsyncSession = Depends(get_db),
):
    blocks = await BlockService(session).list_blocks()
    return listed(blocks, BlockOut)


@router.post("/blocks", response_model=DataResponse[BlockOut], status_code=status.HTTP_201_CREATED)
async def create_block(
    body: BlockCreate,
    user: User = Depends(admin_user),
    session: AsyncSession = Depends(get_db),
):
    block = await BlockService(session).create_block(body, actor_id=user.id)
    return {"data": BlockOut.model_validate(block)}


@router.put("/blocks", response_model=DataResponse[BlockOut])
async def update_block(
    body: BlockUpdate,
    user: User = Depends(admin_user),
    session: AsyncSession = Depends(get_db),
):
    block = await BlockService(session).update_block(body, actor_id=user.id)
    return {"data": BlockOut.model_validate(block)}


@router.delete("/blocks", response_model=SuccessResponse)
async def delete_block(
    block_id: Optional[str] = Query(default=None, alias="id"),
    user: User = Depends(admin_user),
    session: AsyncSession = Depends(get_db),
):
    await BlockService(session).delete_block(block_id, actor_id=user.id)
    return SuccessResponse()


# ------------------------------------------------------------------
# Day closures
# ------------------------------------------------------------------

@router.get("/closures", response_model=ListResponse[ClosureOut])
async def list_closures(
    _: User = Depends(admin_user),
    session: AsyncSession = Depends(get_db),
):
    closures = await AccountingService(session).list_closures()
    return listed(closures, ClosureOut)


@router.post("/closures", response_model=DataResponse[ClosureOut], status_code=status.HTTP_201_CREATED)
async def close_day(
    body: ClosureRequest,
    user: User = Depends(admin_user),
    session: AsyncSession = Depends(get_db),
):
    """Freeze the ledger of a UTC day: totals snapshot + SHA-256 hash."""
    closure = await AccountingService(session).close_day(body.day, actor_id=user.id)
    return {"data": ClosureOut.model_validate(closure)}


# ------------------------------------------------------------------
# Cash drawer
# ------------------------------------------------------------------

@router.get("/cash", response_model=ListResponse[CashSessionOut])
async def list_cash_sessions(
    _: User = Depends(admin_user),
    session: AsyncSession = Depends(get_db),
):
    sessions = await AccountingService(session).list_cash_sessions()
    return listed(sessions, CashSessionOut)


@router.post("/cash")
async def cash_action(
    body: CashAction,
    user: User = Depends(admin_user),
    session: AsyncSession = Depends(get_db),
):
    """`action=open|close|movement`; returns the session or the new movement."""
    result = await AccountingService(session).handle_cash_action(body, actor_id=user.id)
    if isinstance(result, CashMovement):
        out = CashMovementOut.model_validate(result)
    else:
        out = CashSessionOut.model_validate(result)
    return {"data": out.model_dump(by_alias=True, mode="json")}


# ------------------------------------------------------------------
# Ledger
# ------------------------------------------------------------------

@router.get("/ledger", response_model=ListResponse[LedgerEntryOut])
async def list_ledger(
    _: User = Depends(admin_user),
    session: AsyncSession = Depends(get_db),
):
    entries = await AccountingService(session).list_ledger()
    return listed(entries, LedgerEntryOut)


@router.post("/ledger", response_model=DataResponse[LedgerEntryOut], status_code=status.HTTP_201_CREATED)
async def create_ledger_entry(
    body: LedgerEntryCreate,
    user: User = Depends(admin_user),
    session: AsyncSession = Depends(get_db),
):
    entry = await AccountingService(session).create_ledger_entry(body, actor_id=user.id)
    return {"data": LedgerEntryOut.model_validate(entry)}


# ------------------------------------------------------------------
# Stats & logs
# ------------------------------------------------------------------

@router.get("/stats", response_model=DataResponse[StatsOut])
async def get_stats(
    start: Optional[dt.date] = Query(default=None),
    end: Optional[dt.date] = Query(default=None),
    filter_status: Optional[str] = Query(default=None, alias="status"),
    language: Optional[str] = Query(default=None),
    _: User = Depends(admin_user),
    session: AsyncSession = Depends(get_db),
):
    stats = await StatsService(session).get_stats(start, end, _csv(filter_status), _csv(language))
    return {"data": StatsOut.model_validate(stats)}


@router.get("/logs", response_model=ListResponse[LogOut])
async def get_logs(
    pagination: PaginationParams = Depends(),
    _: User = Depends(admin_user),
    session: AsyncSession = Depends(get_db),
):
    items, total = await list_logs(session, pagination)
    return paginated(items, total, pagination, LogOut)
