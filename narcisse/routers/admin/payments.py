"""Back-office payment routes: refunds and revenue metrics."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from narcisse.core.pagination import DateRangeParams
from narcisse.core.response import DataResponse
from narcisse.core.security import admin_user
from narcisse.db.base import get_db
from narcisse.domain.user import User
from narcisse.schemas.accounting import LedgerEntryOut
from narcisse.schemas.payment import PaymentMetrics, RefundRequest
from narcisse.services.payment import PaymentService

router = APIRouter(prefix="/payments", tags=["Admin payments"])


@router.post("/{payment_id}/refund", response_model=DataResponse[LedgerEntryOut])
async def refund_payment(
    payment_id: str,
    body: RefundRequest,
    user: User = Depends(admin_user),
    session: AsyncSession = Depends(get_db),
):
    """Full refund when no amount is given; returns the REFUND ledger entry."""
    entry = await PaymentService(session).process_refund(
        payment_id, amount=body.amount, reason=body.reason, actor_id=user.id
    )
    return {"data": LedgerEntryOut.model_validate(entry)}


@router.get("/metrics", response_model=DataResponse[PaymentMetrics])
async def payment_metrics(
    date_range: DateRangeParams = Depends(),
    _: User = Depends(admin_user),
    session: AsyncSession = Depends(get_db),
):
    metrics = await PaymentService(session).get_payment_metrics(
        date_range.start_instant, date_range.end_instant
    )
    return {"data": PaymentMetrics.model_validate(metrics)}
