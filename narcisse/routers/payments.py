"""Online payment endpoints: Stripe intents and webhook, PayPal orders."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from narcisse.db.base import get_db
from narcisse.schemas.payment import (
    CreateIntentRequest,
    CreateIntentResponse,
    PayPalCaptureRequest,
    PayPalCaptureResponse,
    PayPalOrderRequest,
    PayPalOrderResponse,
)
from narcisse.services.online_payments import OnlinePaymentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/payments", tags=["Payments"])


def _svc(session: AsyncSession) -> OnlinePaymentService:
    return OnlinePaymentService(session)


# ------------------------------------------------------------------
# Stripe
# ------------------------------------------------------------------

@router.post("/create-intent", response_model=CreateIntentResponse)
async def create_intent(
    body: CreateIntentRequest,
    session: AsyncSession = Depends(get_db),
):
    """Create a PaymentIntent for the booking total (in cents)."""
    return await _svc(session).create_intent(body.booking_id)


@router.post("/stripe/webhook")
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(default=None, alias="stripe-signature"),
    session: AsyncSession = Depends(get_db),
):
    # The signature covers the raw bytes, so the body is read before any parsing
    payload = await request.body()
    return await _svc(session).handle_stripe_webhook(payload, stripe_signature)


# ------------------------------------------------------------------
# PayPal
# ------------------------------------------------------------------

@router.post("/paypal/create-order", response_model=PayPalOrderResponse)
async def paypal_create_order(
    body: PayPalOrderRequest,
    session: AsyncSession = Depends(get_db),
):
    return await _svc(session).paypal_create_order(body.amount, body.currency)


@router.post("/paypal/capture-order", response_model=PayPalCaptureResponse)
async def paypal_capture_order(
    body: PayPalCaptureRequest,
    session: AsyncSession = Depends(get_db),
):
    """Capture an approved order and, with a bookingId, record the payment."""
    return await _svc(session).paypal_capture_order(body.order_id, body.booking_id)
