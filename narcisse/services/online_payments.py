"""Online checkout flows: Stripe PaymentIntents and webhooks, PayPal orders.

Each flow ends the same way: a `succeeded` Payment, its ledger entry, the
booking CONFIRMED and paid, the confirmation e-mail and a planning refresh.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from narcisse.core.cache import notify_planning_after_commit
from narcisse.core.config import settings
from narcisse.core.exceptions import BadRequestError, ConflictError, NotFoundError, ServiceUnavailableError
from narcisse.domain.booking import Booking
from narcisse.repositories.booking import BookingRepository
from narcisse.repositories.payment import PaymentRepository
from narcisse.services.emails import send_booking_confirmation
from narcisse.services.payment import PaymentService, to_cents
from narcisse.services.paypal_service import get_paypal_service
from narcisse.services.stripe_service import get_stripe_service, verify_webhook_signature

logger = logging.getLogger(__name__)


class OnlinePaymentService:
    def __init__(self, session: AsyncSession):
        self._session = session
        self._bookings = BookingRepository(session)
        self._payments_repo = PaymentRepository(session)
        self._payments = PaymentService(session)

    async def _booking(self, booking_id: Optional[str]) -> Booking:
        if not booking_id:
            raise BadRequestError("bookingId requis")
        booking = await self._bookings.get_by_id(booking_id)
        if booking is None:
            raise NotFoundError("Booking", booking_id)
        return booking

    async def _after_payment(self, booking_id: str) -> None:
        outcome = await send_booking_confirmation(self._session, booking_id)
        if not outcome.ok and outcome.reason != "ALREADY_SENT":
            logger.warning("Confirmation e-mail for %s not sent: %s", booking_id, outcome.reason)
        notify_planning_after_commit(self._session)

    # ── Stripe ────────────────────────────────────────────────────────────

    async def create_intent(self, booking_id: Optional[str]) -> dict[str, Any]:
        booking = await self._booking(booking_id)
        amount = to_cents(booking.total_price)
        if amount <= 0:
            raise BadRequestError("Montant invalide", code="INVALID_AMOUNT")

        intent = await get_stripe_service().create_payment_intent(amount, "eur", {"bookingId": booking.id})
        await self._payments_repo.create(
            booking_id=booking.id,
            provider="stripe",
            intent_id=intent["id"],
            amount=amount,
            currency="EUR",
            status=intent.get("status") or "requires_payment_method",
        )
        logger.info("Stripe intent %s created for booking %s", intent["id"], booking.id)
        return {"client_secret": intent.get("client_secret"), "intent_id": intent["id"]}

    async def confirm_stripe_booking(
        self,
        booking_id: Optional[str],
        provider: Optional[str],
        intent_id: Optional[str],
    ) -> Booking:
        """Widget-side confirmation once Stripe.js reports the payment."""
        booking = await self._booking(booking_id)
        if provider != "stripe":
            raise BadRequestError("Fournisseur de paiement non supporté")
        if not intent_id:
            raise BadRequestError("intentId requis")

        intent = await get_stripe_service().retrieve_payment_intent(intent_id)
        metadata_booking = (intent.get("metadata") or {}).get("bookingId")
        if metadata_booking and metadata_booking != booking.id:
            raise BadRequestError("Le paiement ne correspond pas à la réservation")
        if intent.get("status") != "succeeded":
            raise ConflictError("Paiement non finalisé", code="PAYMENT_NOT_SUCCEEDED")

        await self._settle_intent(booking.id, intent)
        await self._after_payment(booking.id)
        return await self._bookings.reload(booking.id)

    async def _settle_intent(self, booking_id: str, intent: dict[str, Any]) -> None:
        existing = await self._payments_repo.get_by_intent(intent["id"])
        if existing is not None:
            await self._payments.settle_payment(existing, raw_payload=intent)
            return
        await self._payments.process_payment(
            booking_id,
            "stripe",
            int(intent.get("amount_received") or intent.get("amount") or 0),
            method_type="card",
            intent_id=intent["id"],
            currency=intent.get("currency") or "EUR",
            raw_payload=intent,
        )

    async def handle_stripe_webhook(self, payload: bytes, signature: Optional[str]) -> dict[str, Any]:
        if not settings.stripe_webhook_secret:
            raise ServiceUnavailableError("Webhook Stripe non configuré")
        event = verify_webhook_signature(payload, signature, settings.stripe_webhook_secret)
        event_type = event.get("type")
        obj = (event.get("data") or {}).get("object") or {}
        booking_id = (obj.get("metadata") or {}).get("bookingId")

        if event_type not in ("payment_intent.succeeded", "checkout.session.completed"):
            return {"received": True}
        if not booking_id:
            logger.warning("Stripe %s without bookingId metadata", event_type)
            return {"received": True}
        if await self._bookings.get_by_id(booking_id) is None:
            logger.warning("Stripe %s for unknown booking %s", event_type, booking_id)
            return {"received": True}

        if event_type == "payment_intent.succeeded":
            await self._settle_intent(booking_id, obj)
        else:
            result = await self._payments.process_payment(
                booking_id,
                "stripe",
                int(obj.get("amount_total") or 0),
                method_type="stripe",
                intent_id=obj.get("payment_intent"),
                order_id=obj.get("id"),
                currency=obj.get("currency") or "EUR",
                raw_payload=obj,
            )
            if result.already_processed:
                return {"received": True}

        await self._after_payment(booking_id)
        logger.info("Stripe %s recorded for booking %s", event_type, booking_id)
        return {"received": True}

    # ── PayPal ────────────────────────────────────────────────────────────

    async def paypal_create_order(self, amount: Optional[float], currency: str = "EUR") -> dict[str, Any]:
        if not amount or amount <= 0:
            raise BadRequestError("Montant invalide", code="INVALID_AMOUNT")
        order_id = await get_paypal_service().create_order(amount, currency)
        return {"order_id": order_id}

    async def paypal_capture_order(self, order_id: Optional[str], booking_id: Optional[str]) -> dict[str, Any]:
        if not order_id:
            raise BadRequestError("orderId requis")
        captured = await get_paypal_service().capture_order(order_id)

        if booking_id:
            await self._booking(booking_id)
            if await self._payments_repo.get_by_order(order_id) is None:
                await self._payments.process_payment(
                    booking_id,
                    "paypal",
                    captured.amount_cents,
                    method_type="paypal",
                    order_id=order_id,
                    currency=captured.currency,
                    raw_payload=captured.payload,
                )
                await self._after_payment(booking_id)
        return {"success": True, "order_id": order_id, "booking_id": booking_id}
