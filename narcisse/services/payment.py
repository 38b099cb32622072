"""Payment recording, refunds and ledger reporting.

Every captured payment produces a `Payment` row (the provider's view) and a
`PaymentLedger` entry (the accounting view, with its VAT breakdown). Ledger
rows are append-only: refunds are new negative entries.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, NamedTuple, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from narcisse.core.exceptions import BadRequestError, NotFoundError
from narcisse.core.timeutils import utcnow
from narcisse.domain.booking import Booking
from narcisse.domain.payment import Payment, PaymentLedger
from narcisse.repositories.booking import BookingRepository
from narcisse.repositories.payment import LedgerRepository, PaymentRepository
from narcisse.services.booking_tokens import next_receipt_number
from narcisse.services.vat import compute_vat_from_gross

logger = logging.getLogger(__name__)

_LEDGER_PROVIDERS = {
    "stripe": "card",
    "ANCV": "ancv",
    "CityPass": "citypass",
}

# Counter methods recorded as a voucher payment with the method kept as methodType
VOUCHER_METHODS = frozenset({"ANCV", "CityPass"})
COUNTER_PROVIDERS = frozenset({"cash", "paypal", "applepay", "googlepay", "voucher", "check"})


def ledger_provider(provider: str) -> str:
    return _LEDGER_PROVIDERS.get(provider, provider)


def counter_payment_route(method: Optional[str], method_type: Optional[str] = None) -> Optional[tuple[str, Optional[str]]]:
    """(provider, methodType) recorded for a counter payment method, None when not recordable."""
    if not method:
        return None
    if method in VOUCHER_METHODS:
        return "voucher", method
    if method in COUNTER_PROVIDERS:
        return method, method_type
    return None


def to_cents(euros: float) -> int:
    return round((euros or 0) * 100)


class PaymentResult(NamedTuple):
    payment: Optional[Payment]
    ledger_entry: Optional[PaymentLedger]
    already_processed: bool = False


class PaymentService:
    def __init__(self, session: AsyncSession):
        self._session = session
        self._payments = PaymentRepository(session)
        self._ledger = LedgerRepository(session)
        self._bookings = BookingRepository(session)

    async def process_payment(
        self,
        booking_id: str,
        provider: str,
        amount: int,
        *,
        method_type: Optional[str] = None,
        intent_id: Optional[str] = None,
        order_id: Optional[str] = None,
        currency: str = "EUR",
        raw_payload: Any = None,
        event_type: str = "PAYMENT",
        actor_id: Optional[str] = None,
        with_receipt: bool = False,
        note: Optional[str] = None,
    ) -> PaymentResult:
        """Record a succeeded payment, its ledger entry, and mark the booking paid.

        Idempotent on `intent_id`: a second call for the same intent records nothing.
        """
        if intent_id:
            existing = await self._payments.get_by_intent(intent_id)
            if existing is not None:
                logger.info("Payment %s already processed for booking %s", intent_id, booking_id)
                return PaymentResult(existing, None, already_processed=True)

        currency = currency.upper()
        payment = await self._payments.create(
            booking_id=booking_id,
            provider=provider,
            method_type=method_type,
            intent_id=intent_id or f"manual_{int(utcnow().timestamp() * 1000)}",
            order_id=order_id,
            amount=amount,
            currency=currency,
            status="succeeded",
            raw_payload=raw_payload,
        )

        receipt_no = await next_receipt_number(self._session, utcnow().year) if with_receipt else None
        vat = compute_vat_from_gross(amount)
        entry = await self._ledger.create(
            event_type=event_type,
            booking_id=booking_id,
            payment_id=payment.id,
            provider=ledger_provider(provider),
            method_type=method_type or provider,
            amount=amount,
            currency=currency,
            vat_rate=vat.rate_percent,
            net_amount=vat.net,
            vat_amount=vat.vat,
            gross_amount=vat.gross,
            receipt_no=receipt_no,
            actor_id=actor_id,
            note=note,
        )

        booking = await self._bookings.get_by_id(booking_id)
        if booking is not None:
            await self._bookings.update(booking, is_paid=True, status="CONFIRMED")

        logger.info("Payment recorded via %s for booking %s: %s %s", provider, booking_id, amount, currency)
        return PaymentResult(payment, entry)

    async def settle_payment(self, payment: Payment, raw_payload: Any = None) -> PaymentResult:
        """Move a provider payment created at checkout to `succeeded` and book it in the ledger."""
        if payment.status == "succeeded":
            return PaymentResult(payment, None, already_processed=True)

        changes: dict[str, Any] = {"status": "succeeded"}
        if raw_payload is not None:
            changes["raw_payload"] = raw_payload
        payment = await self._payments.update(payment, **changes)

        vat = compute_vat_from_gross(payment.amount)
        entry = await self._ledger.create(
            event_type="PAYMENT",
            booking_id=payment.booking_id,
            payment_id=payment.id,
            provider=ledger_provider(payment.provider),
            method_type=payment.method_type or payment.provider,
            amount=payment.amount,
            currency=payment.currency,
            vat_rate=vat.rate_percent,
            net_amount=vat.net,
            vat_amount=vat.vat,
            gross_amount=vat.gross,
        )
        if payment.booking_id:
            booking = await self._bookings.get_by_id(payment.booking_id)
            if booking is not None:
                await self._bookings.update(booking, is_paid=True, status="CONFIRMED")
        logger.info("Payment %s settled for booking %s", payment.intent_id, payment.booking_id)
        return PaymentResult(payment, entry)

    async def record_counter_payment(
        self,
        booking: Booking,
        method: str,
        method_type: Optional[str] = None,
        amount: Optional[int] = None,
        actor_id: Optional[str] = None,
        event_type: str = "PAYMENT",
        with_receipt: bool = False,
        raw_payload: Any = None,
    ) -> Optional[PaymentResult]:
        """Payment taken at the counter (cash, voucher, cheque, ...) for the booking price."""
        route = counter_payment_route(method, method_type)
        if route is None:
            logger.info("Counter method %s is not recorded as a payment", method)
            return None
        provider, kind = route
        return await self.process_payment(
            booking.id,
            provider,
            to_cents(booking.total_price) if amount is None else amount,
            method_type=kind,
            raw_payload=raw_payload,
            event_type=event_type,
            actor_id=actor_id,
            with_receipt=with_receipt,
        )

    async def process_refund(
        self,
        payment_id: str,
        amount: Optional[int] = None,
        reason: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> PaymentLedger:
        payment = await self._payments.get_by_id(payment_id)
        if payment is None:
            raise NotFoundError("Payment")

        refundable = payment.amount - payment.refunded_amount
        if refundable <= 0:
            raise BadRequestError("Paiement déjà remboursé", code="ALREADY_REFUNDED")
        refund = refundable if amount is None else amount
        if refund <= 0 or refund > refundable:
            raise BadRequestError(
                f"Montant de remboursement invalide (maximum {refundable} centimes)", code="REFUND_TOO_LARGE"
            )
        vat = compute_vat_from_gross(refund)
        entry = await self._ledger.create(
            event_type="REFUND",
            booking_id=payment.booking_id,
            payment_id=payment.id,
            provider=payment.provider,
            method_type="refund",
            amount=-refund,
            currency=payment.currency,
            vat_rate=vat.rate_percent,
            net_amount=-vat.net,
            vat_amount=-vat.vat,
            gross_amount=-vat.gross,
            actor_id=actor_id,
            note=reason,
        )

        refunded_total = payment.refunded_amount + refund
        changes: dict[str, Any] = {"refunded_amount": refunded_total}
        if refunded_total >= payment.amount:
            changes["status"] = "refunded"
        await self._payments.update(payment, **changes)
        logger.info("Refund of %s on payment %s", refund, payment_id)
        return entry

    async def get_payment_history(self, booking_id: str) -> dict[str, Any]:
        payments = await self._payments.list_for_booking(booking_id)
        entries = await self._ledger.list_for_booking(booking_id)
        total_paid = sum(e.amount for e in entries if e.event_type in ("PAYMENT", "PAID"))
        total_refunded = abs(sum(e.amount for e in entries if e.event_type == "REFUND"))
        return {
            "payments": payments,
            "ledger": entries,
            "summary": {
                "total_paid": total_paid,
                "total_refunded": total_refunded,
                "net": total_paid - total_refunded,
            },
        }

    async def get_payment_metrics(self, start: Optional[datetime], end: Optional[datetime]) -> dict[str, Any]:
        entries = await self._ledger.list_between(start, end)
        payments = [e for e in entries if e.event_type in ("PAYMENT", "PAID")]
        refunds = [e for e in entries if e.event_type == "REFUND"]
        by_provider: dict[str, int] = {}
        for entry in payments:
            by_provider[entry.provider] = by_provider.get(entry.provider, 0) + entry.amount
        return {
            "total_revenue": sum(p.amount for p in payments),
            "total_refunds": abs(sum(r.amount for r in refunds)),
            "total_vat": sum(p.vat_amount or 0 for p in payments),
            "payment_count": len(payments),
            "refund_count": len(refunds),
            "by_provider": by_provider,
        }
