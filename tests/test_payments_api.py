"""Online payment flow with Stripe replaced by a fake client."""

import hashlib
import hmac
import json
import time

import pytest
from sqlalchemy import select

from narcisse.core.config import settings
from narcisse.domain.booking import Booking
from narcisse.domain.payment import Payment, PaymentLedger
from narcisse.services.paypal_service import CapturedAmount
from tests.test_bookings_api import booking_payload

WEBHOOK_SECRET = "whsec_test"


class FakeStripe:
    def __init__(self):
        self.intents: dict[str, dict] = {}
        self.cancelled: list[str] = []

    async def create_payment_intent(self, amount, currency, metadata):
        intent_id = f"pi_{len(self.intents) + 1}"
        self.intents[intent_id] = {
            "id": intent_id,
            "amount": amount,
            "currency": currency,
            "status": "requires_payment_method",
            "client_secret": f"{intent_id}_secret",
            "metadata": metadata,
        }
        return self.intents[intent_id]

    async def retrieve_payment_intent(self, intent_id):
        return self.intents[intent_id]

    async def cancel_payment_intent(self, intent_id):
        self.cancelled.append(intent_id)
        self.intents[intent_id]["status"] = "canceled"
        return self.intents[intent_id]


@pytest.fixture
def stripe(monkeypatch) -> FakeStripe:
    fake = FakeStripe()
    monkeypatch.setattr("narcisse.services.online_payments.get_stripe_service", lambda: fake)
    monkeypatch.setattr("narcisse.services.holds.get_stripe_service", lambda: fake)
    return fake


def _signed(payload: bytes, secret: str = WEBHOOK_SECRET, age: int = 0) -> str:
    timestamp = str(int(time.time()) - age)
    digest = hmac.new(secret.encode(), f"{timestamp}.".encode() + payload, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


async def _pending_booking(client) -> str:
    response = await client.post("/api/bookings", json=booking_payload(pendingOnly=True))
    return response.json()["bookingId"]


async def test_intent_then_confirm(client, boats, stripe, sent_confirmations, session_factory):
    booking_id = await _pending_booking(client)

    intent = await client.post("/api/payments/create-intent", json={"bookingId": booking_id})
    assert intent.status_code == 200
    intent_id = intent.json()["intentId"]
    assert intent.json()["clientSecret"] == f"{intent_id}_secret"

    unpaid = await client.post(
        "/api/bookings/confirm", json={"bookingId": booking_id, "provider": "stripe", "intentId": intent_id}
    )
    assert unpaid.status_code == 409

    stripe.intents[intent_id]["status"] = "succeeded"
    confirmed = await client.post(
        "/api/bookings/confirm", json={"bookingId": booking_id, "provider": "stripe", "intentId": intent_id}
    )
    assert confirmed.status_code == 200
    assert confirmed.json()["status"] == "CONFIRMED"
    assert confirmed.json()["email"] == "marie@example.fr"
    assert sent_confirmations == [booking_id]

    # A second confirmation settles nothing new
    await client.post(
        "/api/bookings/confirm", json={"bookingId": booking_id, "provider": "stripe", "intentId": intent_id}
    )
    async with session_factory() as session:
        entries = (await session.execute(select(PaymentLedger))).scalars().all()
    assert len(entries) == 1
    assert entries[0].provider == "card"


async def test_confirm_rejects_other_providers(client, boats, stripe):
    booking_id = await _pending_booking(client)
    response = await client.post("/api/bookings/confirm", json={"bookingId": booking_id, "provider": "paypal"})
    assert response.status_code == 400


async def test_intent_for_unknown_booking(client, stripe):
    response = await client.post("/api/payments/create-intent", json={"bookingId": "missing"})
    assert response.status_code == 404


async def test_stripe_not_configured(client, boats):
    booking_id = await _pending_booking(client)
    response = await client.post("/api/payments/create-intent", json={"bookingId": booking_id})
    assert response.status_code == 503


async def test_webhook_marks_booking_paid(client, boats, monkeypatch, session_factory):
    monkeypatch.setattr(settings, "stripe_webhook_secret", WEBHOOK_SECRET)
    booking_id = await _pending_booking(client)
    payload = json.dumps(
        {
            "type": "payment_intent.succeeded",
            "data": {
                "object": {
                    "id": "pi_webhook",
                    "amount_received": 1800,
                    "currency": "eur",
                    "metadata": {"bookingId": booking_id},
                }
            },
        }
    ).encode()

    response = await client.post(
        "/api/payments/stripe/webhook", content=payload, headers={"stripe-signature": _signed(payload)}
    )
    assert response.status_code == 200

    async with session_factory() as session:
        entry = (await session.execute(select(PaymentLedger))).scalars().one()
    assert entry.amount == 1800
    assert entry.booking_id == booking_id


async def test_webhook_bad_signature(client, monkeypatch):
    monkeypatch.setattr(settings, "stripe_webhook_secret", WEBHOOK_SECRET)
    payload = b'{"type": "payment_intent.succeeded"}'
    response = await client.post(
        "/api/payments/stripe/webhook", content=payload, headers={"stripe-signature": _signed(payload, "other")}
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_SIGNATURE"


async def test_webhook_stale_signature(client, monkeypatch):
    monkeypatch.setattr(settings, "stripe_webhook_secret", WEBHOOK_SECRET)
    payload = b'{"type": "payment_intent.succeeded"}'
    response = await client.post(
        "/api/payments/stripe/webhook", content=payload, headers={"stripe-signature": _signed(payload, age=3600)}
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_SIGNATURE"


async def test_webhook_missing_signature(client, monkeypatch):
    monkeypatch.setattr(settings, "stripe_webhook_secret", WEBHOOK_SECRET)
    response = await client.post("/api/payments/stripe/webhook", content=b"{}")
    assert response.status_code == 400


async def test_release_cancels_open_intents(client, boats, stripe, monkeypatch, session_factory):
    monkeypatch.setattr(settings, "stripe_secret_key", "sk_test_fake")
    booking_id = await _pending_booking(client)
    intent_id = (await client.post("/api/payments/create-intent", json={"bookingId": booking_id})).json()["intentId"]

    response = await client.post("/api/bookings/release", json={"bookingId": booking_id})
    assert response.json() == {"success": True}
    assert stripe.cancelled == [intent_id]

    async with session_factory() as session:
        payment = (await session.execute(select(Payment))).scalars().one()
        booking = await session.get(Booking, booking_id)
    assert payment.status == "cancelled"
    assert booking.status == "CANCELLED"


class FakePayPal:
    def __init__(self):
        self.orders: list[float] = []
        self.captures = 0

    async def create_order(self, amount_euros, currency="EUR"):
        self.orders.append(amount_euros)
        return f"ORDER-{len(self.orders)}"

    async def capture_order(self, order_id):
        self.captures += 1
        return CapturedAmount(1800, "EUR", {"id": order_id, "status": "COMPLETED"})


@pytest.fixture
def paypal(monkeypatch) -> FakePayPal:
    fake = FakePayPal()
    monkeypatch.setattr("narcisse.services.online_payments.get_paypal_service", lambda: fake)
    return fake


async def test_paypal_create_order(client, paypal):
    response = await client.post("/api/payments/paypal/create-order", json={"amount": 18.0})
    assert response.status_code == 200
    assert response.json() == {"orderId": "ORDER-1"}
    assert paypal.orders == [18.0]

    missing = await client.post("/api/payments/paypal/create-order", json={})
    assert missing.status_code == 400
    assert missing.json()["error"]["code"] == "INVALID_AMOUNT"


async def test_paypal_capture_is_recorded_once(client, boats, paypal, sent_confirmations, session_factory):
    booking_id = await _pending_booking(client)
    body = {"orderId": "ORDER-9", "bookingId": booking_id}

    first = await client.post("/api/payments/paypal/capture-order", json=body)
    assert first.status_code == 200
    assert first.json() == {"success": True, "orderId": "ORDER-9", "bookingId": booking_id}
    second = await client.post("/api/payments/paypal/capture-order", json=body)
    assert second.status_code == 200

    async with session_factory() as session:
        entries = (await session.execute(select(PaymentLedger))).scalars().all()
        booking = await session.get(Booking, booking_id)
    assert len(entries) == 1
    assert entries[0].provider == "paypal"
    assert entries[0].amount == 1800
    assert booking.is_paid is True
    assert sent_confirmations == [booking_id]
