"""Stripe PaymentIntents and webhook signature verification via the official SDK.

`StripeClient` runs on the SDK's httpx transport so every call is awaited
with the `*_async` service methods.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import stripe

from narcisse.core.config import settings
from narcisse.core.exceptions import BadRequestError, ServiceUnavailableError, UpstreamServiceError

logger = logging.getLogger(__name__)

SIGNATURE_TOLERANCE_SECONDS = 300


def verify_webhook_signature(
    payload: bytes,
    signature_header: Optional[str],
    secret: str,
    tolerance: int = SIGNATURE_TOLERANCE_SECONDS,
) -> Dict[str, Any]:
    """Check a `Stripe-Signature` header and return the decoded event."""
    if not signature_header:
        raise BadRequestError("Signature Stripe manquante", code="INVALID_SIGNATURE")
    try:
        stripe.WebhookSignature.verify_header(payload.decode("utf-8"), signature_header, secret, tolerance)
    except stripe.SignatureVerificationError as exc:
        logger.warning("Stripe webhook rejected: %s", exc)
        raise BadRequestError("Signature Stripe invalide", code="INVALID_SIGNATURE") from exc

    try:
        return json.loads(payload)
    except json.JSONDecodeError as exc:
        raise BadRequestError("Payload Stripe invalide") from exc


class StripeService:
    def __init__(self) -> None:
        if not settings.stripe_enabled:
            raise ServiceUnavailableError("Stripe n'est pas configuré")
        self._client = stripe.StripeClient(
            settings.stripe_secret_key or "",
            base_addresses={"api": settings.stripe_api_base.rstrip("/")},
            http_client=stripe.HTTPXClient(timeout=settings.http_timeout),
        )

    async def _call(self, label: str, call) -> Dict[str, Any]:
        try:
            return await call
        except stripe.StripeError as exc:
            message = exc.user_message or str(exc)
            logger.warning("Stripe %s failed (%s): %s", label, exc.http_status, message)
            raise UpstreamServiceError(f"Stripe: {message}") from exc

    async def create_payment_intent(
        self, amount_cents: int, currency: str, metadata: Dict[str, str]
    ) -> Dict[str, Any]:
        return await self._call(
            "create intent",
            self._client.payment_intents.create_async(
                params={
                    "amount": amount_cents,
                    "currency": currency.lower(),
                    "metadata": metadata,
                    "automatic_payment_methods": {"enabled": True},
                }
            ),
        )

    async def retrieve_payment_intent(self, intent_id: str) -> Dict[str, Any]:
        return await self._call(f"retrieve {intent_id}", self._client.payment_intents.retrieve_async(intent_id))

    async def cancel_payment_intent(self, intent_id: str) -> Dict[str, Any]:
        return await self._call(f"cancel {intent_id}", self._client.payment_intents.cancel_async(intent_id))


def get_stripe_service() -> StripeService:
    """Raises ServiceUnavailableError (503) when STRIPE_SECRET_KEY is not set."""
    return StripeService()
