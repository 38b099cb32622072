"""PayPal Orders v2 client (client-credentials OAuth, create / capture / fetch)."""

from __future__ import annotations

import logging
from typing import Any, Dict, NamedTuple

import httpx

from narcisse.core.config import settings
from narcisse.core.exceptions import BadRequestError, ServiceUnavailableError, UpstreamServiceError

logger = logging.getLogger(__name__)


class CapturedAmount(NamedTuple):
    amount_cents: int
    currency: str
    payload: Dict[str, Any]


def _to_cents(value: Any) -> int:
    try:
        return round(float(value or 0) * 100)
    except (TypeError, ValueError):
        return 0


class PayPalService:
    def __init__(self) -> None:
        if not settings.paypal_client_id or not settings.paypal_client_secret:
            raise ServiceUnavailableError("PayPal n'est pas configuré")
        self.base_url = settings.paypal_api_base
        self.timeout = settings.http_timeout

    async def _access_token(self, client: httpx.AsyncClient) -> str:
        response = await client.post(
            f"{self.base_url}/v1/oauth2/token",
            data={"grant_type": "client_credentials"},
            auth=(settings.paypal_client_id or "", settings.paypal_client_secret or ""),
        )
        token = response.json().get("access_token") if response.status_code < 400 else None
        if not token:
            logger.warning("PayPal OAuth failed with status %s", response.status_code)
            raise UpstreamServiceError("Authentification PayPal échouée")
        return token

    async def create_order(self, amount_euros: float, currency: str = "EUR") -> str:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                token = await self._access_token(client)
                response = await client.post(
                    f"{self.base_url}/v2/checkout/orders",
                    headers={"Authorization": f"Bearer {token}"},
                    json={
                        "intent": "CAPTURE",
                        "purchase_units": [
                            {"amount": {"currency_code": currency.upper(), "value": f"{amount_euros:.2f}"}}
                        ],
                    },
                )
        except httpx.HTTPError as exc:
            logger.error("PayPal order creation failed: %s", exc)
            raise UpstreamServiceError(f"PayPal indisponible: {exc}") from exc

        order_id = response.json().get("id") if response.status_code < 400 else None
        if not order_id:
            raise UpstreamServiceError("Création de commande PayPal échouée")
        return order_id

    async def capture_order(self, order_id: str) -> CapturedAmount:
        """Capture an order; an order that is already COMPLETED is read back instead."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                token = await self._access_token(client)
                headers = {"Authorization": f"Bearer {token}"}
                response = await client.post(
                    f"{self.base_url}/v2/checkout/orders/{order_id}/capture",
                    headers=headers,
                    json={},
                )
                capture = response.json() if response.content else {}
                if response.status_code < 400 and capture.get("status") == "COMPLETED":
                    unit = (capture.get("purchase_units") or [{}])[0]
                    captured = ((unit.get("payments") or {}).get("captures") or [{}])[0]
                    amount = captured.get("amount") or {}
                    return CapturedAmount(
                        _to_cents(amount.get("value")), amount.get("currency_code") or "EUR", capture
                    )

                logger.info("PayPal capture of %s not completed, reading the order", order_id)
                order_response = await client.get(f"{self.base_url}/v2/checkout/orders/{order_id}", headers=headers)
        except httpx.HTTPError as exc:
            logger.error("PayPal capture failed: %s", exc)
            raise UpstreamServiceError(f"PayPal indisponible: {exc}") from exc

        order = order_response.json() if order_response.content else {}
        if order.get("status") != "COMPLETED":
            raise BadRequestError("Capture PayPal échouée", code="CAPTURE_FAILED")
        amount = ((order.get("purchase_units") or [{}])[0]).get("amount") or {}
        return CapturedAmount(_to_cents(amount.get("value")), amount.get("currency_code") or "EUR", order)


def get_paypal_service() -> PayPalService:
    """Raises ServiceUnavailableError (503) when the PayPal credentials are missing."""
    return PayPalService()
