"""reCAPTCHA verification for public forms."""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from narcisse.core.config import settings
from narcisse.core.exceptions import BadRequestError

logger = logging.getLogger(__name__)

SITEVERIFY_URL = "https://www.google.com/recaptcha/api/siteverify"


async def verify_captcha(token: Optional[str], remote_ip: Optional[str] = None) -> None:
    """Raise BadRequestError unless Google accepts the token. No-op without a secret."""
    secret = settings.recaptcha_secret_key
    if not secret:
        return
    if not token:
        raise BadRequestError("Captcha requis", code="CAPTCHA_REQUIRED")

    data = {"secret": secret, "response": token}
    if remote_ip and remote_ip != "unknown":
        data["remoteip"] = remote_ip
    try:
        async with httpx.AsyncClient(timeout=settings.http_timeout) as client:
            response = await client.post(SITEVERIFY_URL, data=data)
        success = bool(response.json().get("success"))
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("reCAPTCHA verification failed: %s", exc)
        success = False

    if not success:
        raise BadRequestError("Captcha invalide", code="CAPTCHA_INVALID")
