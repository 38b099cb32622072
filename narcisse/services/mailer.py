"""Outbound e-mail: Resend HTTP API when configured, SMTP otherwise."""

from __future__ import annotations

import base64
import logging
import smtplib
import ssl
from email.message import EmailMessage
from typing import Iterable, NamedTuple, Optional, Sequence, Union

import anyio
import httpx

from narcisse.core.business import BUSINESS_NAME
from narcisse.core.config import settings

logger = logging.getLogger(__name__)


class Attachment(NamedTuple):
    filename: str
    content: bytes
    content_type: str


def email_roles() -> dict[str, str]:
    return {
        "contact": settings.email_contact.strip(),
        "reservations": settings.email_reservations.strip(),
        "billing": settings.email_billing.strip(),
        "notifications": settings.email_notifications.strip(),
    }


def sender(role: str) -> str:
    """`Sweet Narcisse <address>` for one of the mailbox roles."""
    return f"{BUSINESS_NAME} <{email_roles()[role]}>"


def _recipients(to: Union[str, Iterable[str]]) -> list[str]:
    values = [to] if isinstance(to, str) else list(to)
    seen: list[str] = []
    for value in values:
        address = (value or "").strip()
        if address and address not in seen:
            seen.append(address)
    return seen


async def _send_resend(
    to: list[str],
    subject: str,
    text: str,
    html: Optional[str],
    from_: str,
    reply_to: Optional[str],
    attachments: Sequence[Attachment],
) -> bool:
    payload: dict[str, object] = {"from": from_, "to": to, "subject": subject, "text": text}
    if html:
        payload["html"] = html
    if reply_to:
        payload["reply_to"] = reply_to
    if attachments:
        payload["attachments"] = [
            {"filename": a.filename, "content": base64.b64encode(a.content).decode("ascii"), "content_type": a.content_type}
            for a in attachments
        ]

    async with httpx.AsyncClient(timeout=settings.http_timeout) as client:
        response = await client.post(
            settings.resend_api_url.rstrip("/") + "/emails",
            headers={"Authorization": f"Bearer {settings.resend_api_key}"},
            json=payload,
        )
    if response.status_code >= 400:
        logger.warning("Resend email failed (%s): %s", response.status_code, response.text)
        return False
    return True


def _send_smtp(message: EmailMessage) -> None:
    port = settings.smtp_port
    if port == 465:
        with smtplib.SMTP_SSL(settings.smtp_host, port, context=ssl.create_default_context()) as smtp:
            smtp.login(settings.smtp_user, settings.smtp_pass)
            smtp.send_message(message)
        return
    with smtplib.SMTP(settings.smtp_host, port) as smtp:
        smtp.starttls(context=ssl.create_default_context())
        smtp.login(settings.smtp_user, settings.smtp_pass)
        smtp.send_message(message)


def _build_message(
    to: list[str],
    subject: str,
    text: str,
    html: Optional[str],
    from_: str,
    reply_to: Optional[str],
    attachments: Sequence[Attachment],
) -> EmailMessage:
    message = EmailMessage()
    message["From"] = from_
    message["To"] = ", ".join(to)
    message["Subject"] = subject
    if reply_to:
        message["Reply-To"] = reply_to
    message.set_content(text)
    if html:
        message.add_alternative(html, subtype="html")
    for attachment in attachments:
        maintype, _, subtype = attachment.content_type.partition("/")
        message.add_attachment(attachment.content, maintype=maintype, subtype=subtype, filename=attachment.filename)
    return message


async def send_mail(
    to: Union[str, Iterable[str]],
    subject: str,
    text: str,
    *,
    html: Optional[str] = None,
    from_: Optional[str] = None,
    reply_to: Optional[str] = None,
    attachments: Sequence[Attachment] = (),
) -> bool:
    """Send one message. Returns False (and logs) when it could not be delivered."""
    recipients = _recipients(to)
    if not recipients:
        logger.info("Email skipped (no recipients): %s", subject)
        return False
    from_ = from_ or sender("notifications")

    try:
        if settings.resend_api_key:
            delivered = await _send_resend(recipients, subject, text, html, from_, reply_to, attachments)
        elif settings.smtp_host and settings.smtp_user and settings.smtp_pass:
            message = _build_message(recipients, subject, text, html, from_, reply_to, attachments)
            await anyio.to_thread.run_sync(_send_smtp, message)
            delivered = True
        else:
            logger.info("Email skipped (no Resend key nor SMTP configuration): %s", subject)
            return False
    except (httpx.HTTPError, smtplib.SMTPException, OSError) as exc:
        logger.warning("Email '%s' to %s failed: %s", subject, recipients, exc)
        return False

    if delivered:
        logger.info("Email '%s' sent to %d recipient(s)", subject, len(recipients))
    return delivered
