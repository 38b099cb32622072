"""Customer and back-office e-mails: booking confirmation, cancellation, contact requests."""

from __future__ import annotations

import logging
import re
from typing import NamedTuple, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from narcisse.core.config import settings
from narcisse.core.timeutils import as_utc, format_paris_date, hhmm, utcnow
from narcisse.domain.booking import Booking
from narcisse.repositories.booking import BookingRepository
from narcisse.services.activity_log import create_log
from narcisse.services.booking_tokens import compute_booking_token
from narcisse.services.mailer import Attachment, email_roles, send_mail, sender
from narcisse.services.pdf import InvoiceData, format_euros, generate_invoice_pdf
from narcisse.services.qr import booking_qr_png

logger = logging.getLogger(__name__)

MEETING_POINT = "Pont Saint-Pierre, 10 Rue de la Herse, 68000 Colmar"
MAP_LINK = "https://maps.app.goo.gl/v2S3t2Wq83B7k6996"

_UNSAFE_FILENAME = re.compile(r"[^a-zA-Z0-9_-]+")


class EmailOutcome(NamedTuple):
    ok: bool
    reason: Optional[str] = None


def is_generic_counter_email(value: Optional[str]) -> bool:
    """Addresses generated for counter bookings never receive mail."""
    normalized = (value or "").strip().lower()
    if not normalized:
        return True
    return (
        normalized.endswith("@local.com")
        or normalized.endswith("@sweetnarcisse.local")
        or normalized.startswith("override@")
    )


def cancel_url(booking_id: str) -> str:
    return f"{settings.public_base_url}/cancel/{booking_id}/{compute_booking_token(booking_id)}"


def _invoice_attachment(session: AsyncSession, booking: Booking, customer_email: str) -> Optional[Attachment]:
    label = booking.public_reference or booking.id
    user = booking.user
    name = " ".join(p for p in (user.first_name, user.last_name) if p).strip() or f"Client Sweet Narcisse"
    try:
        pdf = generate_invoice_pdf(
            InvoiceData(
                invoice_number=label,
                issue_date=utcnow(),
                service_date=format_paris_date(booking.start_time),
                service_time=hhmm(as_utc(booking.start_time)),
                total_price=booking.total_price,
                adults=booking.adults,
                children=booking.children,
                babies=booking.babies,
                customer_name=name,
                customer_email=customer_email,
                customer_phone=user.phone,
            )
        )
    except Exception as exc:
        logger.exception("Invoice generation failed for booking %s", booking.id)
        create_log(session, "INVOICE_ERROR", f"Échec génération facture {booking.id}: {exc}")
        return None
    safe = _UNSAFE_FILENAME.sub("-", label).strip("-") or booking.id
    return Attachment(f"Facture-{safe}.pdf", pdf, "application/pdf")


def confirmation_text(booking: Booking) -> str:
    first_name = (booking.user.first_name if booking.user else None) or "Client"
    start = as_utc(booking.start_time)
    return "\n\n".join(
        [
            f"Bonjour {first_name},",
            f"Votre réservation est confirmée pour le {format_paris_date(start)} à {hhmm(start)}. "
            f"Référence : {booking.public_reference or booking.id}.",
            f"Passagers : {booking.number_of_people} ({booking.adults} adulte(s), "
            f"{booking.children} enfant(s), {booking.babies} bébé(s)).",
            f"Montant total : {format_euros(booking.total_price)} (facture PDF en pièce jointe).",
            f"Merci d'arriver 10 minutes avant le départ au {MEETING_POINT}.",
            f"Itinéraire Google Maps : {MAP_LINK}",
            f"Pour gérer ou annuler votre réservation, utilisez ce lien : {cancel_url(booking.id)}",
            "À très vite sur l'eau !",
        ]
    )


async def send_booking_confirmation(
    session: AsyncSession,
    booking_id: str,
    *,
    invoice_email: Optional[str] = None,
    force: bool = False,
) -> EmailOutcome:
    """Confirmation with QR code and invoice; the invoice copy also goes to `invoice_email`."""
    repo = BookingRepository(session)
    booking = await repo.get_by_id(booking_id)
    if booking is None or booking.user is None:
        return EmailOutcome(False, "BOOKING_NOT_FOUND")
    if booking.confirmation_email_sent_at and not force:
        return EmailOutcome(False, "ALREADY_SENT")

    recipient = (booking.user.email or "").strip()
    if "@" not in recipient or is_generic_counter_email(recipient):
        return EmailOutcome(False, "INVALID_RECIPIENT")

    start = as_utc(booking.start_time)
    date_label, time_label = format_paris_date(start), hhmm(start)
    attachments = [
        Attachment(
            f"qr-{booking.public_reference or booking.id}.png",
            booking_qr_png(booking.id, booking.public_reference),
            "image/png",
        )
    ]
    invoice = _invoice_attachment(session, booking, recipient)
    if invoice is not None:
        attachments.append(invoice)

    text = confirmation_text(booking)
    sent = await send_mail(
        recipient,
        f"Confirmation de réservation – {date_label} {time_label}",
        text,
        from_=sender("reservations"),
        reply_to=email_roles()["contact"],
        attachments=attachments,
    )
    if not sent:
        create_log(session, "EMAIL_ERROR", f"Échec envoi confirmation {recipient}", booking.user_id)
        return EmailOutcome(False, "SEND_FAILED")

    invoice_recipient = invoice_email or booking.invoice_email
    if invoice_recipient and invoice_recipient != recipient:
        await send_mail(
            invoice_recipient,
            f"Facture – Réservation {date_label} {time_label}",
            text,
            from_=sender("billing"),
            reply_to=email_roles()["billing"],
            attachments=[invoice] if invoice is not None else [],
        )

    changes: dict = {"confirmation_email_sent_at": utcnow()}
    if invoice_recipient and invoice_recipient != booking.invoice_email:
        changes["invoice_email"] = invoice_recipient
    await repo.update(booking, **changes)
    return EmailOutcome(True)


async def send_cancellation_emails(booking: Booking) -> None:
    """Customer confirmation plus a notice to the notifications mailbox."""
    roles = email_roles()
    label = booking.public_reference or booking.id
    customer = booking.user.email if booking.user else None
    recipient = customer if customer and not is_generic_counter_email(customer) else roles["notifications"]
    await send_mail(
        recipient,
        f"Annulation confirmée – Réservation {label}",
        f"Votre réservation a bien été annulée. Référence: {label}. "
        f"Pour toute assistance, contactez-nous: {roles['contact']}.",
        from_=sender("reservations"),
        reply_to=roles["contact"],
    )
    await send_mail(
        roles["notifications"],
        f"Annulation effectuée – {label}",
        f"La réservation {label} a été annulée via le lien client. Email: {customer or 'inconnu'}.",
        from_=sender("notifications"),
    )


async def send_contact_request(kind: str, details: dict[str, Optional[str]]) -> bool:
    """Forward a group / private-tour request to reservations and acknowledge the customer."""
    roles = email_roles()
    title = "Demande de Groupe" if kind == "group" else "Demande de Privatisation"
    full_name = f"{details.get('first_name') or ''} {details.get('last_name') or ''}".strip()
    lines = [f"{title} - {full_name}"]
    for label, key in (
        ("Email", "email"),
        ("Téléphone", "phone"),
        ("Date souhaitée", "date"),
        ("Personnes", "people"),
        ("Message", "message"),
    ):
        if details.get(key):
            lines.append(f"{label} : {details[key]}")

    forwarded = await send_mail(
        roles["reservations"],
        f"{title} - {full_name}",
        "\n".join(lines),
        from_=sender("contact"),
        reply_to=details.get("email"),
    )
    if details.get("email"):
        await send_mail(
            details["email"],
            "Nous avons bien reçu votre demande",
            f"Bonjour {details.get('first_name') or ''},\n\n"
            "Merci pour votre demande. Notre équipe vous répond au plus vite.\n\n"
            f"{title}\n\nSweet Narcisse",
            from_=sender("reservations"),
            reply_to=roles["contact"],
        )
    return forwarded
