"""Booking QR codes scanned at boarding: `{"type": "booking", "bookingId": ...}`."""

from __future__ import annotations

import io
import json
from typing import Optional

import segno


def booking_qr_payload(booking_id: str, reference: Optional[str] = None) -> str:
    payload = {"type": "booking", "bookingId": booking_id}
    if reference:
        payload["reference"] = reference
    return json.dumps(payload, separators=(",", ":"))


def _make(booking_id: str, reference: Optional[str]) -> segno.QRCode:
    return segno.make(booking_qr_payload(booking_id, reference), error="m", micro=False)


def booking_qr_png(booking_id: str, reference: Optional[str] = None, scale: int = 6) -> bytes:
    buffer = io.BytesIO()
    _make(booking_id, reference).save(buffer, kind="png", scale=scale, border=1)
    return buffer.getvalue()


def booking_qr_data_url(booking_id: str, reference: Optional[str] = None, scale: int = 6) -> str:
    return _make(booking_id, reference).png_data_uri(scale=scale, border=1)
