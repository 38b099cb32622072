"""PDF helpers built on PyMuPDF: booking invoices and first-page PNG previews."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

import fitz  # PyMuPDF

from narcisse.core.business import BUSINESS_ADDRESS, BUSINESS_NAME, PRICE_ADULT, PRICE_BABY, PRICE_CHILD
from narcisse.core.config import settings
from narcisse.core.exceptions import BadRequestError

logger = logging.getLogger(__name__)

# A4 in points
PAGE_WIDTH = 595
PAGE_HEIGHT = 842
MARGIN = 50

_INK = (0.06, 0.09, 0.16)
_MUTED = (0.28, 0.33, 0.41)
_RULE = (0.80, 0.84, 0.96)


def format_euros(amount: float) -> str:
    """`1 234,50 EUR` (French grouping, comma decimals)."""
    whole = f"{amount:,.2f}".replace(",", " ").replace(".", ",")
    return f"{whole} EUR"


@dataclass
class InvoiceData:
    invoice_number: str
    issue_date: datetime
    service_date: str
    service_time: str
    total_price: float
    adults: int
    children: int
    babies: int
    customer_name: str
    customer_email: str
    customer_phone: Optional[str] = None
    unit_prices: dict[str, float] = field(
        default_factory=lambda: {"adult": PRICE_ADULT, "child": PRICE_CHILD, "baby": PRICE_BABY}
    )


def _invoice_rows(data: InvoiceData) -> list[tuple[str, int, float]]:
    rows: list[tuple[str, int, float]] = []
    if data.adults > 0:
        rows.append(("Billets adultes", data.adults, data.unit_prices["adult"]))
    if data.children > 0:
        rows.append(("Enfants (4-10 ans)", data.children, data.unit_prices["child"]))
    if data.babies > 0:
        rows.append(("Bébés (0-3 ans)", data.babies, data.unit_prices["baby"]))
    if not rows:
        rows.append(("Passagers", data.adults + data.children + data.babies, data.total_price))
    return rows


def generate_invoice_pdf(data: InvoiceData) -> bytes:
    doc = fitz.open()
    try:
        page = doc.new_page(width=PAGE_WIDTH, height=PAGE_HEIGHT)
        y = MARGIN + 10

        def line(text: str, size: float = 10, bold: bool = False, color=_MUTED, x: float = MARGIN, step: float = 14):
            nonlocal y
            page.insert_text((x, y), text, fontsize=size, fontname="hebo" if bold else "helv", color=color)
            y += step

        line(BUSINESS_NAME, size=22, bold=True, color=_INK, step=30)
        line("Pont Saint-Pierre")
        for part in BUSINESS_ADDRESS.split(", "):
            line(part)
        line(settings.email_contact)

        y += 20
        line(f"Facture #{data.invoice_number}", size=16, bold=True, color=_INK, step=20)
        line(f"Émise le {data.issue_date.strftime('%d/%m/%Y')}", size=11, color=_INK)
        line(f"Sortie du {data.service_date} à {data.service_time}", size=11, color=_INK, step=28)

        line("Destinataire", size=12, bold=True, color=_INK, step=16)
        line(data.customer_name, size=11, color=_INK)
        line(data.customer_email, size=11, color=_INK)
        if data.customer_phone:
            line(data.customer_phone, size=11, color=_INK)

        y += 20
        line("Détail de la prestation", size=12, bold=True, color=_INK, step=20)

        columns = (MARGIN, MARGIN + 260, MARGIN + 330, MARGIN + 430)
        table_end = MARGIN + 520

        def row(values: tuple[str, str, str, str], bold: bool = False):
            nonlocal y
            for x, value in zip(columns, values):
                page.insert_text((x, y), value, fontsize=10, fontname="hebo" if bold else "helv", color=_INK)
            y += 16

        def rule():
            nonlocal y
            page.draw_line((MARGIN, y - 10), (table_end, y - 10), color=_RULE, width=0.5)
            y += 4

        row(("Description", "Qté", "PU", "Total"), bold=True)
        rule()
        for label, quantity, unit in _invoice_rows(data):
            row((label, str(quantity), format_euros(unit), format_euros(unit * quantity)))
        rule()
        row(("Total TTC", "", "", format_euros(data.total_price)), bold=True)

        y += 20
        line("Merci pour votre confiance et bonne navigation !", size=10)
        return doc.tobytes()
    finally:
        doc.close()


def render_first_page_png(contents: bytes, dpi: Optional[int] = None) -> bytes:
    """Render page 1 of a PDF as PNG bytes.

    Raises BadRequestError for unreadable, encrypted or empty PDFs.
    """
    try:
        doc = fitz.open(stream=contents, filetype="pdf")
    except Exception as exc:
        raise BadRequestError(f"PDF illisible: {exc}", code="INVALID_PDF") from exc

    try:
        if doc.is_encrypted:
            raise BadRequestError("PDF protégé par mot de passe", code="INVALID_PDF")
        if len(doc) == 0:
            raise BadRequestError("PDF vide", code="INVALID_PDF")
        zoom = (dpi or settings.preview_dpi) / 72  # PyMuPDF default is 72 DPI
        pix = doc[0].get_pixmap(matrix=fitz.Matrix(zoom, zoom), alpha=False)
        png = pix.tobytes("png")
        logger.debug("Rendered PDF preview %dx%d (%d bytes)", pix.width, pix.height, len(png))
        return png
    finally:
        doc.close()
