"""Counter (manual) payment helpers: voucher partners, cheques, payload building.

A manual payment payload is what the planning quick-booking form sends as
`paymentMethod` when the method is not a plain string:

    {"provider": "voucher", "methodType": "Hôtel Bristol",
     "metadata": {"voucher": {"partnerId": ..., "reference": ..., ...}}}
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, NamedTuple, Optional


class VoucherPartner(NamedTuple):
    id: str
    label: str
    fixed_value_cents: Optional[int] = None


VOUCHER_PARTNERS: list[VoucherPartner] = [
    VoucherPartner("hotel_bristol", "Hôtel Bristol", 5000),
    VoucherPartner("hotel_riviera", "Hôtel Riviera", 4000),
    VoucherPartner("hotel_astoria", "Hôtel Astoria", 6000),
    VoucherPartner("ancv", "Chèque ANCV"),
    VoucherPartner("city_pass", "City Pass"),
    VoucherPartner("partner_other", "Autre partenaire"),
]

_WHITESPACE = re.compile(r"\s+")


def _partner(partner_id: str) -> Optional[VoucherPartner]:
    return next((p for p in VOUCHER_PARTNERS if p.id == partner_id), None)


def sanitize_text(value: Optional[str]) -> str:
    return _WHITESPACE.sub(" ", value or "").strip()


def format_euro_string(cents: int) -> str:
    return f"{max(0, cents) / 100:.2f}"


def compute_voucher_total(partner_id: str, quantity: int) -> str:
    """Fixed-value vouchers total `value x quantity`; others have no automatic total."""
    partner = _partner(partner_id)
    if partner is None or not partner.fixed_value_cents:
        return ""
    return format_euro_string(partner.fixed_value_cents * max(1, quantity))


def voucher_partner_label(partner_id: str) -> str:
    partner = _partner(partner_id)
    return partner.label if partner else ""


@dataclass
class VoucherDetails:
    partner_id: str = ""
    reference: str = ""
    quantity: int = 1
    total_amount: str = ""
    auto_total: Optional[bool] = None

    def __post_init__(self) -> None:
        if self.auto_total is None:
            partner = _partner(self.partner_id)
            self.auto_total = bool(partner and partner.fixed_value_cents)
        if self.auto_total and not self.total_amount:
            self.total_amount = compute_voucher_total(self.partner_id, self.quantity)


@dataclass
class CheckDetails:
    number: str = ""
    bank: str = ""
    quantity: int = 1
    amount: str = ""


@dataclass
class ManualPaymentState:
    provider: str = ""
    method_type: Optional[str] = None
    voucher: VoucherDetails = field(default_factory=VoucherDetails)
    check: CheckDetails = field(default_factory=CheckDetails)


def validate_manual_payment_state(state: ManualPaymentState) -> Optional[str]:
    """French error message for the first missing field, None when complete."""
    if not state.provider:
        return "Sélectionnez un moyen de paiement."
    if state.provider == "voucher":
        details = state.voucher
        if not details.partner_id:
            return "Sélectionnez l’émetteur du bon."
        if not sanitize_text(details.reference):
            return "Ajoutez la référence du bon."
        if not details.auto_total and not sanitize_text(details.total_amount):
            return "Indiquez le montant couvert par le bon."
    if state.provider == "check":
        if not sanitize_text(state.check.number):
            return "Le numéro du chèque est obligatoire."
    return None


class ManualPaymentBuildResult(NamedTuple):
    ok: bool
    error: Optional[str] = None
    payment_method: Optional[dict[str, Any]] = None


def build_manual_payment_payload(state: ManualPaymentState) -> ManualPaymentBuildResult:
    error = validate_manual_payment_state(state)
    if error:
        return ManualPaymentBuildResult(ok=False, error=error)

    if state.provider == "voucher":
        details = state.voucher
        label = voucher_partner_label(details.partner_id)
        total = (
            compute_voucher_total(details.partner_id, details.quantity)
            if details.auto_total
            else sanitize_text(details.total_amount)
        )
        return ManualPaymentBuildResult(
            ok=True,
            payment_method={
                "provider": "voucher",
                "methodType": label or None,
                "metadata": {
                    "voucher": {
                        "partnerId": details.partner_id,
                        "partnerLabel": label,
                        "reference": sanitize_text(details.reference),
                        "quantity": details.quantity,
                        "totalAmount": total,
                        "autoTotal": details.auto_total,
                    }
                },
            },
        )

    if state.provider == "check":
        details = state.check
        return ManualPaymentBuildResult(
            ok=True,
            payment_method={
                "provider": "check",
                "methodType": "Chèque",
                "metadata": {
                    "check": {
                        "number": sanitize_text(details.number),
                        "bank": sanitize_text(details.bank) or None,
                        "quantity": details.quantity,
                        "amount": sanitize_text(details.amount),
                    }
                },
            },
        )

    return ManualPaymentBuildResult(ok=True, payment_method={"provider": state.provider})


def amount_from_metadata(metadata: Optional[dict[str, Any]], fallback_cents: int) -> int:
    """Cents covered by a voucher/cheque payload, or the booking price when absent."""
    if not metadata:
        return fallback_cents
    raw = None
    if isinstance(metadata.get("voucher"), dict):
        raw = metadata["voucher"].get("totalAmount")
    elif isinstance(metadata.get("check"), dict):
        raw = metadata["check"].get("amount")
    if not raw:
        return fallback_cents
    try:
        return round(float(str(raw).replace(",", ".")) * 100)
    except ValueError:
        return fallback_cents
