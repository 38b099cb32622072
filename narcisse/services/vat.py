"""VAT breakdown of gross amounts (cents)."""

from typing import NamedTuple

from narcisse.core.config import settings


class VatBreakdown(NamedTuple):
    rate_percent: float
    net: int
    vat: int
    gross: int


def get_vat_rate() -> float:
    return settings.vat_rate


def compute_vat_from_gross(gross_cents: int, rate_percent: float | None = None) -> VatBreakdown:
    rate = get_vat_rate() if rate_percent is None else rate_percent
    net = round(gross_cents / (1 + rate / 100))
    return VatBreakdown(rate_percent=rate, net=net, vat=gross_cents - net, gross=gross_cents)
