"""Online payment request/response schemas (Stripe, PayPal) and payment history."""


from typing import Any

from pydantic import Field

from narcisse.schemas.accounting import LedgerEntryOut
from narcisse.schemas.common import CamelModel, UtcDateTime


class CreateIntentRequest(CamelModel):
    booking_id: str | None = None


class CreateIntentResponse(CamelModel):
    client_secret: str | None = None
    intent_id: str


class PayPalOrderRequest(CamelModel):
    amount: float | None = Field(default=None, gt=0)
    currency: str = "EUR"


class PayPalOrderResponse(CamelModel):
    order_id: str


class PayPalCaptureRequest(CamelModel):
    order_id: str | None = None
    booking_id: str | None = None


class PayPalCaptureResponse(CamelModel):
    success: bool = True
    order_id: str
    booking_id: str | None = None


class ConfirmResponse(CamelModel):
    success: bool = True
    booking_id: str
    status: str
    email: str | None = None


class PaymentOut(CamelModel):
    id: str
    booking_id: str | None = None
    provider: str
    method_type: str | None = None
    intent_id: str | None = None
    order_id: str | None = None
    amount: int
    refunded_amount: int
    currency: str
    status: str
    created_at: UtcDateTime


class PaymentSummary(CamelModel):
    total_paid: int
    total_refunded: int
    net: int


class PaymentHistory(CamelModel):
    payments: list[PaymentOut]
    ledger: list[LedgerEntryOut]
    summary: PaymentSummary


class RefundRequest(CamelModel):
    amount: int | None = Field(default=None, gt=0)
    reason: str | None = Field(default=None, max_length=500)


class PaymentMetrics(CamelModel):
    total_revenue: int
    total_refunds: int
    total_vat: int
    payment_count: int
    refund_count: int
    by_provider: dict[str, Any]
