"""SQLAlchemy ORM models for payments and the append-only payment ledger."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import DateTime, Float, ForeignKey, Integer, JSON, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from narcisse.db.base import Base
from narcisse.domain.mixins import TimestampMixin, UUIDMixin


class Payment(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "payments"

    booking_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("bookings.id", ondelete="CASCADE"), nullable=True, index=True
    )
    # "stripe" | "paypal" | "cash" | "voucher" | "check" | "manual" ...
    provider: Mapped[str] = mapped_column(String(30), nullable=False)
    method_type: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    intent_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    order_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)  # cents
    refunded_amount: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="EUR", nullable=False)
    # Mirrors the provider status: "succeeded" | "requires_payment_method" | "cancelled" | "refunded"
    status: Mapped[str] = mapped_column(String(40), nullable=False)
    raw_payload: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)

    booking: Mapped[Optional["Booking"]] = relationship(back_populates="payments", lazy="noload")


class PaymentLedger(Base, UUIDMixin):
    """One accounting event. Refunds are negative amounts; rows are never updated."""

    __tablename__ = "payment_ledger"

    # "PAYMENT" | "PAID" | "REFUND" | "ADJUSTMENT"
    event_type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    booking_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)
    payment_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)
    provider: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    method_type: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)  # signed cents
    currency: Mapped[str] = mapped_column(String(3), default="EUR", nullable=False)

    vat_rate: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    net_amount: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    vat_amount: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    gross_amount: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    receipt_no: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    actor_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
        nullable=False,
        index=True,
    )
