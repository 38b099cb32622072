"""SQLAlchemy ORM models for bookings and named counters."""

from __future__ import annotations

import datetime as dt
from datetime import datetime
from typing import List, Optional

from sqlalchemy import Boolean, Date, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from narcisse.db.base import Base
from narcisse.domain.mixins import TimestampMixin, UUIDMixin


class Booking(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "bookings"

    public_reference: Mapped[Optional[str]] = mapped_column(String(20), unique=True, nullable=True, index=True)

    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    # Wall instants (Paris wall clock tagged UTC)
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    number_of_people: Mapped[int] = mapped_column(Integer, nullable=False)
    adults: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    children: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    babies: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    language: Mapped[str] = mapped_column(String(5), default="FR", nullable=False)
    total_price: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)

    # "PENDING" | "CONFIRMED" | "CANCELLED" | "COMPLETED"
    status: Mapped[str] = mapped_column(String(20), default="CONFIRMED", nullable=False, index=True)
    # "CONFIRMED" | "EMBARQUED" | "NO_SHOW"
    checkin_status: Mapped[str] = mapped_column(String(20), default="CONFIRMED", nullable=False)
    is_paid: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_private: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    invoice_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    confirmation_email_sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    boat_id: Mapped[int] = mapped_column(ForeignKey("boats.id"), nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False, index=True)

    boat: Mapped["Boat"] = relationship(lazy="selectin")
    user: Mapped["User"] = relationship(lazy="selectin")
    payments: Mapped[List["Payment"]] = relationship(
        back_populates="booking", lazy="noload", passive_deletes=True
    )


class Sequence(Base):
    """Named monotonic counter (booking references, receipts, employee numbers)."""

    __tablename__ = "sequences"

    name: Mapped[str] = mapped_column(String(64), primary_key=True)
    current: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
