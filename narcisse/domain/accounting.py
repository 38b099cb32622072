"""SQLAlchemy ORM models for planning blocks, daily closures and the cash drawer."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from narcisse.db.base import Base
from narcisse.domain.mixins import TimestampMixin, UUIDMixin


def _now() -> datetime:
    return datetime.now(timezone.utc)


class BlockedInterval(Base, UUIDMixin, TimestampMixin):
    """A period during which no departure can be booked."""

    __tablename__ = "blocked_intervals"

    start: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    end: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    # "day" | "morning" | "afternoon" | "specific"
    scope: Mapped[str] = mapped_column(String(20), default="specific", nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    created_by_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)


class DailyClosure(Base, UUIDMixin):
    """Sealed end-of-day snapshot of ledger totals. Locks edits on that day."""

    __tablename__ = "daily_closures"

    day: Mapped[date] = mapped_column(Date, unique=True, nullable=False, index=True)
    closed_by_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    closed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_now, server_default=func.now(), nullable=False
    )
    totals_json: Mapped[str] = mapped_column(Text, nullable=False)
    hash: Mapped[str] = mapped_column(String(64), nullable=False)
    locked: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class CashSession(Base, UUIDMixin):
    __tablename__ = "cash_sessions"

    opened_by_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    opened_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_now, server_default=func.now(), nullable=False, index=True
    )
    opening_float: Mapped[int] = mapped_column(Integer, default=0, nullable=False)  # cents
    closed_by_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    closed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    closing_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    expected_amount: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    variance: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    movements: Mapped[List["CashMovement"]] = relationship(
        back_populates="session", lazy="selectin", order_by="CashMovement.created_at"
    )


class CashMovement(Base, UUIDMixin):
    __tablename__ = "cash_movements"

    session_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("cash_sessions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # "IN" | "OUT"
    kind: Mapped[str] = mapped_column(String(10), nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)  # cents, always positive
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_now, server_default=func.now(), nullable=False
    )

    session: Mapped["CashSession"] = relationship(back_populates="movements", lazy="noload")
