"""SQLAlchemy ORM model for staff work shifts (monthly hours report)."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from narcisse.db.base import Base
from narcisse.domain.mixins import TimestampMixin, UUIDMixin


class WorkShift(Base, UUIDMixin, TimestampMixin):
    """One worked period of an employee; start/end are Paris wall times."""

    __tablename__ = "work_shifts"

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    break_minutes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_by_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
