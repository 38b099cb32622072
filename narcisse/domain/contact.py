"""SQLAlchemy ORM model for group and private-tour requests sent from the site."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from narcisse.db.base import Base
from narcisse.domain.mixins import TimestampMixin, UUIDMixin


class ContactRequest(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "contact_requests"

    # "group" | "private"
    kind: Mapped[str] = mapped_column(String(20), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    # Requested day as typed in the form (YYYY-MM-DD when it came from the date picker)
    date: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    people: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    lang: Mapped[Optional[str]] = mapped_column(String(5), nullable=True)
    message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # "NEW" | "CONTACTED" | "CLOSED"
    status: Mapped[str] = mapped_column(String(20), default="NEW", nullable=False, index=True)
    booking_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
