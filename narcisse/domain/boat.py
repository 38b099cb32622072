"""SQLAlchemy ORM model for boats (barques) and their maintenance counters."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from narcisse.core.business import DEFAULT_BOAT_CAPACITY
from narcisse.db.base import Base
from narcisse.domain.mixins import TimestampMixin


class Boat(Base, TimestampMixin):
    __tablename__ = "boats"

    # Integer ids: departure rotation follows id order
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, default=DEFAULT_BOAT_CAPACITY, nullable=False)
    # "ACTIVE" | "MAINTENANCE" | "INACTIVE"
    status: Mapped[str] = mapped_column(String(20), default="ACTIVE", nullable=False, index=True)

    total_trips: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    trips_since_service: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    hours_since_service: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    last_charge_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    battery_cycle_days: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
