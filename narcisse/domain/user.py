"""SQLAlchemy ORM model for users (customers and staff share one table)."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional

from sqlalchemy import Boolean, Date, DateTime, Integer, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from narcisse.db.base import Base
from narcisse.domain.mixins import TimestampMixin, UUIDMixin


class User(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    first_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    password_hash: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # "CLIENT" | "EMPLOYEE" | "ADMIN" | "SUPERADMIN"
    role: Mapped[str] = mapped_column(String(20), default="CLIENT", nullable=False, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    # Bumped on archive so issued tokens stop working
    session_version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    # {"pages": ["planning", "employees", ...]} for EMPLOYEE accounts
    admin_permissions: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)

    # Employee record
    employee_number: Mapped[Optional[str]] = mapped_column(String(20), unique=True, nullable=True)
    job_title: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    department: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    hire_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    employment_end_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    archive_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    manager_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)

    @property
    def is_staff(self) -> bool:
        return self.role in {"EMPLOYEE", "ADMIN", "SUPERADMIN"}

    @property
    def display_name(self) -> str:
        name = " ".join(part for part in (self.first_name, self.last_name) if part)
        return name or self.email
