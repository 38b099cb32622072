"""SQLAlchemy ORM models for employee documents stored in object storage."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from narcisse.db.base import Base
from narcisse.domain.mixins import TimestampMixin, UUIDMixin


class EmployeeDocument(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "employee_documents"

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=False, index=True
    )
    uploaded_by_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    # "CONTRACT" | "ID" | "CERTIFICATE" | "PAYSLIP" | "OTHER"
    category: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    file_name: Mapped[str] = mapped_column(String(200), nullable=False)
    mime_type: Mapped[str] = mapped_column(String(100), nullable=False)
    size: Mapped[int] = mapped_column(Integer, nullable=False)
    checksum: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    storage_key: Mapped[str] = mapped_column(String(500), nullable=False, unique=True)
    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    # "PENDING" | "ACTIVE" | "ARCHIVED"
    status: Mapped[str] = mapped_column(String(20), default="PENDING", nullable=False, index=True)
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    uploaded_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    archived_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    archived_by_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)


class EmployeeDocumentLog(Base, UUIDMixin):
    """Immutable access log for employee documents."""

    __tablename__ = "employee_document_logs"

    document_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)
    # "UPLOAD_URL" | "UPLOAD" | "CONFIRM" | "DOWNLOAD" | "PREVIEW" | "ARCHIVE" | "DELETE"
    action: Mapped[str] = mapped_column(String(20), nullable=False)
    actor_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    target_user_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)
    ip_address: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    details: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
        nullable=False,
    )
