"""SQLAlchemy ORM models for CMS content (draft/published pairs)."""

from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import Boolean, Integer, JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from narcisse.db.base import Base
from narcisse.domain.mixins import SoftDeleteMixin, TimestampMixin, UUIDMixin


class HeroSlide(Base, UUIDMixin, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "hero_slides"

    # Translation records: {"fr": "...", "en": "...", "de": "..."}
    title: Mapped[Any] = mapped_column(JSON, nullable=False, default=dict)
    subtitle: Mapped[Any] = mapped_column(JSON, nullable=False, default=dict)
    image_desktop: Mapped[str] = mapped_column(String(500), nullable=False)
    image_mobile: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    draft_payload: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)


class Partner(Base, UUIDMixin, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "partners"

    name: Mapped[str] = mapped_column(String(150), nullable=False)
    logo_url: Mapped[str] = mapped_column(String(500), nullable=False)
    website_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    is_visible: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    draft_data: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)


class SiteConfig(Base, TimestampMixin):
    __tablename__ = "site_config"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    label: Mapped[str] = mapped_column(String(150), nullable=False)
    type: Mapped[str] = mapped_column(String(20), default="text", nullable=False)
    group: Mapped[str] = mapped_column(String(50), default="default", nullable=False)
    published_values: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    draft_values: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
