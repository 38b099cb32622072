"""Async SQLAlchemy engine, session helpers, declarative Base, and FastAPI dependency."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy import MetaData, event
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from narcisse.core.cache import discard_pending, flush_after_commit
from narcisse.core.config import settings

# Named constraints so Alembic batch migrations can alter SQLite tables
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


def is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def enable_sqlite_foreign_keys(async_engine) -> None:
    """Payments and cash movements cascade with their parent rows; SQLite needs the pragma per connection."""

    @event.listens_for(async_engine.sync_engine, "connect")
    def _set_pragma(dbapi_connection, _record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------
if is_sqlite(settings.database_url):
    engine = create_async_engine(
        settings.database_url,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_foreign_keys(engine)
else:
    engine = create_async_engine(
        settings.database_url,
        pool_pre_ping=True,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
    )

async_session_factory = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    """All ORM models inherit from this base."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)


@asynccontextmanager
async def session_scope(factory: async_sessionmaker = async_session_factory) -> AsyncGenerator[AsyncSession, None]:
    """One transaction; cache invalidations queued on the session run after the commit."""
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            discard_pending(session)
            await session.rollback()
            raise
        await flush_after_commit(session)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session: booking + sequence, document versions and closures commit together."""
    async with session_scope() as session:
        yield session
