"""Alembic async env: autogenerates against every narcisse/domain/* model.

  alembic revision --autogenerate -m "add cash sessions"
  alembic upgrade head
  alembic -x db_url=sqlite+aiosqlite:///./other.db upgrade head
"""

from __future__ import annotations

import asyncio
import logging
from logging.config import fileConfig

from alembic import context
from sqlalchemy.ext.asyncio import create_async_engine

from narcisse.core.config import settings
from narcisse.db.base import Base, enable_sqlite_foreign_keys, is_sqlite

# Importing the package registers bookings, fleet, accounting, CMS and staff tables
import narcisse.domain  # noqa: F401

config = context.config
if config.config_file_name:
    fileConfig(config.config_file_name)

logger = logging.getLogger("alembic.env")
target_metadata = Base.metadata


def _database_url() -> str:
    return context.get_x_argument(as_dictionary=True).get("db_url") or settings.database_url


def _skip_empty_revision(migration_context, revision, directives) -> None:
    if getattr(config.cmd_opts, "autogenerate", False) and directives[0].upgrade_ops.is_empty():
        directives[:] = []
        logger.info("No schema change detected; no revision written")


def _configure(**kwargs) -> None:
    url = _database_url()
    context.configure(
        target_metadata=target_metadata,
        # SQLite cannot ALTER constraints in place
        render_as_batch=is_sqlite(url),
        compare_type=True,
        compare_server_default=True,
        process_revision_directives=_skip_empty_revision,
        **kwargs,
    )


def run_migrations_offline() -> None:
    _configure(url=_database_url(), literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def _run_sync(connection) -> None:
    _configure(connection=connection)
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    url = _database_url()
    engine = create_async_engine(url)
    if is_sqlite(url):
        enable_sqlite_foreign_keys(engine)
    async with engine.connect() as connection:
        await connection.run_sync(_run_sync)
    await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
