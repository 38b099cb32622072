"""Generic async repository with soft-delete awareness and pagination."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Generic, TypeVar

from sqlalchemy import delete, func, inspect, select
from sqlalchemy.ext.asyncio import AsyncSession

from narcisse.db.base import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """Generic CRUD repository.

    Soft-deletes: for models with a `deleted_at` column, rows with a value are
    excluded from all standard reads. Models without it are hard-deleted.
    """

    model: type[ModelT]

    def __init__(self, session: AsyncSession):
        self._session = session

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @property
    def session(self) -> AsyncSession:
        return self._session

    def _pk(self):
        return inspect(self.model).primary_key[0]

    def _base_query(self):
        """Return a SELECT excluding soft-deleted rows."""
        q = select(self.model)
        if hasattr(self.model, "deleted_at"):
            q = q.where(self.model.deleted_at.is_(None))
        return q

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def get_by_id(self, entity_id: Any) -> ModelT | None:
        result = await self._session.execute(
            self._base_query().where(self._pk() == entity_id)
        )
        return result.scalars().first()

    async def list(
        self,
        *,
        offset: int = 0,
        limit: int = 20,
        order_by: str = "created_at",
        order: str = "desc",
        filters: dict[str, Any] | None = None,
    ) -> tuple[list[ModelT], int]:
        """Return (items, total_count) with pagination and optional column filters."""
        q = self._base_query()

        # Apply simple equality filters
        if filters:
            for col_name, value in filters.items():
                if value is not None and hasattr(self.model, col_name):
                    q = q.where(getattr(self.model, col_name) == value)

        count_q = select(func.count()).select_from(q.subquery())
        total = (await self._session.execute(count_q)).scalar_one()

        col = getattr(self.model, order_by, None)
        if col is not None:
            q = q.order_by(col.desc() if order == "desc" else col.asc())
        q = q.offset(offset).limit(limit)

        items = (await self._session.execute(q)).scalars().all()
        return list(items), total

    async def all(self, *order_by) -> list[ModelT]:
        q = self._base_query()
        if order_by:
            q = q.order_by(*order_by)
        return list((await self._session.execute(q)).scalars().all())

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    async def create(self, **kwargs: Any) -> ModelT:
        instance = self.model(**kwargs)
        self._session.add(instance)
        await self._session.flush()  # populate id
        await self._session.refresh(instance)
        return instance

    async def update(self, instance: ModelT, **kwargs: Any) -> ModelT:
        for field, value in kwargs.items():
            setattr(instance, field, value)
        await self._session.flush()
        return instance

    async def soft_delete(self, instance: ModelT) -> None:
        instance.deleted_at = datetime.now(timezone.utc)
        await self._session.flush()

    async def delete(self, instance: ModelT) -> None:
        if hasattr(self.model, "deleted_at"):
            await self.soft_delete(instance)
            return
        await self._session.delete(instance)
        await self._session.flush()

    async def delete_where(self, *criteria) -> int:
        result = await self._session.execute(delete(self.model).where(*criteria))
        await self._session.flush()
        return result.rowcount or 0
