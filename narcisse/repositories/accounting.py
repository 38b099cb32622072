from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import select

from narcisse.domain.accounting import BlockedInterval, CashMovement, CashSession, DailyClosure
from narcisse.repositories.base import BaseRepository


class BlockRepository(BaseRepository[BlockedInterval]):
    model = BlockedInterval

    async def list_intersecting(self, start: datetime, end: datetime) -> list[BlockedInterval]:
        """Blocks with block.start < end and block.end > start."""
        result = await self._session.execute(
            select(BlockedInterval)
            .where(BlockedInterval.start < end)
            .where(BlockedInterval.end > start)
            .order_by(BlockedInterval.start.asc())
        )
        return list(result.scalars().all())

    async def list_recent_first(self) -> list[BlockedInterval]:
        return await self.all(BlockedInterval.start.desc())


class ClosureRepository(BaseRepository[DailyClosure]):
    model = DailyClosure

    async def get_by_day(self, day: date) -> DailyClosure | None:
        result = await self._session.execute(select(DailyClosure).where(DailyClosure.day == day))
        return result.scalars().first()

    async def list_recent(self, limit: int = 60) -> list[DailyClosure]:
        result = await self._session.execute(
            select(DailyClosure).order_by(DailyClosure.day.desc()).limit(limit)
        )
        return list(result.scalars().all())


class CashSessionRepository(BaseRepository[CashSession]):
    model = CashSession

    async def list_recent(self, limit: int = 20) -> list[CashSession]:
        result = await self._session.execute(
            select(CashSession).order_by(CashSession.opened_at.desc()).limit(limit)
        )
        return list(result.scalars().all())

    async def reload(self, session_id: str) -> CashSession:
        result = await self._session.execute(
            select(CashSession)
            .where(CashSession.id == session_id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().one()


class CashMovementRepository(BaseRepository[CashMovement]):
    model = CashMovement
