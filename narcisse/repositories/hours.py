from datetime import datetime

from sqlalchemy import select

from narcisse.domain.hours import WorkShift
from narcisse.repositories.base import BaseRepository


class WorkShiftRepository(BaseRepository[WorkShift]):
    model = WorkShift

    async def list_starting_between(self, start: datetime, end: datetime) -> list[WorkShift]:
        """Shifts with start <= start_time < end, oldest first."""
        result = await self._session.execute(
            select(WorkShift)
            .where(WorkShift.start_time >= start)
            .where(WorkShift.start_time < end)
            .order_by(WorkShift.start_time.asc())
        )
        return list(result.scalars().all())
