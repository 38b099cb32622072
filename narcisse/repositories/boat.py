from sqlalchemy import select

from narcisse.domain.boat import Boat
from narcisse.repositories.base import BaseRepository


class BoatRepository(BaseRepository[Boat]):
    model = Boat

    async def list_active(self) -> list[Boat]:
        """Active boats in id order (the departure rotation order)."""
        result = await self._session.execute(
            select(Boat).where(Boat.status == "ACTIVE").order_by(Boat.id.asc())
        )
        return list(result.scalars().all())

    async def list_all(self) -> list[Boat]:
        result = await self._session.execute(select(Boat).order_by(Boat.id.asc()))
        return list(result.scalars().all())
