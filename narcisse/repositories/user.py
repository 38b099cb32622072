"""Queries on users: e-mail lookups, staff directory, employee numbering."""

from sqlalchemy import func, select

from narcisse.core.business import STAFF_ROLES
from narcisse.domain.user import User
from narcisse.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    model = User

    async def get_by_email(self, email: str) -> User | None:
        result = await self._session.execute(
            select(User).where(func.lower(User.email) == email.strip().lower())
        )
        return result.scalars().first()

    async def list_staff(self, include_inactive: bool = True) -> list[User]:
        q = select(User).where(User.role.in_(STAFF_ROLES))
        if not include_inactive:
            q = q.where(User.is_active.is_(True))
        q = q.order_by(User.last_name.asc(), User.first_name.asc())
        return list((await self._session.execute(q)).scalars().all())
