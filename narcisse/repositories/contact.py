from typing import Optional

from sqlalchemy import select

from narcisse.domain.contact import ContactRequest
from narcisse.repositories.base import BaseRepository


class ContactRequestRepository(BaseRepository[ContactRequest]):
    model = ContactRequest

    async def list_recent(self, status: Optional[str] = None, limit: int = 50) -> list[ContactRequest]:
        q = select(ContactRequest)
        if status:
            q = q.where(ContactRequest.status == status)
        q = q.order_by(ContactRequest.created_at.desc()).limit(limit)
        return list((await self._session.execute(q)).scalars().all())
