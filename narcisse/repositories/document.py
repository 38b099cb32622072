from sqlalchemy import func, select

from narcisse.domain.document import EmployeeDocument, EmployeeDocumentLog
from narcisse.repositories.base import BaseRepository


class EmployeeDocumentRepository(BaseRepository[EmployeeDocument]):
    model = EmployeeDocument

    async def max_version(self, user_id: str, category: str) -> int:
        q = (
            select(func.max(EmployeeDocument.version))
            .where(EmployeeDocument.user_id == user_id)
            .where(EmployeeDocument.category == category)
        )
        return (await self._session.execute(q)).scalar_one_or_none() or 0

    async def list_for_user(self, user_id: str, include_archived: bool = False) -> list[EmployeeDocument]:
        q = select(EmployeeDocument).where(EmployeeDocument.user_id == user_id)
        if not include_archived:
            q = q.where(EmployeeDocument.status != "ARCHIVED")
        q = q.order_by(EmployeeDocument.category.asc(), EmployeeDocument.version.desc())
        return list((await self._session.execute(q)).scalars().all())


class DocumentLogRepository(BaseRepository[EmployeeDocumentLog]):
    model = EmployeeDocumentLog
