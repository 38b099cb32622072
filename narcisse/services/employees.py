"""Staff accounts: directory, creation with employee numbers, archive / reactivate."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from narcisse.core.business import STAFF_ROLES
from narcisse.core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from narcisse.core.security import get_password_hash, verify_password
from narcisse.core.timeutils import utcnow
from narcisse.domain.document import EmployeeDocument
from narcisse.domain.user import User
from narcisse.repositories.booking import SequenceRepository
from narcisse.repositories.document import EmployeeDocumentRepository
from narcisse.repositories.user import UserRepository
from narcisse.schemas.employee import ArchiveRequest, EmployeeCreate
from narcisse.services.activity_log import create_log
from narcisse.services.password_policy import evaluate_password

logger = logging.getLogger(__name__)


def format_employee_number(year: int, counter: int) -> str:
    return f"EMP-{year}-{counter:04d}"


class EmployeeService:
    def __init__(self, session: AsyncSession):
        self._session = session
        self._users = UserRepository(session)
        self._documents = EmployeeDocumentRepository(session)

    async def list_employees(self) -> list[User]:
        return await self._users.list_staff()

    async def get_employee(self, user_id: str) -> User:
        user = await self._users.get_by_id(user_id)
        if user is None or user.role not in STAFF_ROLES:
            raise NotFoundError("Employee", user_id)
        return user

    async def next_employee_number(self) -> str:
        year = utcnow().year
        counter = await SequenceRepository(self._session).next_value(f"employee_number_{year}")
        return format_employee_number(year, counter)

    async def create_employee(self, data: EmployeeCreate, actor: User) -> User:
        """ADMIN accounts may only create EMPLOYEE accounts."""
        if await self._users.get_by_email(data.email) is not None:
            raise ConflictError("Email déjà utilisé.", code="EMAIL_TAKEN")

        policy = evaluate_password(data.password, [data.email, data.first_name, data.last_name])
        if not policy.valid:
            raise ValidationError(policy.feedback or "Mot de passe trop faible.")

        role = "EMPLOYEE" if actor.role == "ADMIN" else data.role
        user = await self._users.create(
            email=data.email,
            first_name=data.first_name,
            last_name=data.last_name,
            phone=data.phone,
            password_hash=get_password_hash(data.password),
            role=role,
            employee_number=await self.next_employee_number(),
            hire_date=data.hire_date,
            department=data.department,
            job_title=data.job_title,
            admin_permissions=data.admin_permissions,
            manager_id=actor.id,
        )
        create_log(
            self._session,
            "EMPLOYEE_CREATE",
            f"Création employé {user.first_name} {user.last_name} ({user.email})",
            actor.id,
        )
        return user

    async def archive_employee(self, user_id: str, data: ArchiveRequest, actor: User) -> User:
        user = await self.get_employee(user_id)
        if user.role == "SUPERADMIN":
            raise ForbiddenError("Impossible de désactiver le propriétaire.")
        user = await self._users.update(
            user,
            is_active=False,
            employment_end_date=data.employment_end_date or utcnow(),
            archive_reason=data.reason or user.archive_reason,
            session_version=user.session_version + 1,
        )
        suffix = f" – {data.reason}" if data.reason else ""
        create_log(
            self._session,
            "EMPLOYEE_ARCHIVE",
            f"Archivage {user.first_name} {user.last_name} ({user.email}){suffix}",
            actor.id,
        )
        return user

    async def reactivate_employee(self, user_id: str, actor: User) -> User:
        user = await self.get_employee(user_id)
        user = await self._users.update(
            user,
            is_active=True,
            employment_end_date=None,
            archive_reason=None,
            session_version=user.session_version + 1,
        )
        create_log(
            self._session,
            "EMPLOYEE_REACTIVATE",
            f"Réactivation {user.first_name} {user.last_name} ({user.email})",
            actor.id,
        )
        return user

    async def list_documents(self, user_id: str, include_archived: bool = False) -> list[EmployeeDocument]:
        await self.get_employee(user_id)
        return await self._documents.list_for_user(user_id, include_archived)


async def authenticate(session: AsyncSession, email: str, password: str) -> Optional[User]:
    """Active staff or customer account matching the credentials, else None."""
    user = await UserRepository(session).get_by_email(email)
    if user is None or not user.is_active or not verify_password(password, user.password_hash):
        return None
    return user
