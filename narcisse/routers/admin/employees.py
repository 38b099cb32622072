"""Back-office staff routes: directory, accounts, archive / reactivate."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from narcisse.core.exceptions import ForbiddenError
from narcisse.core.response import DataResponse, listed
from narcisse.core.security import admin_user, has_page_permission, staff_user
from narcisse.db.base import get_db
from narcisse.domain.user import User
from narcisse.schemas.employee import (
    ArchiveRequest,
    DocumentOut,
    EmployeeCreate,
    EmployeeDirectoryEntry,
    EmployeeOut,
)
from narcisse.services.employees import EmployeeService

router = APIRouter(prefix="/employees", tags=["Admin employees"])


def _svc(session: AsyncSession) -> EmployeeService:
    return EmployeeService(session)


@router.get("")
async def list_employees(
    user: User = Depends(staff_user),
    session: AsyncSession = Depends(get_db),
):
    """Full records for admins; employees only get the contact directory."""
    employees = await _svc(session).list_employees()
    schema = EmployeeDirectoryEntry if user.role == "EMPLOYEE" else EmployeeOut
    return listed(employees, schema, dump=True)


@router.post("", response_model=DataResponse[EmployeeOut], status_code=status.HTTP_201_CREATED)
async def create_employee(
    body: EmployeeCreate,
    user: User = Depends(admin_user),
    session: AsyncSession = Depends(get_db),
):
    employee = await _svc(session).create_employee(body, actor=user)
    return {"data": EmployeeOut.model_validate(employee)}


@router.get("/{user_id}", response_model=DataResponse[EmployeeOut])
async def get_employee(
    user_id: str,
    _: User = Depends(admin_user),
    session: AsyncSession = Depends(get_db),
):
    employee = await _svc(session).get_employee(user_id)
    return {"data": EmployeeOut.model_validate(employee)}


@router.post("/{user_id}/archive", response_model=DataResponse[EmployeeOut])
async def archive_employee(
    user_id: str,
    body: ArchiveRequest,
    user: User = Depends(admin_user),
    session: AsyncSession = Depends(get_db),
):
    """Deactivate the account and revoke its tokens (session version bump)."""
    employee = await _svc(session).archive_employee(user_id, body, actor=user)
    return {"data": EmployeeOut.model_validate(employee)}


@router.post("/{user_id}/reactivate", response_model=DataResponse[EmployeeOut])
async def reactivate_employee(
    user_id: str,
    user: User = Depends(admin_user),
    session: AsyncSession = Depends(get_db),
):
    employee = await _svc(session).reactivate_employee(user_id, actor=user)
    return {"data": EmployeeOut.model_validate(employee)}


@router.get("/{user_id}/documents")
async def list_employee_documents(
    user_id: str,
    include_archived: bool = Query(default=False, alias="includeArchived"),
    user: User = Depends(staff_user),
    session: AsyncSession = Depends(get_db),
):
    if not has_page_permission(user, "employees"):
        raise ForbiddenError("Accès refusé")
    documents = await _svc(session).list_documents(user_id, include_archived)
    return listed(documents, DocumentOut, dump=True)
