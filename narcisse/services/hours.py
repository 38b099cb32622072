"""Staff work hours: shift entry and the monthly report used for payroll."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from narcisse.core.business import STAFF_ROLES
from narcisse.core.exceptions import BadRequestError, NotFoundError
from narcisse.core.timeutils import as_utc, parse_paris_wall_date
from narcisse.domain.hours import WorkShift
from narcisse.domain.user import User
from narcisse.repositories.hours import WorkShiftRepository
from narcisse.repositories.user import UserRepository
from narcisse.schemas.employee import WorkShiftCreate
from narcisse.services.activity_log import create_log

logger = logging.getLogger(__name__)

_MONTH = re.compile(r"^(\d{4})-(\d{2})$")


def month_bounds(month: Optional[str]) -> tuple[datetime, datetime]:
    """`YYYY-MM` → [first day 00:00, first day of next month 00:00) as wall instants."""
    match = _MONTH.match(month or "")
    if not match:
        raise BadRequestError("Mois manquant ou invalide (AAAA-MM)")
    year, number = int(match.group(1)), int(match.group(2))
    if not 1 <= number <= 12:
        raise BadRequestError("Mois manquant ou invalide (AAAA-MM)")
    start = datetime(year, number, 1, tzinfo=timezone.utc)
    end = datetime(year + number // 12, number % 12 + 1, 1, tzinfo=timezone.utc)
    return start, end


def effective_minutes(shift: WorkShift) -> int:
    """Worked minutes minus the break, never negative."""
    raw = int((as_utc(shift.end_time) - as_utc(shift.start_time)).total_seconds() // 60)
    return max(0, raw - shift.break_minutes)


@dataclass
class HoursRow:
    user: User
    total_minutes: int = 0
    details: list[WorkShift] = field(default_factory=list)

    @property
    def total_hours(self) -> float:
        return round(self.total_minutes / 60, 2)

    @property
    def shifts_count(self) -> int:
        return len(self.details)


def summarize_hours(employees: Sequence[User], shifts: Sequence[WorkShift]) -> list[HoursRow]:
    """One row per employee, including those without any shift this month."""
    rows = {emp.id: HoursRow(user=emp) for emp in employees}
    for shift in shifts:
        row = rows.get(shift.user_id)
        if row is None:
            continue
        row.details.append(shift)
        row.total_minutes += effective_minutes(shift)
    return list(rows.values())


class HoursService:
    def __init__(self, session: AsyncSession):
        self._session = session
        self._shifts = WorkShiftRepository(session)
        self._users = UserRepository(session)

    async def add_shift(self, data: WorkShiftCreate, actor_id: Optional[str] = None) -> WorkShift:
        employee = await self._users.get_by_id(data.user_id)
        if employee is None or employee.role not in STAFF_ROLES:
            raise NotFoundError("Employee", data.user_id)

        start = parse_paris_wall_date(data.date, data.start).instant
        end = parse_paris_wall_date(data.date, data.end).instant
        if end <= start:
            raise BadRequestError("L'heure de fin doit être après le début.", code="INVALID_SHIFT")
        if data.break_time >= (end - start).total_seconds() // 60:
            raise BadRequestError(
                "La pause ne peut pas être plus longue que le temps de travail.", code="INVALID_BREAK"
            )

        shift = await self._shifts.create(
            user_id=employee.id,
            start_time=start,
            end_time=end,
            break_minutes=data.break_time,
            note=data.note,
            created_by_id=actor_id,
        )
        create_log(self._session, "ADD_SHIFT", f"Ajout heures pour {employee.email} ({data.date})", actor_id)
        logger.info("Shift %s-%s on %s recorded for %s", data.start, data.end, data.date, employee.id)
        return shift

    async def delete_shift(self, shift_id: str, actor_id: Optional[str] = None) -> None:
        shift = await self._shifts.get_by_id(shift_id)
        if shift is None:
            raise NotFoundError("Work shift", shift_id)
        await self._shifts.delete(shift)
        create_log(self._session, "DELETE_SHIFT", f"Suppression du créneau {shift_id}", actor_id)

    async def monthly_report(self, month: Optional[str]) -> list[HoursRow]:
        start, end = month_bounds(month)
        employees = await self._users.list_staff()
        shifts = await self._shifts.list_starting_between(start, end)
        return summarize_hours(employees, shifts)
