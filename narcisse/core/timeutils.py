"""Europe/Paris wall-clock helpers.

Departure times are stored as *wall instants*: the Paris wall-clock time tagged
UTC (a 10:00 departure in Colmar is stored as 10:00Z). Everything that compares
against a departure therefore works on wall instants too.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import NamedTuple
from zoneinfo import ZoneInfo

from narcisse.core.exceptions import BadRequestError

PARIS = ZoneInfo("Europe/Paris")


class ParisNowParts(NamedTuple):
    year: int
    month: int
    day: int
    hour: int
    minute: int


class WallDate(NamedTuple):
    instant: datetime
    hour: int
    minute: int


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes coming back from SQLite."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def paris_now() -> datetime:
    return datetime.now(PARIS)


def paris_now_parts() -> ParisNowParts:
    now = paris_now()
    return ParisNowParts(now.year, now.month, now.day, now.hour, now.minute)


def paris_now_wall() -> datetime:
    """Current Paris wall-clock time as a wall instant (minute precision)."""
    parts = paris_now_parts()
    return datetime(parts.year, parts.month, parts.day, parts.hour, parts.minute, tzinfo=timezone.utc)


def paris_today_iso() -> str:
    parts = paris_now_parts()
    return f"{parts.year:04d}-{parts.month:02d}-{parts.day:02d}"


def paris_now_minutes() -> int:
    parts = paris_now_parts()
    return parts.hour * 60 + parts.minute


def parse_iso_day(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise BadRequestError(f"Date invalide: {value}") from exc


def parse_paris_wall_date(day: str, hhmm: str) -> WallDate:
    """Turn `YYYY-MM-DD` + `HH:MM` into a wall instant."""
    parsed_day = parse_iso_day(day)
    try:
        hour_s, minute_s = hhmm.split(":")[:2]
        hour, minute = int(hour_s), int(minute_s)
        wall = time(hour, minute)
    except ValueError as exc:
        raise BadRequestError(f"Heure invalide: {hhmm}") from exc
    instant = datetime.combine(parsed_day, wall, tzinfo=timezone.utc)
    return WallDate(instant=instant, hour=hour, minute=minute)


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """[00:00, next 00:00) of a day as wall instants."""
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


def hhmm(value: datetime) -> str:
    return value.strftime("%H:%M")


def format_paris_date(value: datetime) -> str:
    """`dd/mm/yyyy` of a wall instant."""
    return as_utc(value).strftime("%d/%m/%Y")
