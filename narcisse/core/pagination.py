"""Pagination and date-range query helpers for list endpoints."""


from datetime import date, datetime, time, timedelta, timezone

from fastapi import Query
from pydantic import BaseModel

from narcisse.core.exceptions import BadRequestError


class PaginationParams:
    """FastAPI dependency for `?page=1&limit=50&sort=created_at&order=desc`."""

    def __init__(
        self,
        page: int = Query(default=1, ge=1, description="Page number (1-based)"),
        limit: int = Query(default=50, ge=1, le=500, description="Items per page"),
        sort: str = Query(default="created_at", description="Sort field"),
        order: str = Query(default="desc", pattern="^(asc|desc)$", description="Sort order"),
    ):
        self.page = page
        self.limit = limit
        self.sort = sort
        self.order = order

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class DateRangeParams:
    """FastAPI dependency for `?start=YYYY-MM-DD&end=YYYY-MM-DD` (both inclusive).

    Bounds are UTC wall instants, the same convention used for departure times.
    """

    def __init__(
        self,
        start: date | None = Query(default=None, description="First day (inclusive)"),
        end: date | None = Query(default=None, description="Last day (inclusive)"),
    ):
        if start and end and end < start:
            raise BadRequestError("La date de fin doit suivre la date de début.")
        self.start = start
        self.end = end

    @property
    def start_instant(self) -> datetime | None:
        if self.start is None:
            return None
        return datetime.combine(self.start, time.min, tzinfo=timezone.utc)

    @property
    def end_instant(self) -> datetime | None:
        """Exclusive upper bound: midnight after the last day."""
        if self.end is None:
            return None
        return datetime.combine(self.end + timedelta(days=1), time.min, tzinfo=timezone.utc)


class PageMeta(BaseModel):
    total: int
    page: int
    limit: int
    pages: int

    model_config = {"populate_by_name": True}
