"""Back-office accounting schemas: planning blocks, daily closures, cash drawer, ledger, stats."""


import datetime as dt
from typing import Any, Literal

from pydantic import Field, field_validator

from narcisse.schemas.common import CamelModel, UtcDateTime, clean_string, strip_script_tags

BlockScope = Literal["day", "morning", "afternoon", "specific"]


def _reason(value: Any) -> Any:
    return strip_script_tags(clean_string(value, 200)) if isinstance(value, str) else value


# ---------------------------------------------------------------------------
# Blocks
# ---------------------------------------------------------------------------

class BlockCreate(CamelModel):
    # datetime-local strings from the planning form; normalized by the service
    start: str = Field(min_length=10)
    end: str = Field(min_length=10)
    scope: BlockScope
    reason: str | None = Field(default=None, max_length=200)

    @field_validator("reason", mode="before")
    @classmethod
    def _clean_reason(cls, value: Any) -> Any:
        return _reason(value)


class BlockUpdate(CamelModel):
    id: str
    start: str | None = None
    end: str | None = None
    scope: BlockScope | None = None
    reason: str | None = Field(default=None, max_length=200)

    @field_validator("reason", mode="before")
    @classmethod
    def _clean_reason(cls, value: Any) -> Any:
        return _reason(value)


class BlockOut(CamelModel):
    id: str
    start: UtcDateTime
    end: UtcDateTime
    scope: str
    reason: str | None = None
    created_by_id: str | None = None
    created_at: UtcDateTime


# ---------------------------------------------------------------------------
# Closures
# ---------------------------------------------------------------------------

class ClosureRequest(CamelModel):
    day: dt.date


class ClosureOut(CamelModel):
    id: str
    day: dt.date
    closed_by_id: str | None = None
    closed_at: UtcDateTime
    totals_json: str
    hash: str
    locked: bool


# ---------------------------------------------------------------------------
# Cash drawer
# ---------------------------------------------------------------------------

class CashAction(CamelModel):
    """`open {openingFloat}` | `close {sessionId, closingCount}` | `movement {sessionId, kind, amount, note}`."""

    action: str
    opening_float: int | None = Field(default=None, ge=0)
    session_id: str | None = None
    closing_count: int | None = Field(default=None, ge=0)
    kind: Literal["IN", "OUT"] | None = None
    amount: int | None = Field(default=None, gt=0)
    note: str | None = Field(default=None, max_length=500)


class CashMovementOut(CamelModel):
    id: str
    session_id: str
    kind: str
    amount: int
    note: str | None = None
    created_at: UtcDateTime


class CashSessionOut(CamelModel):
    id: str
    opened_by_id: str | None = None
    opened_at: UtcDateTime
    opening_float: int
    closed_by_id: str | None = None
    closed_at: UtcDateTime | None = None
    closing_count: int | None = None
    expected_amount: int | None = None
    variance: int | None = None
    movements: list[CashMovementOut] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------

class LedgerEntryCreate(CamelModel):
    event_type: str = Field(min_length=1, max_length=20)
    provider: str = Field(min_length=1, max_length=30)
    amount: int
    currency: str = Field(min_length=3, max_length=3)
    booking_id: str | None = None
    payment_id: str | None = None
    method_type: str | None = Field(default=None, max_length=30)
    note: str | None = Field(default=None, max_length=1000)


class LedgerEntryOut(CamelModel):
    id: str
    event_type: str
    booking_id: str | None = None
    payment_id: str | None = None
    provider: str
    method_type: str | None = None
    amount: int
    currency: str
    vat_rate: float | None = None
    net_amount: int | None = None
    vat_amount: int | None = None
    gross_amount: int | None = None
    receipt_no: int | None = None
    actor_id: str | None = None
    note: str | None = None
    occurred_at: UtcDateTime


class LogOut(CamelModel):
    id: str
    action: str
    details: str | None = None
    user_id: str | None = None
    created_at: UtcDateTime


# ---------------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------------

class StatsKpis(CamelModel):
    bookings: int
    embarked: int
    no_show: int
    cancelled: int
    people: int
    adults: int
    children: int
    babies: int
    revenue: float
    avg_per_booking: int
    avg_per_person: int


class DailyPoint(CamelModel):
    date: str
    bookings: int
    revenue: float


class HourlyPoint(CamelModel):
    hour: str
    count: int
    revenue: float


class StatsOut(CamelModel):
    kpis: StatsKpis
    status_dist: dict[str, int]
    lang_dist: dict[str, int]
    series_daily: list[DailyPoint]
    by_hour: list[HourlyPoint]
