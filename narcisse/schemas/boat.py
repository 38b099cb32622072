"""Fleet Pydantic schemas."""


from typing import Literal

from pydantic import Field

from narcisse.schemas.common import CamelModel, UtcDateTime

BoatStatus = Literal["ACTIVE", "MAINTENANCE", "INACTIVE"]


class BoatCreate(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    capacity: int = Field(default=12, ge=1, le=100)
    status: BoatStatus = "ACTIVE"
    battery_cycle_days: int | None = Field(default=None, ge=1, le=30)


class BoatUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    capacity: int | None = Field(default=None, ge=1, le=100)
    status: BoatStatus | None = None
    battery_cycle_days: int | None = Field(default=None, ge=1, le=30)
    last_charge_date: UtcDateTime | None = None
    reset_service: bool = False


class BoatOut(CamelModel):
    id: int
    name: str
    capacity: int
    status: str
    total_trips: int
    trips_since_service: int
    hours_since_service: float
    last_charge_date: UtcDateTime | None = None
    battery_cycle_days: int | None = None
    created_at: UtcDateTime


class BoatWithAlerts(CamelModel):
    boat: BoatOut
    battery_alert: str
    days_since_charge: int
    mechanical_alert: bool


class FleetStats(CamelModel):
    total: int
    critical_batteries: int
    warning_batteries: int
    maintenance: int
    mechanical_alerts: int


class FleetSnapshot(CamelModel):
    generated_at: UtcDateTime
    stats: FleetStats
    boats: list[BoatWithAlerts]


class SlotCapacityOut(CamelModel):
    boat_id: int
    boat_name: str
    capacity: int
    current_occupancy: int
    remaining_capacity: int


class FleetCapacity(CamelModel):
    total_capacity: int
    available_capacity: int
    boats: list[SlotCapacityOut]
