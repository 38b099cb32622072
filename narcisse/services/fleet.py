"""Fleet service: departure rotation, slot capacity and boat maintenance counters."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from narcisse.core.business import rotation_index
from narcisse.core.exceptions import BadRequestError, BookingError, NotFoundError
from narcisse.core.metrics import set_boat_capacity
from narcisse.core.timeutils import as_utc, utcnow
from narcisse.domain.boat import Boat
from narcisse.domain.booking import Booking
from narcisse.repositories.boat import BoatRepository
from narcisse.repositories.booking import BookingRepository
from narcisse.services.activity_log import create_log

logger = logging.getLogger(__name__)

DEFAULT_BATTERY_CYCLE = 4
MECHANICAL_TRIPS_THRESHOLD = 500
BOAT_STATUSES = ("ACTIVE", "MAINTENANCE", "INACTIVE")


@dataclass
class BatteryAlert:
    level: str  # "OK" | "WARNING" | "CRITICAL"
    days_since_charge: int


@dataclass
class SlotCapacity:
    boat_id: int
    boat_name: str
    capacity: int
    current_occupancy: int
    remaining_capacity: int

    @property
    def can_accommodate(self) -> bool:
        return self.remaining_capacity > 0


def compute_battery_alert(
    last_charge: datetime,
    cycle_days: Optional[int],
    now: Optional[datetime] = None,
) -> BatteryAlert:
    cycle = max(1, cycle_days or DEFAULT_BATTERY_CYCLE)
    now = now or utcnow()
    days = max(0, (now - as_utc(last_charge)) // timedelta(days=1))
    if days >= cycle:
        return BatteryAlert("CRITICAL", days)
    if days == max(0, cycle - 1):
        return BatteryAlert("WARNING", days)
    return BatteryAlert("OK", days)


def ride_duration_hours(start: datetime, end: datetime, fallback_minutes: int = 30) -> float:
    hours = (as_utc(end) - as_utc(start)).total_seconds() / 3600
    if hours > 0:
        return hours
    return max(fallback_minutes, 1) / 60


def requires_mechanical_service(trips_since_service: int) -> bool:
    return trips_since_service >= MECHANICAL_TRIPS_THRESHOLD


class FleetService:
    def __init__(self, session: AsyncSession):
        self._session = session
        self._repo = BoatRepository(session)
        self._bookings = BookingRepository(session)

    # ------------------------------------------------------------------
    # Booking flow
    # ------------------------------------------------------------------

    async def list_active(self) -> list[Boat]:
        return await self._repo.list_active()

    async def select_boat_for_slot(self, hour: int, minute: int, forced_boat_id: Optional[int] = None) -> Boat:
        """Forced boat when it is active, else the boat whose turn it is."""
        boats = await self._repo.list_active()
        if not boats:
            raise BookingError("Aucune barque active", "NO_BOATS")
        if forced_boat_id is not None:
            forced = next((b for b in boats if b.id == forced_boat_id), None)
            if forced is not None:
                return forced
            logger.info("Forced boat %s is not active, falling back to rotation", forced_boat_id)
        return boats[rotation_index(hour * 60 + minute, len(boats))]

    async def get_slot_capacity(self, boat: Boat, start: datetime, end: datetime) -> SlotCapacity:
        seated = await self._bookings.find_overlapping(boat.id, start, end)
        occupancy = sum(b.number_of_people for b in seated)
        return SlotCapacity(
            boat_id=boat.id,
            boat_name=boat.name,
            capacity=boat.capacity,
            current_occupancy=occupancy,
            remaining_capacity=boat.capacity - occupancy,
        )

    async def record_trip(self, booking: Booking, duration_minutes: Optional[int] = None) -> Optional[Boat]:
        """Bump the maintenance counters of the booking's boat after a completed tour."""
        boat = booking.boat or await self._repo.get_by_id(booking.boat_id)
        if boat is None:
            return None
        if duration_minutes:
            hours = duration_minutes / 60
        else:
            hours = ride_duration_hours(booking.start_time, booking.end_time)
        return await self._repo.update(
            boat,
            total_trips=boat.total_trips + 1,
            trips_since_service=boat.trips_since_service + 1,
            hours_since_service=boat.hours_since_service + hours,
        )

    # ------------------------------------------------------------------
    # Back-office
    # ------------------------------------------------------------------

    def describe(self, boat: Boat, now: Optional[datetime] = None) -> dict[str, Any]:
        alert = compute_battery_alert(boat.last_charge_date or boat.created_at, boat.battery_cycle_days, now)
        return {
            "boat": boat,
            "battery_alert": alert.level,
            "days_since_charge": alert.days_since_charge,
            "mechanical_alert": requires_mechanical_service(boat.trips_since_service),
        }

    async def fleet_snapshot(self) -> dict[str, Any]:
        now = utcnow()
        boats = [self.describe(b, now) for b in await self._repo.list_all()]
        stats = {
            "total": len(boats),
            "critical_batteries": sum(1 for b in boats if b["battery_alert"] == "CRITICAL"),
            "warning_batteries": sum(1 for b in boats if b["battery_alert"] == "WARNING"),
            "maintenance": sum(1 for b in boats if b["boat"].status == "MAINTENANCE"),
            "mechanical_alerts": sum(1 for b in boats if b["mechanical_alert"]),
        }
        return {"generated_at": now, "stats": stats, "boats": boats}

    async def fleet_capacity_for_slot(self, start: datetime, end: datetime) -> dict[str, Any]:
        """Seats taken and left on every active boat for one departure window."""
        slots = [await self.get_slot_capacity(boat, start, end) for boat in await self.list_active()]
        total = sum(s.capacity for s in slots)
        return {
            "total_capacity": total,
            "available_capacity": total - sum(s.current_occupancy for s in slots),
            "boats": [asdict(s) for s in slots],
        }

    async def get_boat(self, boat_id: int) -> Boat:
        boat = await self._repo.get_by_id(boat_id)
        if boat is None:
            raise NotFoundError("Boat", str(boat_id))
        return boat

    async def create_boat(self, data: dict[str, Any], actor_id: Optional[str] = None) -> Boat:
        status = data.get("status") or "ACTIVE"
        if status not in BOAT_STATUSES:
            raise BadRequestError(f"Statut invalide: {status}")
        data.setdefault("last_charge_date", utcnow())
        boat = await self._repo.create(**data)
        set_boat_capacity(boat.name, boat.capacity)
        create_log(self._session, "BOAT_CREATE", f"Barque {boat.name} ({boat.capacity} places)", actor_id)
        return boat

    async def update_boat(self, boat_id: int, data: dict[str, Any], actor_id: Optional[str] = None) -> Boat:
        boat = await self.get_boat(boat_id)
        status = data.get("status")
        if status is not None and status not in BOAT_STATUSES:
            raise BadRequestError(f"Statut invalide: {status}")
        if data.pop("reset_service", False):
            data["trips_since_service"] = 0
            data["hours_since_service"] = 0.0
        boat = await self._repo.update(boat, **data)
        set_boat_capacity(boat.name, boat.capacity)
        create_log(self._session, "BOAT_UPDATE", f"Barque {boat.name}: {', '.join(sorted(data)) or 'aucun champ'}", actor_id)
        return boat

    async def charge_boat(self, boat_id: int, actor_id: Optional[str] = None) -> Boat:
        boat = await self.get_boat(boat_id)
        boat = await self._repo.update(boat, last_charge_date=utcnow())
        create_log(self._session, "BOAT_CHARGE", f"Charge enregistrée pour {boat.name}", actor_id)
        return boat
