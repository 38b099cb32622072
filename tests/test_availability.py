"""Pure departure availability rules."""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

from narcisse.services.availability import FULL_DAY_REASON, NO_SLOT_REASON, compute_availability

DAY = "2031-06-10"
MIDNIGHT = datetime(2031, 6, 10, tzinfo=timezone.utc)


def boat(boat_id, capacity=12):
    return SimpleNamespace(id=boat_id, capacity=capacity, name=f"Boat {boat_id}")


def booking(boat_id, hhmm, people, language="FR"):
    hour, minute = map(int, hhmm.split(":"))
    start = MIDNIGHT + timedelta(hours=hour, minutes=minute)
    return SimpleNamespace(
        boat_id=boat_id,
        start_time=start,
        end_time=start + timedelta(minutes=25),
        number_of_people=people,
        language=language,
    )


def block(start_hhmm, end_hhmm, scope="specific", reason=None):
    def at(hhmm):
        if hhmm == "24:00":
            return MIDNIGHT + timedelta(days=1)
        hour, minute = map(int, hhmm.split(":"))
        return MIDNIGHT + timedelta(hours=hour, minutes=minute)

    return SimpleNamespace(start=at(start_hhmm), end=at(end_hhmm), scope=scope, reason=reason)


def slots(language="FR", people=2, boats=None, bookings=(), blocks=(), today="2000-01-01", now_minutes=0):
    return compute_availability(
        DAY,
        language,
        people,
        boats if boats is not None else [boat(1), boat(2)],
        list(bookings),
        list(blocks),
        today=today,
        now_minutes=now_minutes,
    )


def test_no_boats_means_no_slots():
    result = slots(boats=[])
    assert result.available_slots == []
    assert result.to_dict() == {"date": DAY, "availableSlots": []}


def test_empty_day_lists_morning_and_afternoon_departures():
    available = slots().available_slots
    assert available[0] == "10:00"
    assert "11:40" in available
    assert available[-1] == "17:40"
    assert len(available) == 37


def test_lunch_gap_is_never_offered():
    available = slots().available_slots
    for hhmm in ("11:50", "12:00", "12:30", "13:00", "13:20"):
        assert hhmm not in available
    assert "13:30" in available


def test_shared_slot_same_language_stays_open():
    result = slots(language="FR", people=2, bookings=[booking(1, "10:00", 4)])
    assert "10:00" in result.available_slots


def test_shared_slot_other_language_is_closed():
    result = slots(language="EN", people=2, bookings=[booking(1, "10:00", 4)])
    assert "10:00" not in result.available_slots


def test_shared_slot_full_boat_is_closed():
    result = slots(language="FR", people=3, bookings=[booking(1, "10:00", 10)])
    assert "10:00" not in result.available_slots


def test_rotation_only_blocks_the_boat_of_the_slot():
    # 10:00 and 10:20 run on boat 1, 10:10 on boat 2
    result = slots(language="EN", bookings=[booking(1, "10:00", 4)])
    assert "10:10" in result.available_slots
    assert "10:20" not in result.available_slots  # boat 1 still out until 10:25 + buffer
    assert "10:40" in result.available_slots


def test_same_day_skips_imminent_departures():
    result = slots(today=DAY, now_minutes=14 * 60)
    assert result.available_slots[0] == "14:10"


def test_full_day_block_returns_its_reason():
    result = slots(blocks=[block("00:00", "24:00", scope="day", reason="Crue de la Lauch")])
    assert result.available_slots == []
    assert result.blocked_reason == "Crue de la Lauch"


def test_full_day_block_default_reason():
    result = slots(blocks=[block("00:00", "24:00", scope="day")])
    assert result.blocked_reason == FULL_DAY_REASON


def test_full_day_reason_comes_from_the_covering_block():
    blocks = [
        block("14:00", "15:00", scope="day", reason="Réunion d'équipe"),
        block("00:00", "24:00", scope="day", reason="Crue de la Lauch"),
    ]
    result = slots(blocks=blocks)
    assert result.available_slots == []
    assert result.blocked_reason == "Crue de la Lauch"


def test_partial_block_removes_overlapping_slots_only():
    result = slots(blocks=[block("10:00", "11:00", reason="Maintenance")])
    assert "10:20" not in result.available_slots
    assert "11:00" in result.available_slots
    assert result.blocked_reason is None


def test_blocked_reason_when_nothing_left():
    result = slots(blocks=[block("09:00", "18:30")])
    assert result.available_slots == []
    assert result.blocked_reason == NO_SLOT_REASON
