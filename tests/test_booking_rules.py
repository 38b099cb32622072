"""Pure booking rules: departure windows, last-minute cut-off, counter payments."""

import pytest

from narcisse.core.exceptions import BookingError
from narcisse.services.booking import should_mark_paid, validate_slot_time

TODAY = "2031-06-10"


def test_departure_inside_the_windows():
    validate_slot_time(10, 0, TODAY, today="2031-06-09")
    validate_slot_time(17, 45, TODAY, today="2031-06-09")


def test_lunch_departure_is_invalid_even_for_staff():
    with pytest.raises(BookingError) as exc:
        validate_slot_time(12, 30, TODAY, staff=True)
    assert exc.value.code == "INVALID_TIME"


def test_same_day_departure_too_close_is_refused():
    with pytest.raises(BookingError) as exc:
        validate_slot_time(14, 0, TODAY, today=TODAY, now_minutes=14 * 60 - 3)
    assert exc.value.code == "TOO_LATE"


def test_same_day_departure_with_enough_notice():
    validate_slot_time(14, 0, TODAY, today=TODAY, now_minutes=14 * 60 - 5)


def test_staff_can_book_the_next_departure():
    validate_slot_time(14, 0, TODAY, staff=True, today=TODAY, now_minutes=14 * 60 - 1)


def test_cut_off_only_applies_to_today():
    validate_slot_time(14, 0, TODAY, today="2031-06-09", now_minutes=14 * 60)


def test_counter_payment_marks_paid_for_instant_methods_only():
    assert should_mark_paid(True, "cash", pending_only=False) is True
    assert should_mark_paid(True, "card", pending_only=False) is False
    assert should_mark_paid(False, "cash", pending_only=False) is False
    assert should_mark_paid(True, "cash", pending_only=True) is False
