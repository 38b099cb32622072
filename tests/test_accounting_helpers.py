from datetime import date, datetime, timezone
from types import SimpleNamespace

import pytest

from narcisse.core.exceptions import BadRequestError
from narcisse.services.accounting import (
    canonical_json,
    closure_snapshot,
    days_in_range,
    normalize_block_datetime,
    snapshot_hash,
)


def entry(provider, amount, method_type=None):
    return SimpleNamespace(provider=provider, amount=amount, method_type=method_type)


def test_block_datetime_normalization():
    expected = datetime(2031, 6, 10, 9, 30, tzinfo=timezone.utc)
    assert normalize_block_datetime("2031-06-10T09:30") == expected
    assert normalize_block_datetime("2031-06-10T09:30:00Z") == expected
    assert normalize_block_datetime("2031-06-10T09:30:00") == expected


def test_block_datetime_rejects_garbage():
    with pytest.raises(BadRequestError):
        normalize_block_datetime("demain")


def test_days_in_range_is_inclusive():
    days = days_in_range(
        datetime(2031, 6, 10, 22, tzinfo=timezone.utc),
        datetime(2031, 6, 12, 1, tzinfo=timezone.utc),
    )
    assert days == [date(2031, 6, 10), date(2031, 6, 11), date(2031, 6, 12)]


def test_snapshot_groups_vouchers_by_method_type():
    snapshot = closure_snapshot(
        [
            entry("cash", 1800),
            entry("card", 900),
            entry("cash", 400),
            entry("voucher", 5000, "Hôtel Bristol"),
            entry("voucher", 2000, None),
        ]
    )
    assert snapshot == {
        "totals": {"cash": 2200, "card": 900},
        "vouchers": {"Hôtel Bristol": 5000, "voucher": 2000},
        "count": 5,
    }


def test_hash_is_stable_for_the_same_snapshot():
    first = canonical_json({"totals": {"cash": 10, "card": 5}, "vouchers": {}, "count": 2})
    second = canonical_json({"count": 2, "vouchers": {}, "totals": {"card": 5, "cash": 10}})
    assert first == second
    assert snapshot_hash(first) == snapshot_hash(second)
    assert len(snapshot_hash(first)) == 64
    assert snapshot_hash(first) != snapshot_hash(canonical_json({"totals": {}, "vouchers": {}, "count": 0}))
