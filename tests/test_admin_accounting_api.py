"""Blocked slots, day closures, cash drawer, ledger, stats and the business log."""

from datetime import datetime, timezone

from tests.conftest import auth_headers
from tests.test_bookings_api import DAY, booking_payload


async def test_block_lifecycle(client, boats, admin, employee):
    created = await client.post(
        "/api/admin/blocks",
        json={"start": f"{DAY}T00:00", "end": "2031-06-11T00:00", "scope": "day", "reason": "Crue de la Lauch"},
        headers=auth_headers(admin),
    )
    assert created.status_code == 201
    block = created.json()["data"]
    assert block["scope"] == "day"

    availability = await client.get("/api/availability", params={"date": DAY, "lang": "fr", "adults": 2})
    assert availability.json() == {"date": DAY, "availableSlots": [], "blockedReason": "Crue de la Lauch"}

    listed = await client.get("/api/admin/blocks", headers=auth_headers(employee))
    assert [b["id"] for b in listed.json()["data"]] == [block["id"]]

    updated = await client.put(
        "/api/admin/blocks",
        json={"id": block["id"], "start": f"{DAY}T10:00", "end": f"{DAY}T11:00", "scope": "specific"},
        headers=auth_headers(admin),
    )
    assert updated.status_code == 200
    slots = (await client.get("/api/availability", params={"date": DAY, "lang": "fr", "adults": 2})).json()
    assert "10:20" not in slots["availableSlots"]
    assert "13:30" in slots["availableSlots"]

    deleted = await client.delete("/api/admin/blocks", params={"id": block["id"]}, headers=auth_headers(admin))
    assert deleted.json() == {"success": True}
    slots = (await client.get("/api/availability", params={"date": DAY, "lang": "fr", "adults": 2})).json()
    assert "10:20" in slots["availableSlots"]


async def test_block_end_before_start(client, admin):
    response = await client.post(
        "/api/admin/blocks",
        json={"start": f"{DAY}T12:00", "end": f"{DAY}T11:00", "scope": "specific"},
        headers=auth_headers(admin),
    )
    assert response.status_code == 400


async def test_delete_block_requires_id(client, admin):
    response = await client.delete("/api/admin/blocks", headers=auth_headers(admin))
    assert response.status_code == 400


async def test_employee_cannot_create_blocks(client, employee):
    response = await client.post(
        "/api/admin/blocks",
        json={"start": f"{DAY}T10:00", "end": f"{DAY}T11:00", "scope": "specific"},
        headers=auth_headers(employee),
    )
    assert response.status_code == 403


async def test_ledger_entry_splits_vat(client, admin):
    response = await client.post(
        "/api/admin/ledger",
        json={"eventType": "PAYMENT", "provider": "cash", "amount": 1200, "currency": "eur"},
        headers=auth_headers(admin),
    )
    assert response.status_code == 201
    entry = response.json()["data"]
    assert entry["currency"] == "EUR"
    assert entry["netAmount"] == 1000
    assert entry["vatAmount"] == 200

    listed = await client.get("/api/admin/ledger", headers=auth_headers(admin))
    assert [e["id"] for e in listed.json()["data"]] == [entry["id"]]


async def test_day_closure_is_unique_and_hashed(client, admin):
    await client.post(
        "/api/admin/ledger",
        json={"eventType": "PAYMENT", "provider": "cash", "amount": 1800, "currency": "EUR"},
        headers=auth_headers(admin),
    )
    today = datetime.now(timezone.utc).date().isoformat()

    response = await client.post("/api/admin/closures", json={"day": today}, headers=auth_headers(admin))
    assert response.status_code == 201
    closure = response.json()["data"]
    assert closure["locked"] is True
    assert len(closure["hash"]) == 64
    assert '"cash":1800' in closure["totalsJson"]

    again = await client.post("/api/admin/closures", json={"day": today}, headers=auth_headers(admin))
    assert again.status_code == 409
    assert again.json()["error"]["code"] == "ALREADY_CLOSED"

    listed = await client.get("/api/admin/closures", headers=auth_headers(admin))
    assert len(listed.json()["data"]) == 1


async def test_cash_drawer_variance(client, admin):
    headers = auth_headers(admin)
    opened = await client.post("/api/admin/cash", json={"action": "open", "openingFloat": 10000}, headers=headers)
    assert opened.status_code == 200
    session_id = opened.json()["data"]["id"]

    for kind, amount in (("IN", 2500), ("OUT", 500)):
        movement = await client.post(
            "/api/admin/cash",
            json={"action": "movement", "sessionId": session_id, "kind": kind, "amount": amount},
            headers=headers,
        )
        assert movement.json()["data"]["kind"] == kind

    closed = await client.post(
        "/api/admin/cash",
        json={"action": "close", "sessionId": session_id, "closingCount": 12100},
        headers=headers,
    )
    body = closed.json()["data"]
    assert body["expectedAmount"] == 12000
    assert body["variance"] == 100
    assert len(body["movements"]) == 2

    late = await client.post(
        "/api/admin/cash",
        json={"action": "movement", "sessionId": session_id, "kind": "IN", "amount": 100},
        headers=headers,
    )
    assert late.status_code == 409


async def test_cash_unknown_action(client, admin):
    response = await client.post("/api/admin/cash", json={"action": "count"}, headers=auth_headers(admin))
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "UNKNOWN_ACTION"


async def test_stats_over_a_range(client, boats, admin):
    await client.post("/api/bookings", json=booking_payload("10:00", adults=2))
    await client.post("/api/bookings", json=booking_payload("14:00", adults=3, language="EN"))

    response = await client.get(
        "/api/admin/stats",
        params={"start": "2031-06-01", "end": "2031-06-30"},
        headers=auth_headers(admin),
    )
    assert response.status_code == 200
    stats = response.json()["data"]
    assert stats["kpis"]["bookings"] == 2
    assert stats["kpis"]["people"] == 5
    assert stats["langDist"] == {"FR": 1, "EN": 1}
    assert [p["hour"] for p in stats["byHour"]] == ["10:00", "14:00"]

    english = await client.get(
        "/api/admin/stats",
        params={"start": "2031-06-01", "end": "2031-06-30", "language": "en"},
        headers=auth_headers(admin),
    )
    assert english.json()["data"]["kpis"]["bookings"] == 1


async def test_business_log_feed(client, admin):
    await client.post(
        "/api/admin/blocks",
        json={"start": f"{DAY}T10:00", "end": f"{DAY}T11:00", "scope": "specific"},
        headers=auth_headers(admin),
    )
    response = await client.get("/api/admin/logs", headers=auth_headers(admin))
    assert response.status_code == 200
    actions = [log["action"] for log in response.json()["data"]]
    assert "BLOCK_ADD" in actions
    assert response.json()["meta"]["page"] == 1
