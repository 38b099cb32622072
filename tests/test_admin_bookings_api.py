"""Back-office planning: listing, edits, boarding and closure lock."""

from tests.conftest import auth_headers
from tests.test_bookings_api import DAY, booking_payload


async def _book(client, **extra) -> str:
    response = await client.post("/api/bookings", json=booking_payload(**extra))
    assert response.status_code == 200
    return response.json()["bookingId"]


async def test_planning_lists_the_day(client, boats, employee):
    await _book(client, time="10:00")
    await _book(client, time="10:10")
    response = await client.get(
        "/api/admin/bookings",
        params={"start": DAY, "end": DAY},
        headers=auth_headers(employee),
    )
    assert response.status_code == 200
    body = response.json()
    assert body["meta"]["total"] == 2
    assert [b["startTime"][11:16] for b in body["data"]] == ["10:00", "10:10"]


async def test_planning_filters_by_boat(client, boats, employee):
    await _book(client, time="10:00")
    await _book(client, time="10:10")
    response = await client.get(
        "/api/admin/bookings",
        params={"boatId": boats[1].id},
        headers=auth_headers(employee),
    )
    assert response.json()["meta"]["total"] == 1


async def test_lookup_by_public_reference(client, boats, employee):
    booking_id = await _book(client)
    response = await client.get("/api/admin/bookings/sn-31-0001", headers=auth_headers(employee))
    assert response.status_code == 200
    assert response.json()["data"]["id"] == booking_id


async def test_unknown_booking(client, employee):
    response = await client.get("/api/admin/bookings/SN-31-9999", headers=auth_headers(employee))
    assert response.status_code == 404


async def test_checkin_and_no_show(client, boats, employee):
    booking_id = await _book(client)
    response = await client.post(f"/api/admin/bookings/{booking_id}/checkin", headers=auth_headers(employee))
    assert response.json()["data"]["checkinStatus"] == "EMBARQUED"

    response = await client.post(
        f"/api/admin/bookings/{booking_id}/checkin",
        json={"status": "NO_SHOW"},
        headers=auth_headers(employee),
    )
    assert response.json()["data"]["checkinStatus"] == "NO_SHOW"


async def test_complete_counts_the_trip_once(client, boats, employee, admin):
    booking_id = await _book(client)
    response = await client.post(f"/api/admin/bookings/{booking_id}/complete", headers=auth_headers(employee))
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "COMPLETED"
    assert response.json()["alreadyCompleted"] is False

    again = await client.post(f"/api/admin/bookings/{booking_id}/complete", headers=auth_headers(employee))
    assert again.json()["alreadyCompleted"] is True

    fleet = await client.get("/api/admin/boats", headers=auth_headers(admin))
    narcisse = next(b for b in fleet.json()["data"]["boats"] if b["boat"]["id"] == boats[0].id)
    assert narcisse["boat"]["totalTrips"] == 1
    assert narcisse["boat"]["tripsSinceService"] == 1


async def test_update_party_reprices(client, boats, admin):
    booking_id = await _book(client, adults=2)
    before = (await client.get(f"/api/admin/bookings/{booking_id}", headers=auth_headers(admin))).json()["data"]

    response = await client.patch(
        f"/api/admin/bookings/{booking_id}",
        json={"adults": 4},
        headers=auth_headers(admin),
    )
    assert response.status_code == 200
    after = response.json()["data"]
    assert after["numberOfPeople"] == 4
    assert after["totalPrice"] == before["totalPrice"] * 2


async def test_move_booking(client, boats, admin):
    booking_id = await _book(client)
    response = await client.patch(
        f"/api/admin/bookings/{booking_id}",
        json={"date": DAY, "time": "14:00"},
        headers=auth_headers(admin),
    )
    assert response.json()["data"]["startTime"].startswith("2031-06-10T14:00")


async def test_employee_cannot_edit(client, boats, employee):
    booking_id = await _book(client)
    response = await client.patch(
        f"/api/admin/bookings/{booking_id}", json={"adults": 3}, headers=auth_headers(employee)
    )
    assert response.status_code == 403


async def test_closed_day_locks_moves_and_deletes(client, boats, admin):
    booking_id = await _book(client)
    closed = await client.post("/api/admin/closures", json={"day": DAY}, headers=auth_headers(admin))
    assert closed.status_code == 201

    moved = await client.patch(
        f"/api/admin/bookings/{booking_id}",
        json={"date": DAY, "time": "14:00"},
        headers=auth_headers(admin),
    )
    assert moved.status_code == 403

    deleted = await client.delete(f"/api/admin/bookings/{booking_id}", headers=auth_headers(admin))
    assert deleted.status_code == 403

    # Notes stay editable on a closed day
    note = await client.patch(
        f"/api/admin/bookings/{booking_id}", json={"message": "Poussette"}, headers=auth_headers(admin)
    )
    assert note.status_code == 200


async def test_delete_booking(client, boats, admin):
    booking_id = await _book(client)
    response = await client.delete(f"/api/admin/bookings/{booking_id}", headers=auth_headers(admin))
    assert response.json() == {"success": True}
    missing = await client.get(f"/api/admin/bookings/{booking_id}", headers=auth_headers(admin))
    assert missing.status_code == 404


async def test_mark_paid_records_a_payment(client, boats, admin):
    booking_id = await _book(client)
    response = await client.patch(
        f"/api/admin/bookings/{booking_id}",
        json={"isPaid": True, "paymentMethod": "cash"},
        headers=auth_headers(admin),
    )
    assert response.json()["data"]["isPaid"] is True

    history = await client.get(f"/api/admin/bookings/{booking_id}/payments", headers=auth_headers(admin))
    assert history.status_code == 200
    payments = history.json()["data"]["payments"]
    assert len(payments) == 1
    assert payments[0]["provider"] == "cash"

    refund = await client.post(
        f"/api/admin/payments/{payments[0]['id']}/refund",
        json={"reason": "Annulation météo"},
        headers=auth_headers(admin),
    )
    assert refund.status_code == 200
    assert refund.json()["data"]["eventType"] == "REFUND"
    assert refund.json()["data"]["amount"] == -payments[0]["amount"]

    summary = (
        await client.get(f"/api/admin/bookings/{booking_id}/payments", headers=auth_headers(admin))
    ).json()["data"]["summary"]
    assert summary["net"] == 0
    assert summary["totalRefunded"] == payments[0]["amount"]


async def test_refunds_cannot_exceed_the_payment(client, boats, admin):
    booking_id = await _book(client)
    await client.patch(
        f"/api/admin/bookings/{booking_id}",
        json={"isPaid": True, "paymentMethod": "cash"},
        headers=auth_headers(admin),
    )
    history = await client.get(f"/api/admin/bookings/{booking_id}/payments", headers=auth_headers(admin))
    payment = history.json()["data"]["payments"][0]
    url = f"/api/admin/payments/{payment['id']}/refund"

    too_much = await client.post(url, json={"amount": payment["amount"] + 1}, headers=auth_headers(admin))
    assert too_much.status_code == 400
    assert too_much.json()["error"]["code"] == "REFUND_TOO_LARGE"

    partial = await client.post(url, json={"amount": 1000}, headers=auth_headers(admin))
    assert partial.status_code == 200
    rest = await client.post(url, json={}, headers=auth_headers(admin))
    assert rest.json()["data"]["amount"] == -(payment["amount"] - 1000)

    again = await client.post(url, json={}, headers=auth_headers(admin))
    assert again.status_code == 400
    assert again.json()["error"]["code"] == "ALREADY_REFUNDED"


async def test_move_onto_a_closed_day_is_refused(client, boats, admin):
    booking_id = await _book(client)
    closed = await client.post("/api/admin/closures", json={"day": "2031-06-11"}, headers=auth_headers(admin))
    assert closed.status_code == 201

    moved = await client.patch(
        f"/api/admin/bookings/{booking_id}",
        json={"date": "2031-06-11", "time": "14:00"},
        headers=auth_headers(admin),
    )
    assert moved.status_code == 403

    detail = (await client.get(f"/api/admin/bookings/{booking_id}", headers=auth_headers(admin))).json()["data"]
    assert detail["startTime"].startswith(f"{DAY}T10:00")


async def test_empty_update_is_rejected(client, boats, admin):
    booking_id = await _book(client)
    response = await client.patch(f"/api/admin/bookings/{booking_id}", json={}, headers=auth_headers(admin))
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "EMPTY_UPDATE"
