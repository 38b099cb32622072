"""Stored group / private requests and their conversion into staff bookings."""

from tests.conftest import auth_headers
from tests.test_bookings_api import DAY

GROUP = {
    "firstName": "Anne",
    "lastName": "Fritsch",
    "email": "anne@example.fr",
    "date": DAY,
    "people": 25,
    "lang": "de",
    "message": "Sortie d'entreprise",
}


async def _request(client, kind="group", **extra) -> str:
    response = await client.post(f"/api/contact/{kind}", json={**GROUP, **extra})
    assert response.status_code == 200
    return response.json()["id"]


async def test_requests_land_in_the_inbox(client, employee):
    contact_id = await _request(client)

    response = await client.get("/api/admin/contacts", headers=auth_headers(employee))
    assert response.status_code == 200
    (contact,) = response.json()["data"]
    assert contact["id"] == contact_id
    assert contact["kind"] == "group"
    assert contact["status"] == "NEW"
    assert contact["lang"] == "DE"

    closed = await client.get("/api/admin/contacts", params={"status": "CLOSED"}, headers=auth_headers(employee))
    assert closed.json()["data"] == []


async def test_status_follow_up(client, admin, employee):
    contact_id = await _request(client)
    response = await client.patch(
        f"/api/admin/contacts/{contact_id}", json={"status": "CONTACTED"}, headers=auth_headers(admin)
    )
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "CONTACTED"

    forbidden = await client.patch(
        f"/api/admin/contacts/{contact_id}", json={"status": "CLOSED"}, headers=auth_headers(employee)
    )
    assert forbidden.status_code == 403


async def test_group_request_becomes_a_chained_booking(client, boats, admin):
    contact_id = await _request(client)

    response = await client.post(
        "/api/admin/contacts/convert", json={"contactId": contact_id}, headers=auth_headers(admin)
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["contact"]["status"] == "CLOSED"
    assert data["contact"]["bookingId"] == data["result"]["bookingId"]

    booking = data["result"]["booking"]
    assert booking["startTime"].startswith(f"{DAY}T10:00")
    assert booking["boatId"] == boats[0].id
    assert booking["numberOfPeople"] == 12
    assert booking["language"] == "DE"
    assert [c["people"] for c in data["result"]["chainCreated"]] == [12]
    assert [o["people"] for o in data["result"]["overlaps"]] == [1]

    again = await client.post(
        "/api/admin/contacts/convert", json={"contactId": contact_id}, headers=auth_headers(admin)
    )
    assert again.status_code == 400
    assert again.json()["error"]["code"] == "ALREADY_CONVERTED"


async def test_private_request_books_the_whole_boat(client, boats, admin):
    contact_id = await _request(client, kind="private", people=4)

    response = await client.post(
        "/api/admin/contacts/convert",
        json={"contactId": contact_id, "time": "14:00"},
        headers=auth_headers(admin),
    )
    booking = response.json()["data"]["result"]["booking"]
    assert booking["isPrivate"] is True
    assert booking["numberOfPeople"] == 12
    assert booking["startTime"].startswith(f"{DAY}T14:00")


async def test_convert_requires_a_known_contact(client, admin):
    missing = await client.post("/api/admin/contacts/convert", json={}, headers=auth_headers(admin))
    assert missing.status_code == 400

    unknown = await client.post(
        "/api/admin/contacts/convert", json={"contactId": "nope"}, headers=auth_headers(admin)
    )
    assert unknown.status_code == 404
