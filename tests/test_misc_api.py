"""Health, metrics, availability parameters, contact forms and the hold cleanup job."""

from datetime import timedelta

from sqlalchemy import select, update

from narcisse.core.timeutils import utcnow
from narcisse.domain.booking import Booking
from narcisse.jobs.cleanup_pending import cleanup_pending
from tests.test_bookings_api import DAY, booking_payload

CONTACT = {"firstName": "Anne", "lastName": "Fritsch", "email": "anne@example.fr", "people": 25}


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


async def test_metrics_exposition(client, boats):
    await client.post("/api/bookings", json=booking_payload())
    response = await client.get("/api/metrics")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert "bookings_created_total" in response.text
    assert "http_requests_total" in response.text


async def test_availability_requires_date_and_lang(client):
    response = await client.get("/api/availability", params={"date": DAY})
    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Paramètres date et lang requis"


async def test_availability_reflects_bookings(client, boats):
    await client.post("/api/bookings", json=booking_payload(adults=4))
    french = (await client.get("/api/availability", params={"date": DAY, "lang": "fr", "adults": 2})).json()
    english = (await client.get("/api/availability", params={"date": DAY, "lang": "en", "adults": 2})).json()
    assert "10:00" in french["availableSlots"]
    assert "10:00" not in english["availableSlots"]


async def test_availability_for_nobody(client, boats):
    response = await client.get("/api/availability", params={"date": DAY, "lang": "fr"})
    assert response.json() == {"date": DAY, "availableSlots": []}


async def test_contact_forms(client):
    for kind in ("group", "private"):
        response = await client.post(f"/api/contact/{kind}", json=CONTACT)
        assert response.status_code == 200
        # No mail transport configured in tests
        body = response.json()
        assert body["success"] is True
        assert body["forwarded"] is False
        assert body["id"]


async def test_contact_rate_limit(client):
    for _ in range(10):
        await client.post("/api/contact/group", json=CONTACT)
    response = await client.post("/api/contact/group", json=CONTACT)
    assert response.status_code == 429
    assert response.json()["error"]["code"] == "RATE_LIMITED"
    assert "Retry-After" in response.headers


async def test_cleanup_releases_stale_holds_only(client, boats, session_factory):
    stale = (await client.post("/api/bookings", json=booking_payload("10:00", pendingOnly=True))).json()["bookingId"]
    fresh = (await client.post("/api/bookings", json=booking_payload("10:10", pendingOnly=True))).json()["bookingId"]
    confirmed = (await client.post("/api/bookings", json=booking_payload("10:40"))).json()["bookingId"]

    async with session_factory() as session:
        await session.execute(
            update(Booking)
            .where(Booking.id.in_([stale, confirmed]))
            .values(created_at=utcnow() - timedelta(hours=1))
        )
        await session.commit()

    assert await cleanup_pending(ttl_minutes=15, session_factory=session_factory) == 1

    async with session_factory() as session:
        statuses = dict((await session.execute(select(Booking.id, Booking.status))).all())
    assert statuses == {stale: "CANCELLED", fresh: "PENDING", confirmed: "CONFIRMED"}
