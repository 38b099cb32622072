"""Back-office work shifts and the monthly hours report."""

from tests.conftest import auth_headers


def _shift(user, date="2031-06-10", start="09:00", end="17:30", break_time=30, **extra):
    body = {"userId": user.id, "date": date, "start": start, "end": end, "breakTime": break_time}
    body.update(extra)
    return body


async def test_monthly_report_nets_out_breaks(client, admin, employee):
    for body in (
        _shift(employee),
        _shift(employee, date="2031-06-11", start="14:00", end="16:00", break_time=0, note="Inventaire"),
        _shift(employee, date="2031-07-01"),
    ):
        created = await client.post("/api/admin/hours", json=body, headers=auth_headers(admin))
        assert created.status_code == 201

    response = await client.get("/api/admin/hours", params={"month": "2031-06"}, headers=auth_headers(admin))
    assert response.status_code == 200
    rows = {row["user"]["id"]: row for row in response.json()["data"]}

    assert rows[employee.id]["totalMinutes"] == 600
    assert rows[employee.id]["totalHours"] == 10.0
    assert rows[employee.id]["shiftsCount"] == 2
    assert rows[employee.id]["details"][1]["note"] == "Inventaire"
    # Staff without shifts are listed too
    assert rows[admin.id]["shiftsCount"] == 0


async def test_december_report_ends_with_the_year(client, admin, employee):
    await client.post("/api/admin/hours", json=_shift(employee, date="2031-12-31"), headers=auth_headers(admin))
    await client.post("/api/admin/hours", json=_shift(employee, date="2032-01-01"), headers=auth_headers(admin))

    response = await client.get("/api/admin/hours", params={"month": "2031-12"}, headers=auth_headers(admin))
    rows = {row["user"]["id"]: row for row in response.json()["data"]}
    assert rows[employee.id]["shiftsCount"] == 1


async def test_shift_must_end_after_it_starts(client, admin, employee):
    response = await client.post(
        "/api/admin/hours", json=_shift(employee, start="17:00", end="09:00"), headers=auth_headers(admin)
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_SHIFT"


async def test_break_shorter_than_the_shift(client, admin, employee):
    response = await client.post(
        "/api/admin/hours",
        json=_shift(employee, start="09:00", end="10:00", break_time=60),
        headers=auth_headers(admin),
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_BREAK"


async def test_month_is_required(client, admin):
    response = await client.get("/api/admin/hours", headers=auth_headers(admin))
    assert response.status_code == 400

    invalid = await client.get("/api/admin/hours", params={"month": "2031-13"}, headers=auth_headers(admin))
    assert invalid.status_code == 400


async def test_unknown_employee(client, admin):
    body = {"userId": "missing", "date": "2031-06-10", "start": "09:00", "end": "12:00"}
    response = await client.post("/api/admin/hours", json=body, headers=auth_headers(admin))
    assert response.status_code == 404


async def test_employees_cannot_read_the_report(client, employee):
    response = await client.get("/api/admin/hours", params={"month": "2031-06"}, headers=auth_headers(employee))
    assert response.status_code == 403


async def test_delete_shift(client, admin, employee):
    created = await client.post("/api/admin/hours", json=_shift(employee), headers=auth_headers(admin))
    shift_id = created.json()["data"]["id"]

    deleted = await client.delete(f"/api/admin/hours/{shift_id}", headers=auth_headers(admin))
    assert deleted.json() == {"success": True}

    response = await client.get("/api/admin/hours", params={"month": "2031-06"}, headers=auth_headers(admin))
    rows = {row["user"]["id"]: row for row in response.json()["data"]}
    assert rows[employee.id]["totalMinutes"] == 0
