"""Boats and staff accounts in the back-office."""

from tests.conftest import auth_headers

STRONG_PASSWORD = "Quai-des-Tanneurs-1857"


async def test_fleet_snapshot(client, boats, employee):
    response = await client.get("/api/admin/boats", headers=auth_headers(employee))
    assert response.status_code == 200
    snapshot = response.json()["data"]
    assert snapshot["stats"]["total"] == 2
    assert {b["boat"]["name"] for b in snapshot["boats"]} == {"Narcisse", "Iris"}


async def test_create_and_update_boat(client, admin):
    created = await client.post(
        "/api/admin/boats", json={"name": "Tulipe", "capacity": 10}, headers=auth_headers(admin)
    )
    assert created.status_code == 201
    boat = created.json()["data"]
    assert boat["status"] == "ACTIVE"
    assert boat["lastChargeDate"] is not None

    updated = await client.patch(
        f"/api/admin/boats/{boat['id']}",
        json={"status": "MAINTENANCE", "resetService": True},
        headers=auth_headers(admin),
    )
    assert updated.json()["data"]["status"] == "MAINTENANCE"
    assert updated.json()["data"]["tripsSinceService"] == 0


async def test_boat_in_maintenance_leaves_the_rotation(client, boats, admin):
    await client.patch(
        f"/api/admin/boats/{boats[1].id}", json={"status": "MAINTENANCE"}, headers=auth_headers(admin)
    )
    response = await client.post(
        "/api/bookings",
        json={
            "date": "2031-06-10",
            "time": "10:10",
            "adults": 2,
            "language": "FR",
            "userDetails": {"firstName": "Paul", "lastName": "Weber", "email": "paul@example.fr"},
        },
    )
    assert response.json()["booking"]["boatId"] == boats[0].id


async def test_slot_capacity(client, boats, employee):
    await client.post(
        "/api/bookings",
        json={
            "date": "2031-06-10",
            "time": "10:00",
            "adults": 3,
            "children": 1,
            "language": "FR",
            "userDetails": {"firstName": "Paul", "lastName": "Weber", "email": "paul@example.fr"},
        },
    )
    response = await client.get(
        "/api/admin/boats/capacity",
        params={"date": "2031-06-10", "time": "10:00"},
        headers=auth_headers(employee),
    )
    assert response.status_code == 200
    capacity = response.json()["data"]
    assert capacity["totalCapacity"] == 24
    assert capacity["availableCapacity"] == 20
    seated = {b["boatId"]: b["remainingCapacity"] for b in capacity["boats"]}
    assert seated == {boats[0].id: 8, boats[1].id: 12}


async def test_charge_boat(client, boats, employee):
    response = await client.post(f"/api/admin/boats/{boats[0].id}/charge", headers=auth_headers(employee))
    assert response.status_code == 200
    assert response.json()["data"]["lastChargeDate"] is not None


async def test_unknown_boat(client, admin):
    response = await client.post("/api/admin/boats/999/charge", headers=auth_headers(admin))
    assert response.status_code == 404


async def test_admin_creates_employee_accounts_only(client, admin):
    response = await client.post(
        "/api/admin/employees",
        json={
            "firstName": "Léa",
            "lastName": "Koenig",
            "email": "Lea.Koenig@Sweet-Narcisse.fr",
            "password": STRONG_PASSWORD,
            "role": "ADMIN",
        },
        headers=auth_headers(admin),
    )
    assert response.status_code == 201
    employee = response.json()["data"]
    assert employee["email"] == "lea.koenig@sweet-narcisse.fr"
    assert employee["role"] == "EMPLOYEE"
    assert employee["employeeNumber"].startswith("EMP-")
    assert employee["managerId"] == admin.id


async def test_superadmin_may_create_admins(client, superadmin):
    response = await client.post(
        "/api/admin/employees",
        json={"firstName": "Hugo", "lastName": "Roth", "email": "hugo@sweet-narcisse.fr", "password": STRONG_PASSWORD, "role": "ADMIN"},
        headers=auth_headers(superadmin),
    )
    assert response.json()["data"]["role"] == "ADMIN"


async def test_weak_password_is_rejected(client, admin):
    response = await client.post(
        "/api/admin/employees",
        json={"firstName": "Hugo", "lastName": "Roth", "email": "hugo@sweet-narcisse.fr", "password": "password"},
        headers=auth_headers(admin),
    )
    assert response.status_code == 422


async def test_duplicate_email(client, admin, employee):
    response = await client.post(
        "/api/admin/employees",
        json={"firstName": "Autre", "lastName": "Pilote", "email": employee.email, "password": STRONG_PASSWORD},
        headers=auth_headers(admin),
    )
    assert response.status_code == 409


async def test_employee_sees_the_directory_only(client, admin, employee):
    response = await client.get("/api/admin/employees", headers=auth_headers(employee))
    assert response.status_code == 200
    entries = response.json()["data"]
    assert {e["email"] for e in entries} == {admin.email, employee.email}
    assert all("adminPermissions" not in e for e in entries)

    full = await client.get("/api/admin/employees", headers=auth_headers(admin))
    assert all("isActive" in e for e in full.json()["data"])


async def test_archive_revokes_tokens(client, admin, employee):
    old_headers = auth_headers(employee)
    response = await client.post(
        f"/api/admin/employees/{employee.id}/archive",
        json={"reason": "Fin de saison"},
        headers=auth_headers(admin),
    )
    assert response.status_code == 200
    archived = response.json()["data"]
    assert archived["isActive"] is False
    assert archived["archiveReason"] == "Fin de saison"

    denied = await client.get("/api/auth/me", headers=old_headers)
    assert denied.status_code == 401

    reactivated = await client.post(f"/api/admin/employees/{employee.id}/reactivate", headers=auth_headers(admin))
    assert reactivated.json()["data"]["isActive"] is True
    assert reactivated.json()["data"]["archiveReason"] is None


async def test_owner_cannot_be_archived(client, admin, superadmin):
    response = await client.post(
        f"/api/admin/employees/{superadmin.id}/archive", json={}, headers=auth_headers(admin)
    )
    assert response.status_code == 403


async def test_employee_documents_need_page_permission(client, admin, employee):
    denied = await client.get(f"/api/admin/employees/{admin.id}/documents", headers=auth_headers(employee))
    assert denied.status_code == 403

    allowed = await client.get(f"/api/admin/employees/{employee.id}/documents", headers=auth_headers(admin))
    assert allowed.status_code == 200
    assert allowed.json()["data"] == []
