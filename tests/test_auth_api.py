from tests.conftest import STAFF_PASSWORD, auth_headers


async def test_login_and_me(client, admin):
    response = await client.post("/api/auth/login", json={"email": admin.email, "password": STAFF_PASSWORD})
    assert response.status_code == 200
    body = response.json()
    assert body["tokenType"] == "bearer"
    assert body["expiresIn"] > 0

    me = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['accessToken']}"})
    assert me.status_code == 200
    assert me.json()["email"] == admin.email
    assert me.json()["role"] == "ADMIN"


async def test_login_wrong_password(client, admin):
    response = await client.post("/api/auth/login", json={"email": admin.email, "password": "nope"})
    assert response.status_code == 401
    assert response.json()["error"]["message"] == "Identifiants invalides"


async def test_me_without_token(client):
    response = await client.get("/api/auth/me")
    assert response.status_code == 401


async def test_me_with_garbage_token(client):
    response = await client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


async def test_login_is_rate_limited(client, admin):
    for _ in range(10):
        await client.post("/api/auth/login", json={"email": admin.email, "password": "nope"})
    response = await client.post("/api/auth/login", json={"email": admin.email, "password": STAFF_PASSWORD})
    assert response.status_code == 429
    assert int(response.headers["Retry-After"]) > 0


async def test_employee_cannot_write_back_office(client, employee):
    response = await client.post(
        "/api/admin/boats", json={"name": "Tulipe"}, headers=auth_headers(employee)
    )
    assert response.status_code == 403
