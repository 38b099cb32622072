"""Draft / publish flow of the public site content."""

from tests.conftest import auth_headers

SLIDE = {"title": {"fr": "Balade en barque", "en": "Boat ride"}, "imageDesktop": "/uploads/hero-1.jpg"}


async def test_hero_slide_draft_then_publish(client, admin):
    headers = auth_headers(admin)
    created = await client.post("/api/admin/cms/hero", json=SLIDE, headers=headers)
    assert created.status_code == 201
    slide = created.json()["data"]
    assert slide["title"] == SLIDE["title"]
    assert slide["order"] == 1

    edited = await client.put(
        f"/api/admin/cms/hero/{slide['id']}",
        json={"title": {"fr": "Petite Venise"}, "imageDesktop": "/uploads/hero-2.jpg"},
        headers=headers,
    )
    assert edited.json()["data"]["title"] == {"fr": "Petite Venise"}

    live = (await client.get("/api/cms/content", params={"lang": "en"})).json()
    assert live["heroSlides"][0]["title"] == "Boat ride"

    preview = (await client.get("/api/admin/cms/preview", headers=headers)).json()["data"]
    assert preview["heroSlides"][0]["imageDesktop"] == "/uploads/hero-2.jpg"

    published = await client.post("/api/admin/cms/publish", headers=headers)
    assert published.json()["operations"] >= 1

    live = (await client.get("/api/cms/content", params={"lang": "en"})).json()
    assert live["locale"] == "en"
    # No English title left: falls back to French
    assert live["heroSlides"][0]["title"] == "Petite Venise"
    assert live["heroSlides"][0]["imageDesktop"] == "/uploads/hero-2.jpg"


async def test_hero_slide_requires_image_and_title(client, admin):
    response = await client.post(
        "/api/admin/cms/hero", json={"title": {"fr": "Sans image"}}, headers=auth_headers(admin)
    )
    assert response.status_code == 400

    response = await client.post(
        "/api/admin/cms/hero", json={"title": {"it": "Giro"}, "imageDesktop": "/x.jpg"}, headers=auth_headers(admin)
    )
    assert response.status_code == 400


async def test_reorder_hero_slides(client, admin):
    headers = auth_headers(admin)
    first = (await client.post("/api/admin/cms/hero", json=SLIDE, headers=headers)).json()["data"]
    second = (await client.post("/api/admin/cms/hero", json=SLIDE, headers=headers)).json()["data"]

    response = await client.put("/api/admin/cms/hero/reorder", json={"ids": [second["id"], first["id"]]}, headers=headers)
    assert response.json() == {"success": True}

    preview = (await client.get("/api/admin/cms/preview", headers=headers)).json()["data"]
    assert [s["id"] for s in preview["heroSlides"]] == [second["id"], first["id"]]


async def test_hidden_partner_is_not_public(client, admin):
    headers = auth_headers(admin)
    await client.post(
        "/api/admin/cms/partners",
        json={"name": "Office de Tourisme", "logoUrl": "/logos/ot.png", "websiteUrl": "https://tourisme-colmar.com"},
        headers=headers,
    )
    await client.post(
        "/api/admin/cms/partners",
        json={"name": "Caché", "logoUrl": "/logos/hidden.png", "isVisible": False},
        headers=headers,
    )
    content = (await client.get("/api/cms/content")).json()
    assert [p["name"] for p in content["partners"]] == ["Office de Tourisme"]


async def test_partner_requires_logo(client, admin):
    response = await client.post("/api/admin/cms/partners", json={"name": "Sans logo"}, headers=auth_headers(admin))
    assert response.status_code == 400


async def test_site_config_and_legal_pages(client, admin):
    headers = auth_headers(admin)
    saved = await client.put(
        "/api/admin/cms/site-config",
        json={"entries": [{"key": "legal.cgv", "value": {"fr": "Conditions générales", "en": "Terms"}}]},
        headers=headers,
    )
    assert saved.json() == {"success": True, "updated": 1}

    english = (await client.get("/api/cms/legal/cgv", params={"lang": "en"})).json()
    assert english == {"page": "cgv", "locale": "en", "content": "Terms"}
    german = (await client.get("/api/cms/legal/cgv", params={"lang": "de"})).json()
    assert german["content"] == "Conditions générales"

    groups = (await client.get("/api/admin/cms/site-config", headers=headers)).json()["data"]
    legal = next(g for g in groups if g["id"] == "legal_assets")
    cgv = next(f for f in legal["fields"] if f["key"] == "legal.cgv")
    assert cgv["value"] == {"fr": "Conditions générales", "en": "Terms"}


async def test_unknown_site_config_keys(client, admin):
    response = await client.put(
        "/api/admin/cms/site-config",
        json={"entries": [{"key": "nope", "value": "x"}]},
        headers=auth_headers(admin),
    )
    assert response.status_code == 400


async def test_unknown_legal_page(client):
    response = await client.get("/api/cms/legal/impressum")
    assert response.status_code == 404


async def test_cms_writes_need_admin(client, employee):
    response = await client.post("/api/admin/cms/hero", json=SLIDE, headers=auth_headers(employee))
    assert response.status_code == 403
