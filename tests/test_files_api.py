"""Employee documents with the object storage replaced by an in-memory fake."""

import fitz
import pytest

from narcisse.core.exceptions import NotFoundError
from narcisse.services import storage
from tests.conftest import auth_headers


@pytest.fixture
def bucket(monkeypatch) -> dict[str, tuple[bytes, str]]:
    objects: dict[str, tuple[bytes, str]] = {}

    async def create_upload_url(key, content_type, checksum_sha256=None, expires_in=None):
        return storage.SignedUrl(f"https://s3.test/{key}?upload", 600)

    async def create_download_url(key, expires_in=None):
        return storage.SignedUrl(f"https://s3.test/{key}?download", 600)

    async def put_object(key, body, content_type=None):
        objects[key] = (body, content_type)

    async def get_object_stream(key):
        if key not in objects:
            raise NotFoundError("Object", key)
        body, content_type = objects[key]
        return storage.StoredObject(body, content_type, len(body), None)

    async def delete_object(key):
        if objects.pop(key, None) is None:
            raise NotFoundError("Object", key)

    for name, fake in (
        ("create_upload_url", create_upload_url),
        ("create_download_url", create_download_url),
        ("put_object", put_object),
        ("get_object_stream", get_object_stream),
        ("delete_object", delete_object),
    ):
        monkeypatch.setattr(storage, name, fake)
    return objects


def _pdf_bytes() -> bytes:
    doc = fitz.open()
    page = doc.new_page()
    page.insert_text((72, 72), "Contrat saisonnier")
    data = doc.tobytes()
    doc.close()
    return data


async def _upload(client, admin, employee, body: bytes, file_name="Contrat été.pdf", mime="application/pdf"):
    headers = auth_headers(admin)
    created = await client.post(
        "/api/admin/files/upload-url",
        json={"userId": employee.id, "category": "CONTRACT", "fileName": file_name, "mimeType": mime, "size": len(body)},
        headers=headers,
    )
    assert created.status_code == 200
    document = created.json()["data"]["document"]
    uploaded = await client.put(f"/api/admin/files/upload/{document['id']}", content=body, headers=headers)
    assert uploaded.status_code == 200
    confirmed = await client.post("/api/admin/files/confirm", json={"documentId": document["id"]}, headers=headers)
    assert confirmed.json()["data"]["status"] == "ACTIVE"
    return confirmed.json()["data"]


async def test_upload_url_registers_a_pending_version(client, bucket, admin, employee):
    response = await client.post(
        "/api/admin/files/upload-url",
        json={"userId": employee.id, "category": "ID", "fileName": "carte.png", "mimeType": "image/png", "size": 10},
        headers=auth_headers(admin),
    )
    data = response.json()["data"]
    assert data["uploadUrl"].endswith("?upload")
    assert data["document"]["status"] == "PENDING"
    assert data["document"]["version"] == 1
    assert data["document"]["storageKey"].startswith(f"employees/{employee.id}/")


async def test_upload_confirm_download_and_preview(client, bucket, admin, employee):
    pdf = _pdf_bytes()
    document = await _upload(client, admin, employee, pdf)
    headers = auth_headers(admin)

    download = await client.post("/api/admin/files/download-url", json={"documentId": document["id"]}, headers=headers)
    assert download.json()["data"]["url"].endswith("?download")

    inline = await client.get(f"/api/admin/files/{document['id']}/preview", headers=headers)
    assert inline.status_code == 200
    assert inline.content == pdf
    assert inline.headers["content-disposition"].startswith("inline; filename*=UTF-8''")

    png = await client.get(f"/api/admin/files/{document['id']}/preview", params={"format": "png"}, headers=headers)
    assert png.status_code == 200
    assert png.headers["content-type"] == "image/png"
    assert png.content.startswith(b"\x89PNG")

    listed = await client.get(f"/api/admin/employees/{employee.id}/documents", headers=headers)
    assert [d["id"] for d in listed.json()["data"]] == [document["id"]]


async def test_versions_increase_per_category(client, bucket, admin, employee):
    first = await _upload(client, admin, employee, b"v1", file_name="note.txt", mime="text/plain")
    second = await _upload(client, admin, employee, b"v2", file_name="note.txt", mime="text/plain")
    assert (first["version"], second["version"]) == (1, 2)


async def test_png_preview_only_for_pdf(client, bucket, admin, employee):
    document = await _upload(client, admin, employee, b"hello", file_name="note.txt", mime="text/plain")
    response = await client.get(
        f"/api/admin/files/{document['id']}/preview", params={"format": "png"}, headers=auth_headers(admin)
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_PDF"


async def test_pending_document_cannot_be_downloaded(client, bucket, admin, employee):
    created = await client.post(
        "/api/admin/files/upload-url",
        json={"userId": employee.id, "category": "OTHER", "fileName": "x.pdf", "mimeType": "application/pdf", "size": 3},
        headers=auth_headers(admin),
    )
    document_id = created.json()["data"]["document"]["id"]
    response = await client.post(
        "/api/admin/files/download-url", json={"documentId": document_id}, headers=auth_headers(admin)
    )
    assert response.status_code == 409


async def test_archive_hides_from_default_listing(client, bucket, admin, employee):
    document = await _upload(client, admin, employee, b"data", file_name="a.txt", mime="text/plain")
    headers = auth_headers(admin)
    archived = await client.post("/api/admin/files/archive", json={"documentId": document["id"]}, headers=headers)
    assert archived.json()["data"]["status"] == "ARCHIVED"

    default = await client.get(f"/api/admin/employees/{employee.id}/documents", headers=headers)
    assert default.json()["data"] == []
    everything = await client.get(
        f"/api/admin/employees/{employee.id}/documents", params={"includeArchived": "true"}, headers=headers
    )
    assert len(everything.json()["data"]) == 1


async def test_delete_tolerates_missing_object(client, bucket, admin, employee):
    document = await _upload(client, admin, employee, b"data", file_name="a.txt", mime="text/plain")
    bucket.clear()
    response = await client.delete(f"/api/admin/files/{document['id']}", headers=auth_headers(admin))
    assert response.json() == {"success": True}


async def test_employee_without_page_permission(client, bucket, employee):
    response = await client.post(
        "/api/admin/files/upload-url",
        json={"userId": employee.id, "category": "ID", "fileName": "x.png", "mimeType": "image/png", "size": 1},
        headers=auth_headers(employee),
    )
    assert response.status_code == 403


async def test_unconfigured_storage(client, admin, employee):
    response = await client.post(
        "/api/admin/files/upload-url",
        json={"userId": employee.id, "category": "ID", "fileName": "x.png", "mimeType": "image/png", "size": 1},
        headers=auth_headers(admin),
    )
    assert response.status_code == 503
