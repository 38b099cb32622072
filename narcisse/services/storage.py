"""S3 / MinIO object storage for employee documents.

boto3 is synchronous: every call runs in a worker thread. The client is built
lazily on first use and cached for the process (`reset_storage_client()` drops
it, e.g. after a configuration change in tests).
"""

from __future__ import annotations

import logging
import re
import unicodedata
from typing import Any, NamedTuple, Optional

import anyio
import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from narcisse.core.config import settings
from narcisse.core.exceptions import NotFoundError, ServiceUnavailableError, UpstreamServiceError

logger = logging.getLogger(__name__)

_client = None

_UNSAFE = re.compile(r"[^a-zA-Z0-9.-]+")
_DASHES = re.compile(r"-+")


class SignedUrl(NamedTuple):
    url: str
    expires_in: int


class StoredObject(NamedTuple):
    body: bytes
    content_type: Optional[str]
    content_length: Optional[int]
    etag: Optional[str]


def normalize_file_name(file_name: str) -> str:
    normalized = unicodedata.normalize("NFKD", file_name or "")
    normalized = _DASHES.sub("-", _UNSAFE.sub("-", normalized)).strip("-").lower()
    return normalized or "document"


def build_employee_document_key(user_id: str, document_id: str, file_name: str) -> str:
    return f"employees/{user_id}/{document_id}/{normalize_file_name(file_name)}"


def _ensure_configured() -> str:
    missing = settings.missing_storage_settings
    if missing:
        raise ServiceUnavailableError(f"Missing storage configuration: {', '.join(missing)}")
    return settings.storage_bucket or ""


def _get_client():
    global _client
    _ensure_configured()
    if _client is None:
        config = Config(s3={"addressing_style": "path"}) if settings.storage_driver == "minio" else None
        _client = boto3.client(
            "s3",
            region_name=settings.storage_region,
            endpoint_url=settings.storage_endpoint or None,
            aws_access_key_id=settings.storage_access_key,
            aws_secret_access_key=settings.storage_secret_key,
            config=config,
        )
    return _client


def reset_storage_client() -> None:
    global _client
    _client = None


async def _run(operation: str, func, *args: Any) -> Any:
    try:
        return await anyio.to_thread.run_sync(func, *args)
    except ClientError as exc:
        code = exc.response.get("Error", {}).get("Code")
        if code in ("404", "NoSuchKey", "NotFound"):
            raise NotFoundError("Stored object") from exc
        logger.error("Storage %s failed: %s", operation, exc)
        raise UpstreamServiceError(f"Stockage indisponible ({operation})", code="STORAGE_ERROR") from exc
    except BotoCoreError as exc:
        logger.error("Storage %s failed: %s", operation, exc)
        raise UpstreamServiceError(f"Stockage indisponible ({operation})", code="STORAGE_ERROR") from exc


# ── Presigned URLs ───────────────────────────────────────────────────────

async def create_upload_url(
    key: str,
    content_type: Optional[str] = None,
    expires_in: Optional[int] = None,
    checksum_sha256: Optional[str] = None,
) -> SignedUrl:
    bucket = _ensure_configured()
    client = _get_client()
    ttl = expires_in or settings.storage_upload_ttl
    params: dict[str, Any] = {"Bucket": bucket, "Key": key}
    if content_type:
        params["ContentType"] = content_type
    if checksum_sha256:
        params["ChecksumSHA256"] = checksum_sha256

    def _presign() -> str:
        return client.generate_presigned_url("put_object", Params=params, ExpiresIn=ttl)

    return SignedUrl(await _run("upload-url", _presign), ttl)


async def create_download_url(key: str, expires_in: Optional[int] = None) -> SignedUrl:
    """HEAD the object first so a missing file fails here rather than at download time."""
    bucket = _ensure_configured()
    client = _get_client()
    ttl = expires_in or settings.storage_download_ttl

    def _presign() -> str:
        client.head_object(Bucket=bucket, Key=key)
        return client.generate_presigned_url("get_object", Params={"Bucket": bucket, "Key": key}, ExpiresIn=ttl)

    return SignedUrl(await _run("download-url", _presign), ttl)


# ── Object operations ────────────────────────────────────────────────────

async def put_object(key: str, body: bytes, content_type: Optional[str] = None) -> None:
    bucket = _ensure_configured()
    client = _get_client()
    params: dict[str, Any] = {"Bucket": bucket, "Key": key, "Body": body}
    if content_type:
        params["ContentType"] = content_type
    await _run("put", lambda: client.put_object(**params))


async def get_object_stream(key: str) -> StoredObject:
    bucket = _ensure_configured()
    client = _get_client()

    def _get() -> StoredObject:
        response = client.get_object(Bucket=bucket, Key=key)
        body = response.get("Body")
        if body is None:
            raise UpstreamServiceError("Objet de stockage vide", code="STORAGE_ERROR")
        return StoredObject(
            body=body.read(),
            content_type=response.get("ContentType"),
            content_length=response.get("ContentLength"),
            etag=response.get("ETag"),
        )

    return await _run("get", _get)


async def delete_object(key: str) -> None:
    bucket = _ensure_configured()
    client = _get_client()
    await _run("delete", lambda: client.delete_object(Bucket=bucket, Key=key))
