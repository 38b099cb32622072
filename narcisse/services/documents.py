"""Employee document lifecycle in object storage.

PENDING (row + presigned PUT or proxy upload) -> ACTIVE (confirmed) -> ARCHIVED.
Every action is written to `employee_document_logs` with the caller's IP and
user agent.
"""

from __future__ import annotations

import logging
import re
from typing import NamedTuple, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from narcisse.core.business import STAFF_ROLES
from narcisse.core.config import settings
from narcisse.core.exceptions import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    PayloadTooLargeError,
)
from narcisse.core.timeutils import utcnow
from narcisse.domain.document import EmployeeDocument
from narcisse.domain.mixins import new_uuid
from narcisse.domain.user import User
from narcisse.repositories.document import DocumentLogRepository, EmployeeDocumentRepository
from narcisse.repositories.user import UserRepository
from narcisse.schemas.common import clean_string, strip_script_tags
from narcisse.schemas.employee import DocumentUploadRequest
from narcisse.services import storage
from narcisse.services.activity_log import create_log
from narcisse.services.pdf import render_first_page_png

logger = logging.getLogger(__name__)

_FORBIDDEN_CHARS = re.compile(r'[\\/:*?"<>|]+')
_DASHES = re.compile(r"-+")


class RequestContext(NamedTuple):
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


class Preview(NamedTuple):
    body: bytes
    media_type: str
    file_name: str


def sanitize_file_name(value: str) -> str:
    cleaned = strip_script_tags(clean_string(value, 180)) or ""
    safe = _DASHES.sub("-", _FORBIDDEN_CHARS.sub("-", cleaned)).strip("-")
    return safe or "document"


class DocumentService:
    def __init__(self, session: AsyncSession, actor: User, context: RequestContext = RequestContext()):
        self._session = session
        self._actor = actor
        self._context = context
        self._documents = EmployeeDocumentRepository(session)
        self._logs = DocumentLogRepository(session)
        self._users = UserRepository(session)

    async def _log(self, document: EmployeeDocument, action: str, details: Optional[str] = None) -> None:
        await self._logs.create(
            document_id=document.id,
            action=action,
            actor_id=self._actor.id,
            target_user_id=document.user_id,
            ip_address=self._context.ip_address,
            user_agent=(self._context.user_agent or "")[:512] or None,
            details=details,
        )

    async def get_document(self, document_id: str) -> EmployeeDocument:
        document = await self._documents.get_by_id(document_id)
        if document is None:
            raise NotFoundError("Document", document_id)
        return document

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------

    async def create_upload(self, data: DocumentUploadRequest) -> tuple[EmployeeDocument, storage.SignedUrl]:
        if data.size > settings.max_upload_size_bytes:
            raise PayloadTooLargeError()
        employee = await self._users.get_by_id(data.user_id)
        if employee is None or employee.role not in STAFF_ROLES:
            raise NotFoundError("Employee", data.user_id)

        document_id = new_uuid()
        file_name = sanitize_file_name(data.file_name)
        version = await self._documents.max_version(data.user_id, data.category) + 1
        document = await self._documents.create(
            id=document_id,
            user_id=data.user_id,
            uploaded_by_id=self._actor.id,
            category=data.category,
            file_name=file_name,
            mime_type=data.mime_type,
            size=data.size,
            checksum=data.checksum,
            storage_key=storage.build_employee_document_key(data.user_id, document_id, file_name),
            version=version,
            status="PENDING",
            expires_at=data.expires_at,
        )
        signed = await storage.create_upload_url(document.storage_key, data.mime_type, checksum_sha256=data.checksum)
        await self._log(document, "UPLOAD_URL", file_name)
        create_log(
            self._session,
            "EMPLOYEE_DOC_UPLOAD_URL",
            f"Préparation document {document.id} pour utilisateur {document.user_id}",
            self._actor.id,
        )
        return document, signed

    async def upload_content(self, document_id: str, body: bytes) -> EmployeeDocument:
        """Server-side proxy upload for browsers that cannot PUT to the bucket."""
        document = await self.get_document(document_id)
        if document.status == "ARCHIVED":
            raise ConflictError("Document archivé", code="DOCUMENT_ARCHIVED")
        if document.status != "PENDING":
            raise ConflictError("Document déjà transféré", code="ALREADY_UPLOADED")
        if document.uploaded_by_id and document.uploaded_by_id != self._actor.id:
            raise ForbiddenError("Upload attribué à un autre utilisateur")
        if not body:
            raise BadRequestError("Fichier vide")
        if len(body) > settings.max_upload_size_bytes:
            raise PayloadTooLargeError()

        await storage.put_object(document.storage_key, body, document.mime_type)
        await self._log(document, "UPLOAD", f"{len(body)} octets")
        return document

    async def confirm(self, document_id: str) -> EmployeeDocument:
        document = await self.get_document(document_id)
        if document.status == "ARCHIVED":
            raise ConflictError("Document archivé", code="DOCUMENT_ARCHIVED")
        document = await self._documents.update(
            document,
            status="ACTIVE",
            uploaded_at=utcnow(),
            uploaded_by_id=self._actor.id or document.uploaded_by_id,
        )
        await self._log(document, "CONFIRM", document.file_name)
        create_log(
            self._session,
            "EMPLOYEE_DOC_CONFIRMED",
            f"Document {document.id} confirmé pour utilisateur {document.user_id}",
            self._actor.id,
        )
        return document

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def download_url(self, document_id: str) -> tuple[EmployeeDocument, storage.SignedUrl]:
        document = await self.get_document(document_id)
        if document.status == "PENDING":
            raise ConflictError("Document non finalisé", code="DOCUMENT_PENDING")
        signed = await storage.create_download_url(document.storage_key)
        await self._log(document, "DOWNLOAD", document.file_name)
        return document, signed

    async def preview(self, document_id: str, as_png: bool = False) -> Preview:
        document = await self.get_document(document_id)
        if document.status == "PENDING":
            raise ConflictError("Document non finalisé", code="DOCUMENT_PENDING")
        stored = await storage.get_object_stream(document.storage_key)
        media_type = stored.content_type or document.mime_type

        if as_png:
            if media_type != "application/pdf":
                raise BadRequestError("Aperçu PNG disponible uniquement pour les PDF", code="INVALID_PDF")
            png = render_first_page_png(stored.body)
            await self._log(document, "PREVIEW", "png")
            return Preview(png, "image/png", f"{document.file_name.rsplit('.', 1)[0]}.png")

        await self._log(document, "PREVIEW", media_type)
        return Preview(stored.body, media_type, document.file_name)

    # ------------------------------------------------------------------
    # Archive / delete
    # ------------------------------------------------------------------

    async def archive(self, document_id: str) -> EmployeeDocument:
        document = await self.get_document(document_id)
        if document.status == "ARCHIVED":
            return document
        document = await self._documents.update(
            document, status="ARCHIVED", archived_at=utcnow(), archived_by_id=self._actor.id
        )
        await self._log(document, "ARCHIVE", document.file_name)
        create_log(self._session, "EMPLOYEE_DOC_ARCHIVED", f"Document {document.id} archivé", self._actor.id)
        return document

    async def delete(self, document_id: str) -> None:
        """Remove the stored object then the row; a storage failure keeps the row (502)."""
        document = await self.get_document(document_id)
        try:
            await storage.delete_object(document.storage_key)
        except NotFoundError:
            logger.info("Stored object %s already missing", document.storage_key)
        await self._log(document, "DELETE", document.file_name)
        await self._documents.delete(document)
        create_log(self._session, "EMPLOYEE_DOC_DELETED", f"Document {document.id} supprimé", self._actor.id)
