"""Back-office employee document routes (S3 / MinIO).

Folder intent:
  Access is ADMIN / SUPERADMIN, or an EMPLOYEE granted the `employees`
  back-office page. The caller's IP and user agent go into every
  document log line.
"""

from __future__ import annotations

from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from narcisse.core.exceptions import ForbiddenError
from narcisse.core.ratelimit import get_client_ip
from narcisse.core.response import DataResponse, SuccessResponse
from narcisse.core.security import get_current_user, has_page_permission
from narcisse.db.base import get_db
from narcisse.domain.user import User
from narcisse.schemas.employee import (
    DocumentIdRequest,
    DocumentOut,
    DocumentUploadRequest,
    DownloadUrlResponse,
    UploadUrlResponse,
)
from narcisse.services.documents import DocumentService, RequestContext

router = APIRouter(prefix="/files", tags=["Admin files"])


async def _document_service(
    request: Request,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> DocumentService:
    if not has_page_permission(user, "employees"):
        raise ForbiddenError("Accès refusé")
    context = RequestContext(
        ip_address=get_client_ip(request.headers),
        user_agent=request.headers.get("user-agent"),
    )
    return DocumentService(session, user, context)


@router.post("/upload-url", response_model=DataResponse[UploadUrlResponse])
async def create_upload_url(
    body: DocumentUploadRequest,
    svc: DocumentService = Depends(_document_service),
):
    """Register a PENDING document version and sign a direct PUT."""
    document, signed = await svc.create_upload(body)
    return {
        "data": UploadUrlResponse(
            upload_url=signed.url,
            expires_in=signed.expires_in,
            document=DocumentOut.model_validate(document),
        )
    }


@router.put("/upload/{document_id}", response_model=DataResponse[DocumentOut])
async def upload_content(
    document_id: str,
    request: Request,
    svc: DocumentService = Depends(_document_service),
):
    """Proxy upload for browsers that cannot reach the bucket directly."""
    document = await svc.upload_content(document_id, await request.body())
    return {"data": DocumentOut.model_validate(document)}


@router.post("/confirm", response_model=DataResponse[DocumentOut])
async def confirm_upload(
    body: DocumentIdRequest,
    svc: DocumentService = Depends(_document_service),
):
    document = await svc.confirm(body.document_id)
    return {"data": DocumentOut.model_validate(document)}


@router.post("/download-url", response_model=DataResponse[DownloadUrlResponse])
async def create_download_url(
    body: DocumentIdRequest,
    svc: DocumentService = Depends(_document_service),
):
    document, signed = await svc.download_url(body.document_id)
    return {
        "data": DownloadUrlResponse(
            url=signed.url,
            expires_in=signed.expires_in,
            file_name=document.file_name,
        )
    }


@router.get("/{document_id}/preview")
async def preview_document(
    document_id: str,
    output_format: Optional[str] = Query(default=None, alias="format"),
    svc: DocumentService = Depends(_document_service),
):
    """Stream the stored file inline; `?format=png` renders a PDF's first page."""
    preview = await svc.preview(document_id, as_png=output_format == "png")
    return Response(
        content=preview.body,
        media_type=preview.media_type,
        headers={
            "Content-Disposition": f"inline; filename*=UTF-8''{quote(preview.file_name)}",
            "Cache-Control": "private, no-store",
        },
    )


@router.post("/archive", response_model=DataResponse[DocumentOut])
async def archive_document(
    body: DocumentIdRequest,
    svc: DocumentService = Depends(_document_service),
):
    document = await svc.archive(body.document_id)
    return {"data": DocumentOut.model_validate(document)}


@router.delete("/{document_id}", response_model=SuccessResponse)
async def delete_document(
    document_id: str,
    svc: DocumentService = Depends(_document_service),
):
    await svc.delete(document_id)
    return SuccessResponse()
