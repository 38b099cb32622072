"""Back-office CMS routes: hero slides, partners, site configuration.

Folder intent:
  Every edit lands in a draft; `POST /publish` copies drafts to the live
  fields read by the public site, `GET /preview` shows the draft payload.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from narcisse.core.response import DataResponse, SuccessResponse
from narcisse.core.security import admin_user
from narcisse.db.base import get_db
from narcisse.domain.user import User
from narcisse.schemas.cms import (
    CmsPayload,
    HeroSlideIn,
    HeroSlideOut,
    PartnerIn,
    PartnerOut,
    PublishResponse,
    ReorderRequest,
    SiteConfigUpdate,
)
from narcisse.services.activity_log import create_log
from narcisse.services.cms import CmsService, map_hero_slide, map_partner

router = APIRouter(prefix="/cms", tags=["Admin CMS"])


def _svc(session: AsyncSession) -> CmsService:
    return CmsService(session)


# ------------------------------------------------------------------
# Hero slides
# ------------------------------------------------------------------

@router.post("/hero", response_model=DataResponse[HeroSlideOut], status_code=status.HTTP_201_CREATED)
async def create_hero_slide(
    body: HeroSlideIn,
    _: User = Depends(admin_user),
    session: AsyncSession = Depends(get_db),
):
    slide = await _svc(session).create_hero_slide(body)
    return {"data": HeroSlideOut.model_validate(map_hero_slide(slide, prefer_draft=True))}


# Declared before /hero/{slide_id} so "reorder" is not taken for an id
@router.put("/hero/reorder", response_model=SuccessResponse)
async def reorder_hero_slides(
    body: ReorderRequest,
    _: User = Depends(admin_user),
    session: AsyncSession = Depends(get_db),
):
    await _svc(session).reorder_hero_slides(body.ids)
    return SuccessResponse()


@router.put("/hero/{slide_id}", response_model=DataResponse[HeroSlideOut])
async def update_hero_slide(
    slide_id: str,
    body: HeroSlideIn,
    _: User = Depends(admin_user),
    session: AsyncSession = Depends(get_db),
):
    slide = await _svc(session).update_hero_slide(slide_id, body)
    return {"data": HeroSlideOut.model_validate(map_hero_slide(slide, prefer_draft=True))}


@router.delete("/hero/{slide_id}", response_model=SuccessResponse)
async def delete_hero_slide(
    slide_id: str,
    _: User = Depends(admin_user),
    session: AsyncSession = Depends(get_db),
):
    await _svc(session).delete_hero_slide(slide_id)
    return SuccessResponse()


# ------------------------------------------------------------------
# Partners
# ------------------------------------------------------------------

@router.post("/partners", response_model=DataResponse[PartnerOut], status_code=status.HTTP_201_CREATED)
async def create_partner(
    body: PartnerIn,
    _: User = Depends(admin_user),
    session: AsyncSession = Depends(get_db),
):
    partner = await _svc(session).create_partner(body)
    return {"data": PartnerOut.model_validate(map_partner(partner, prefer_draft=True))}


@router.put("/partners/{partner_id}", response_model=DataResponse[PartnerOut])
async def update_partner(
    partner_id: str,
    body: PartnerIn,
    _: User = Depends(admin_user),
    session: AsyncSession = Depends(get_db),
):
    partner = await _svc(session).update_partner(partner_id, body)
    return {"data": PartnerOut.model_validate(map_partner(partner, prefer_draft=True))}


@router.delete("/partners/{partner_id}", response_model=SuccessResponse)
async def delete_partner(
    partner_id: str,
    _: User = Depends(admin_user),
    session: AsyncSession = Depends(get_db),
):
    await _svc(session).delete_partner(partner_id)
    return SuccessResponse()


# ------------------------------------------------------------------
# Site configuration
# ------------------------------------------------------------------

@router.get("/site-config")
async def get_site_config(
    _: User = Depends(admin_user),
    session: AsyncSession = Depends(get_db),
):
    """Field definitions grouped for the editor, with draft-or-live values."""
    return {"data": await _svc(session).get_site_config_groups()}


@router.put("/site-config")
async def update_site_config(
    body: SiteConfigUpdate,
    _: User = Depends(admin_user),
    session: AsyncSession = Depends(get_db),
):
    updated = await _svc(session).update_site_config(body.entries)
    return {"success": True, "updated": updated}


# ------------------------------------------------------------------
# Publish / preview
# ------------------------------------------------------------------

@router.post("/publish", response_model=PublishResponse)
async def publish(
    user: User = Depends(admin_user),
    session: AsyncSession = Depends(get_db),
):
    operations = await _svc(session).publish()
    create_log(session, "CMS_PUBLISH", f"{operations} élément(s) publié(s)", user.id)
    return PublishResponse(operations=operations)


@router.get("/preview", response_model=DataResponse[CmsPayload])
async def preview(
    _: User = Depends(admin_user),
    session: AsyncSession = Depends(get_db),
):
    return {"data": CmsPayload.model_validate(await _svc(session).preview_payload())}
