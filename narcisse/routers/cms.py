"""Public CMS content read by the marketing site."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from narcisse.db.base import get_db
from narcisse.schemas.cms import LegalPage, PublicContent
from narcisse.services.cms import DEFAULT_LOCALE, CmsService

router = APIRouter(prefix="/api/cms", tags=["CMS"])


@router.get("/content", response_model=PublicContent)
async def get_content(
    lang: str = Query(default=DEFAULT_LOCALE),
    session: AsyncSession = Depends(get_db),
):
    """Published hero slides, partners and site texts resolved for `lang`."""
    return await CmsService(session).public_content(lang)


@router.get("/legal/{page}", response_model=LegalPage)
async def get_legal_page(
    page: str,
    lang: str = Query(default=DEFAULT_LOCALE),
    session: AsyncSession = Depends(get_db),
):
    return await CmsService(session).legal_page(page, lang)
