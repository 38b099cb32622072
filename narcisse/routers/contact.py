"""Group and private-tour request forms."""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from narcisse.core.ratelimit import enforce_rate_limit, get_client_ip
from narcisse.db.base import get_db
from narcisse.schemas.contact import ContactForm, ContactResponse
from narcisse.services.captcha import verify_captcha
from narcisse.services.contacts import ContactService
from narcisse.services.emails import send_contact_request

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/contact", tags=["Contact"])


async def _submit(kind: str, body: ContactForm, request: Request, session: AsyncSession) -> ContactResponse:
    await enforce_rate_limit(request, f"contact:{kind}", 10, 60)
    await verify_captcha(body.captcha_token, get_client_ip(request.headers))
    contact = await ContactService(session).record(kind, body)
    forwarded = await send_contact_request(kind, body.details())
    if not forwarded:
        logger.warning("Contact request (%s) from %s was not forwarded", kind, body.email)
    return ContactResponse(forwarded=forwarded, id=contact.id)


@router.post("/group", response_model=ContactResponse)
async def contact_group(body: ContactForm, request: Request, session: AsyncSession = Depends(get_db)):
    return await _submit("group", body, request, session)


@router.post("/private", response_model=ContactResponse)
async def contact_private(body: ContactForm, request: Request, session: AsyncSession = Depends(get_db)):
    return await _submit("private", body, request, session)
