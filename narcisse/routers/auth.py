"""Back-office login and current user."""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from narcisse.core.config import settings
from narcisse.core.exceptions import UnauthorizedError
from narcisse.core.ratelimit import enforce_rate_limit
from narcisse.core.security import create_access_token, get_current_user
from narcisse.db.base import get_db
from narcisse.domain.user import User
from narcisse.schemas.auth import CurrentUser, LoginRequest, TokenResponse
from narcisse.services.employees import authenticate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    request: Request,
    session: AsyncSession = Depends(get_db),
):
    await enforce_rate_limit(request, "auth:login", 10, 60)
    user = await authenticate(session, body.email, body.password)
    if user is None:
        logger.info("Failed login for %s", body.email)
        raise UnauthorizedError("Identifiants invalides")
    return TokenResponse(
        access_token=create_access_token(user),
        expires_in=settings.jwt_expire_hours * 3600,
    )


@router.get("/me", response_model=CurrentUser)
async def me(current_user: User = Depends(get_current_user)):
    return CurrentUser.model_validate(current_user)
