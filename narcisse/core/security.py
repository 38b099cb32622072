"""Authentication and role checks: bcrypt password hashes, HS256 bearer JWTs."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from narcisse.core.business import ADMIN_ROLES
from narcisse.core.config import settings
from narcisse.core.exceptions import ForbiddenError, UnauthorizedError
from narcisse.db.base import get_db
from narcisse.domain.user import User

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"

bearer = HTTPBearer(auto_error=False)


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    if not hashed_password:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is not a bcrypt hash")
        return False


def create_access_token(user: User) -> str:
    expire = datetime.now(timezone.utc) + timedelta(hours=settings.jwt_expire_hours)
    claims = {
        "sub": user.id,
        "role": user.role,
        "sv": user.session_version,
        "exp": expire,
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=ALGORITHM)


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[ALGORITHM])
    except JWTError as exc:
        raise UnauthorizedError("Jeton invalide ou expiré") from exc


async def _resolve_user(token: str, session: AsyncSession) -> User:
    payload = decode_token(token)
    user_id = payload.get("sub")
    user = await session.get(User, user_id) if user_id else None
    if user is None:
        raise UnauthorizedError("Utilisateur introuvable")
    if not user.is_active:
        raise UnauthorizedError("Compte désactivé")
    if payload.get("sv") != user.session_version:
        raise UnauthorizedError("Session expirée")
    return user


# ---------------------------------------------------------------------------
# FastAPI dependencies
# ---------------------------------------------------------------------------

async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    session: AsyncSession = Depends(get_db),
) -> User:
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError()
    return await _resolve_user(credentials.credentials, session)


async def optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    session: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """Current user when a valid bearer token is sent, otherwise None."""
    if credentials is None or not credentials.credentials:
        return None
    try:
        return await _resolve_user(credentials.credentials, session)
    except UnauthorizedError:
        return None


def require_roles(*roles: str):
    allowed = set(roles)

    async def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            raise ForbiddenError("Accès refusé")
        return current_user

    return role_checker


def has_page_permission(user: User, page: str) -> bool:
    """Admins see everything; employees only the back-office pages granted to them."""
    if user.role in ADMIN_ROLES:
        return True
    if user.role != "EMPLOYEE":
        return False
    permissions = user.admin_permissions or {}
    pages = permissions.get("pages") if isinstance(permissions, dict) else None
    return bool(pages) and page in pages


# Back-office gates: staff may read, only admins write
staff_user = require_roles("EMPLOYEE", "ADMIN", "SUPERADMIN")
admin_user = require_roles(*ADMIN_ROLES)
