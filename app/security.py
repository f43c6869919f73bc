"""Security: rate limiting and Supabase access-token authentication.

Sessions are issued by Supabase Auth; this service only verifies the bearer
token (HS256, signed with the project's JWT secret) and loads the caller's
``users_profiles`` row. Admin access is a single check on ``role == "admin"``.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.database import get_async_session
from app.errors import NOT_AUTHORIZED, ApiError
from app.models import UserProfile

logger = logging.getLogger(__name__)
settings = get_settings()

# Rate limiter using client IP
limiter = Limiter(key_func=get_remote_address)

bearer_scheme = HTTPBearer(auto_error=False)

JWT_ALGORITHMS = ["HS256"]


@dataclass
class AdminContext:
    """Admin identity stamped on reviewed payments."""

    user_id: str
    firebase_id: str
    name: str


class InvalidAccessToken(Exception):
    """Raised when a bearer token cannot be verified."""


def decode_access_token(token: str) -> dict:
    """
    Verify a Supabase access token and return its claims.

    Raises:
        InvalidAccessToken: expired, badly signed, wrong audience or no subject.
    """
    secret = settings.SUPABASE_JWT_SECRET
    if not secret:
        logger.error("SUPABASE_JWT_SECRET not configured - rejecting all tokens")
        raise InvalidAccessToken("auth not configured")

    try:
        claims = jwt.decode(
            token,
            secret,
            algorithms=JWT_ALGORITHMS,
            audience=settings.SUPABASE_JWT_AUDIENCE,
        )
    except jwt.ExpiredSignatureError as e:
        raise InvalidAccessToken("token expired") from e
    except jwt.InvalidTokenError as e:
        raise InvalidAccessToken(str(e)) from e

    if not claims.get("sub"):
        raise InvalidAccessToken("token without subject")
    return claims


async def _load_profile(session: AsyncSession, user_id: str) -> Optional[UserProfile]:
    return await session.get(UserProfile, user_id)


async def get_current_profile(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
    session: AsyncSession = Depends(get_async_session),
) -> UserProfile:
    """Authenticated caller's profile (401 when missing or invalid)."""
    if credentials is None:
        raise HTTPException(status_code=401, detail="Missing bearer token")

    try:
        claims = decode_access_token(credentials.credentials)
    except InvalidAccessToken as e:
        logger.info(f"Rejected access token: {e}")
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    profile = await _load_profile(session, claims["sub"])
    if profile is None:
        raise HTTPException(status_code=401, detail="Profile not found")
    return profile


async def require_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
    session: AsyncSession = Depends(get_async_session),
) -> AdminContext:
    """
    Admin gate for /api/admin/* routes.

    Any failure (no token, bad token, unknown profile, non-admin role) answers
    403 with the same body so callers cannot tell which check failed.
    """
    if credentials is None:
        raise ApiError(403, NOT_AUTHORIZED)

    try:
        claims = decode_access_token(credentials.credentials)
    except InvalidAccessToken:
        raise ApiError(403, NOT_AUTHORIZED)

    profile = await _load_profile(session, claims["sub"])
    if profile is None or profile.role != "admin":
        logger.warning(f"Admin access denied for user {claims['sub']}")
        raise ApiError(403, NOT_AUTHORIZED)

    return AdminContext(
        user_id=profile.id,
        firebase_id=profile.firebase_id,
        name=profile.name,
    )
