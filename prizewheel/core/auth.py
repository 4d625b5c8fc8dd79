"""
JWT Authentication utilities

Tokens are issued by the external auth provider; this module only verifies
them and resolves the caller identity handed to every handler.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from uuid import UUID

from jose import JWTError, jwt
from fastapi import HTTPException, status, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from prizewheel.core.config import settings
from prizewheel.db.session import get_db
from prizewheel.models.enums import AppRole
from prizewheel.repos.user_role_repo import has_role

# Configure logging
logger = logging.getLogger(__name__)

# JWT token scheme
security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    """Caller identity resolved from the bearer credential"""
    id: UUID
    email: str


def _unauthorized(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token (used by tests and the CLI)."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.jwt_access_token_expire_minutes)
    )
    to_encode.update({"exp": expire})
    if settings.jwt_audience and "aud" not in to_encode:
        to_encode["aud"] = settings.jwt_audience
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> Dict[str, Any]:
    """Verify and decode a JWT token."""
    try:
        if settings.jwt_audience:
            return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm],
                              audience=settings.jwt_audience)
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm],
                          options={"verify_aud": False})
    except JWTError as e:
        logger.warning(f"Rejected bearer token: {e}")
        raise _unauthorized()


def user_from_claims(payload: Dict[str, Any]) -> CurrentUser:
    user_id = payload.get("sub")
    email = payload.get("email")
    if not user_id or not email:
        raise _unauthorized()
    try:
        return CurrentUser(id=UUID(str(user_id)), email=str(email))
    except ValueError:
        raise _unauthorized()


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> CurrentUser:
    """Get current authenticated user."""
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Not authenticated")
    return user_from_claims(verify_token(credentials.credentials))


async def get_current_admin(
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db)
) -> CurrentUser:
    """Get current authenticated user holding the admin role."""
    if not await has_role(session, user.id, AppRole.ADMIN):
        logger.warning(f"User {user.id} attempted an admin action without the admin role")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return user
