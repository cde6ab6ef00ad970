import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, Query, Request, status
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from forum_api import config
from forum_api.database import get_async_session
from forum_api.models.user_model import User

logger = logging.getLogger(__name__)


def _get_secret_key() -> str:
    secret = config.SECRET_KEY
    if not secret:
        # Fail fast with a clear message instead of a generic 500
        raise RuntimeError("SECRET_KEY is not configured in the backend environment")
    if len(secret) < 32:
        raise RuntimeError("SECRET_KEY is too short; use at least 32 characters")
    return secret


def token_by_id(user_id: int, name: Optional[str] = None, role: str = "GENERAL") -> str:
    """Issue a signed access token bound to ``user_id``."""
    expire = datetime.now(timezone.utc) + timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode = {
        "id": user_id,         # what resolve_token expects
        "sub": name or str(user_id),
        "role": role,
        "exp": expire,
    }
    try:
        return jwt.encode(to_encode, _get_secret_key(), algorithm=config.ALGORITHM)
    except JWTError as e:
        raise RuntimeError(f"JWT encode failed: {e}")


def create_access_token(user: User) -> str:
    return token_by_id(user.id, name=user.name, role=user.role)


def _token_from_request(request: Request, token: Optional[str]) -> Optional[str]:
    if token:
        return token.strip()
    auth = request.headers.get("Authorization")
    if auth and auth.lower().startswith("bearer "):
        return auth.split(" ", 1)[1].strip()
    return None


async def resolve_token(token: Optional[str], db: AsyncSession) -> Optional[User]:
    """Return the user a token belongs to, or None for guests."""
    if not token:
        return None
    try:
        payload = jwt.decode(token, _get_secret_key(), algorithms=[config.ALGORITHM])
    except JWTError as e:
        logger.debug("rejected token: %s", e)
        return None

    user_id = payload.get("id")
    if user_id is None:
        return None
    try:
        user_id = int(user_id)
    except (TypeError, ValueError):
        return None
    return await db.get(User, user_id)


async def get_current_user_optional(
    request: Request,
    token: Optional[str] = Query(None, description="Access token; a Bearer header works too"),
    db: AsyncSession = Depends(get_async_session),
) -> Optional[User]:
    return await resolve_token(_token_from_request(request, token), db)


async def get_current_user(
    user: Optional[User] = Depends(get_current_user_optional),
) -> User:
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthenticated.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user
