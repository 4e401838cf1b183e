import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Request
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from app import config
from app.database import get_async_session
from app.integrity.errors import Forbidden
from app.integrity.policy import Principal
from app.models.user_model import User

logger = logging.getLogger(__name__)


def _get_secret_key() -> str:
    secret = config.SECRET_KEY
    if not secret:
        # Fail fast with a clear message instead of a generic 500
        raise RuntimeError("SECRET_KEY is not configured in the backend environment")
    if len(secret) < 32:
        raise RuntimeError("SECRET_KEY is too short; use at least 32 characters")
    return secret


def create_access_token(user: User) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode = {
        "id": user.id,         # what get_current_principal expects
        "sub": user.username,  # helpful for auditing/logs
        "role": user.role,
        "exp": expire,
    }
    return jwt.encode(to_encode, _get_secret_key(), algorithm=config.ALGORITHM)


def _extract_token(request: Request) -> Optional[str]:
    raw = request.headers.get("x-access-token") or request.headers.get("Authorization")
    if not raw:
        return None
    # "Bearer <jwt>" in Authorization, bare token allowed in x-access-token
    parts = raw.strip().split(" ", 1)
    token = parts[1] if len(parts) == 2 else parts[0]
    return token.strip() or None


async def get_current_principal(
    request: Request,
    session: AsyncSession = Depends(get_async_session),
) -> Principal:
    """Session check: the JWT must decode and name a user that still exists."""
    invalid_session = Forbidden("Not valid session")

    token = _extract_token(request)
    if token is None:
        raise invalid_session

    try:
        payload = jwt.decode(token, _get_secret_key(), algorithms=[config.ALGORITHM])
    except JWTError as e:
        logger.error("#checkSession# Error JWT: %s", e)
        raise invalid_session

    user_id = payload.get("id")
    if user_id is None:
        raise invalid_session

    user = await session.get(User, int(user_id))
    if user is None:
        logger.error("#checkSession# User %s from token no longer exists", user_id)
        raise invalid_session

    # The role is read from the store, not the token, so role changes apply immediately
    return Principal(id=user.id, role=user.role)
