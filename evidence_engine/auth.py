"""
Caller Identity
===============

Resolves who is asking for a report. Authentication itself happens upstream;
this module only reads the identity it produced.

Identity sources, in order:
1. `Authorization: Bearer <jwt>` (HS256, `sub` = user id, `email`)
2. `X-User-Id` / `X-User-Email` headers set by a trusted gateway

Admin status comes from the ADMIN_EMAILS list.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Header

from .config import Settings, get_settings
from .models import Caller

logger = logging.getLogger(__name__)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None,
                        settings: Optional[Settings] = None) -> str:
    """Create a JWT access token"""
    settings = settings or get_settings()
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.jwt_access_token_expire_minutes)
    )
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str, settings: Optional[Settings] = None) -> Optional[dict]:
    """Decode and validate a JWT token"""
    settings = settings or get_settings()
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except jwt.InvalidTokenError as e:
        logger.warning(f"Invalid JWT token: {e}")
        return None


def is_admin_email(email: Optional[str], settings: Optional[Settings] = None) -> bool:
    if not email:
        return False
    settings = settings or get_settings()
    return email.strip().lower() in settings.admin_email_list


def resolve_caller(
    authorization: Optional[str],
    x_user_id: Optional[str],
    x_user_email: Optional[str],
    settings: Optional[Settings] = None,
) -> Optional[Caller]:
    """
    Build the caller from request credentials.

    A bearer token that fails validation is not silently replaced by the
    headers: the request is treated as unauthenticated.
    """
    settings = settings or get_settings()

    if authorization and authorization.lower().startswith("bearer "):
        token = authorization.split(" ", 1)[1].strip()
        payload = decode_token(token, settings)
        if not payload or not payload.get("sub"):
            return None
        user_id = str(payload["sub"])
        email = payload.get("email") or payload.get("preferred_username")
    else:
        user_id = (x_user_id or "").strip()
        email = (x_user_email or "").strip() or None
        if not user_id:
            return None

    return Caller(user_id=user_id, email=email, is_admin=is_admin_email(email, settings))


async def get_caller(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
    x_user_email: Optional[str] = Header(None, alias="X-User-Email"),
    authorization: Optional[str] = Header(None, alias="Authorization"),
) -> Optional[Caller]:
    """
    FastAPI dependency returning the caller, or None when unauthenticated.

    The report service turns None into an UNAUTHORIZED error so every
    failure uses the same response shape.
    """
    return resolve_caller(authorization, x_user_id, x_user_email)
