"""
Session tokens: HS256 JWTs bound to a user id, valid for a fixed lifetime.

Tokens are stateless; nothing is stored server-side and logout only drops the
cookie. A token stops being honored when it expires or the secret rotates.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt as pyjwt
from fastapi import Response

from app.config import settings

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


def mint_token(user_id: str, issued_at: Optional[datetime] = None) -> str:
    """Create a signed token for ``user_id`` expiring ``session_max_age_seconds`` after ``issued_at``."""
    issued_at = issued_at or datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "iat": issued_at,
        "exp": issued_at + timedelta(seconds=settings.session_max_age_seconds),
    }
    return pyjwt.encode(payload, settings.session_secret, algorithm=ALGORITHM)


def verify_token(token: Optional[str]) -> Optional[str]:
    """Return the user id the token was minted for, or None if it is not valid now."""
    if not token:
        return None
    try:
        payload = pyjwt.decode(
            token,
            settings.session_secret,
            algorithms=[ALGORITHM],
            options={"require": ["exp", "sub"]},
        )
    except pyjwt.PyJWTError as e:
        logger.debug(f"Rejected session token: {type(e).__name__}")
        return None
    return str(payload["sub"])


def cookie_settings() -> dict:
    return {
        "key": settings.session_cookie_name,
        "httponly": True,
        "samesite": "lax",
        "secure": not settings.is_local,
        "path": "/",
    }


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(value=token, max_age=settings.session_max_age_seconds, **cookie_settings())


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(**cookie_settings())
