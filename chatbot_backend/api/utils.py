"""
JWT utilities for issuing and verifying session tokens.

Functions
---------
create_access_token(data: dict) -> str
    Creates a signed JWT access token with an expiration (`exp`) claim.
    Tokens are issued by trusted code only; no endpoint exposes this.
verify_token(token: str) -> dict | None
    Verify a JWT's signature & expiration and return its claims if valid.
get_session_user(request) -> SessionUser
    FastAPI dependency: the user behind the session cookie, or 401.

Environment contract (from `settings`)
--------------------------------------
SECRET_KEY : str
    HMAC signing key for JWTs.
ALGORITHM : str
    JWT signing algorithm (e.g., "HS256").
ACCESS_TOKEN_EXPIRE_MINUTES : int
    Token lifetime window in minutes.
AUTH_COOKIE_NAME : str
    Name of the cookie carrying the session token.
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException, Request
from jose import jwt, JWTError

from chatbot_backend.api.models import SessionUser
from chatbot_backend.database.config.config import settings

logger = logging.getLogger(__name__)


def create_access_token(data: dict) -> str:
    """
    Create a signed JWT access token.

    Parameters
    ----------
    data : dict
        Claims to embed in the token (``sub``, ``name``, ``email``).

    Returns
    -------
    str
        Encoded JWT string.

    Notes
    ----------
    - Adds an `exp` (expiration) claim calculated from ACCESS_TOKEN_EXPIRE_MINUTES.
    - Uses `settings.SECRET_KEY` and `settings.ALGORITHM` for signing.
    """
    expiration_time = settings.ACCESS_TOKEN_EXPIRE_MINUTES
    encoding = data.copy()
    # exp is a NumericDate (seconds since epoch)
    expires = int(datetime.now().timestamp()) + (int(expiration_time) * 60)
    encoding.update({"exp": expires})
    return jwt.encode(encoding, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def verify_token(token: str) -> Optional[dict]:
    """
    Verify a JWT and return its claims.

    Returns
    ----------
    dict | None
        The decoded payload if the token is valid, otherwise None
        (invalid signature, expired, malformed).
    """
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        logger.info("Rejected session token: %s", e)
        return None


def get_session_user(request: Request) -> SessionUser:
    """Resolve the current user from the session cookie or raise 401."""
    token = request.cookies.get(settings.AUTH_COOKIE_NAME)
    if not token:
        raise HTTPException(status_code=401, detail="Unauthorized")
    payload = verify_token(token)
    if not payload or not payload.get("sub"):
        raise HTTPException(status_code=401, detail="Unauthorized")
    return SessionUser(
        id=str(payload["sub"]),
        name=str(payload.get("name") or ""),
        email=str(payload.get("email") or ""),
    )
