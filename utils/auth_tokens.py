"""App-level JWTs identifying the caller; Spotify tokens are never embedded."""

from __future__ import annotations

import time
from typing import Any, Dict, Optional

import jwt

ALGORITHM = "HS256"


def issue_app_token(user_id: str, display_name: Optional[str], secret: str, ttl_seconds: int) -> str:
    """Return a signed token carrying the user id and display name."""
    now = int(time.time())
    claims = {"sub": user_id, "name": display_name or user_id, "iat": now, "exp": now + int(ttl_seconds)}
    return jwt.encode(claims, secret, algorithm=ALGORITHM)


def decode_app_token(token: str, secret: str) -> Dict[str, Any]:
    """Verify a token and return its claims.

    Raises:
        jwt.PyJWTError: If the token is malformed, tampered with, or expired.
    """
    claims = jwt.decode(token, secret, algorithms=[ALGORITHM], options={"require": ["sub", "exp"]})
    return claims
