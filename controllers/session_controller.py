"""Caller identification and Spotify session lookup for HTTP handlers."""

from __future__ import annotations

import logging
import secrets
import time
from typing import Any, Dict, List

import jwt
from fastapi import HTTPException, Request

from models.session_models import Session
from services.session.session_store import SessionRepository
from services.spotify.errors import AuthorizationError
from utils.auth_tokens import decode_app_token

LOGGER = logging.getLogger(__name__)

AUTH_COOKIE = "authToken"
DIAGNOSTICS_HEADER = "X-Diagnostics-Token"


def require_state(request: Request, name: str) -> Any:
    """Retrieve a shared collaborator from the app state."""
    value = getattr(request.app.state, name, None)
    if value is None:
        raise HTTPException(status_code=500, detail=f"{name} is not initialized.")
    return value


def _bearer_token(request: Request) -> str:
    header = request.headers.get("Authorization", "")
    if header.lower().startswith("bearer "):
        return header[7:].strip()
    return request.cookies.get(AUTH_COOKIE, "")


def resolve_user_id(request: Request) -> str:
    """Return the user id from the caller's app token or raise 401."""
    token = _bearer_token(request)
    if not token:
        raise HTTPException(status_code=401, detail={"code": "NO_TOKEN", "message": "No authentication token provided"})
    settings = require_state(request, "settings")
    try:
        claims = decode_app_token(token, settings.jwt_secret)
    except jwt.PyJWTError as exc:
        raise HTTPException(
            status_code=401, detail={"code": "INVALID_TOKEN", "message": "Invalid or expired token"}
        ) from exc
    return str(claims["sub"])


async def get_active_session(request: Request) -> Session:
    """Return the caller's live Spotify session, refreshing a nearly expired token.

    Raises:
        HTTPException(401): When the caller is unauthenticated or must re-authorize Spotify.
    """
    user_id = resolve_user_id(request)
    store: SessionRepository = require_state(request, "session_store")
    session = store.get(user_id)
    if session is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "NO_SESSION", "message": "Please re-authenticate with Spotify"},
        )

    settings = request.app.state.settings
    if session.refresh_token and session.expires_at - time.time() <= settings.session_refresh_margin:
        auth_service = getattr(request.app.state, "auth_service", None)
        if auth_service is not None:
            try:
                access_token, expires_at = await auth_service.refresh_access_token(session.refresh_token)
            except AuthorizationError as exc:
                LOGGER.warning("Token refresh failed for user %s: %s", user_id, exc)
            else:
                if store.refresh(user_id, access_token, expires_at):
                    session = store.get(user_id) or session
    return session


def require_diagnostics_access(request: Request) -> None:
    """Allow the session listing only to operators holding the diagnostics token.

    Raises:
        HTTPException(403): When no diagnostics token is configured.
        HTTPException(401): When the request does not carry the configured token.
    """
    expected = require_state(request, "settings").diagnostics_token
    if not expected:
        raise HTTPException(
            status_code=403,
            detail={"code": "DIAGNOSTICS_DISABLED", "message": "Session diagnostics are disabled"},
        )
    supplied = request.headers.get(DIAGNOSTICS_HEADER, "")
    if not secrets.compare_digest(supplied.encode(), expected.encode()):
        raise HTTPException(
            status_code=401,
            detail={"code": "DIAGNOSTICS_TOKEN_REQUIRED", "message": "A valid diagnostics token is required"},
        )


async def list_active_sessions(request: Request) -> Dict[str, List[Dict[str, Any]]]:
    """Return a secret-free view of every live session to a diagnostics caller."""
    require_diagnostics_access(request)
    store: SessionRepository = require_state(request, "session_store")
    return {"sessions": [session.public_view() for session in store.list_active()]}
