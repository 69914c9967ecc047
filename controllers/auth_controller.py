"""Spotify sign-in, sign-out, and identity endpoints."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request
from fastapi.responses import RedirectResponse

from controllers.session_controller import AUTH_COOKIE, get_active_session, require_state, resolve_user_id
from services.session.session_store import SessionRepository
from services.spotify.auth_service import SpotifyAuthService
from services.spotify.errors import AuthorizationError
from utils.auth_tokens import issue_app_token

LOGGER = logging.getLogger(__name__)


def begin_login(request: Request) -> RedirectResponse:
    """Redirect the browser to Spotify's consent page."""
    auth_service: SpotifyAuthService = require_state(request, "auth_service")
    try:
        url = auth_service.begin_authorization()
    except AuthorizationError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return RedirectResponse(url, status_code=302)


async def complete_login(
    request: Request, code: Optional[str], state: Optional[str], error: Optional[str]
) -> RedirectResponse:
    """Finish the OAuth exchange, store the session, and hand the browser an app token."""
    settings = require_state(request, "settings")
    failure_url = f"{settings.frontend_url}/login?error=spotify_failed"
    if error or not code:
        LOGGER.warning("Spotify authorization was not granted: %s", error or "missing code")
        return RedirectResponse(failure_url, status_code=302)

    auth_service: SpotifyAuthService = require_state(request, "auth_service")
    try:
        grant = await auth_service.complete_authorization(code, state)
    except AuthorizationError as exc:
        LOGGER.warning("Spotify authorization failed: %s", exc)
        return RedirectResponse(failure_url, status_code=302)

    store: SessionRepository = require_state(request, "session_store")
    store.put(grant.user_id, grant.access_token, grant.refresh_token, grant.expires_at, grant.profile)

    token = issue_app_token(
        grant.user_id, grant.profile.get("display_name"), settings.jwt_secret, settings.jwt_ttl_seconds
    )
    response = RedirectResponse(f"{settings.frontend_url}/dashboard", status_code=302)
    response.set_cookie(
        AUTH_COOKIE, token, max_age=settings.jwt_ttl_seconds, httponly=False, samesite="lax"
    )
    return response


async def current_user(request: Request) -> Dict[str, Any]:
    """Return the caller's session summary and cached Spotify profile."""
    session = await get_active_session(request)
    profile = session.profile
    return {
        **session.public_view(),
        "profile": {
            key: profile.get(key)
            for key in ("id", "display_name", "email", "country", "product", "images", "followers")
        },
    }


def logout(request: Request) -> Dict[str, str]:
    """Drop the caller's Spotify session. Succeeds even without a valid token."""
    try:
        user_id = resolve_user_id(request)
    except HTTPException:
        return {"message": "Logged out successfully"}
    store: SessionRepository = require_state(request, "session_store")
    store.delete(user_id)
    LOGGER.info("User %s logged out", user_id)
    return {"message": "Logged out successfully"}
