"""Spotify OAuth authorization-code flow as an explicit two-step protocol."""

from __future__ import annotations

import logging
import secrets
import time
from typing import Callable, Dict, Iterable, Optional, Tuple
from urllib.parse import urlencode

import httpx

from models.session_models import TokenGrant
from services.spotify.errors import AuthorizationError

LOGGER = logging.getLogger(__name__)

SPOTIFY_AUTHORIZE_URL = "https://accounts.spotify.com/authorize"
SPOTIFY_TOKEN_URL = "https://accounts.spotify.com/api/token"
SPOTIFY_PROFILE_URL = "https://api.spotify.com/v1/me"
STATE_TTL_SECONDS = 600

DEFAULT_SCOPES = (
    "user-read-email",
    "user-read-private",
    "user-read-playback-state",
    "user-modify-playback-state",
    "user-read-currently-playing",
    "user-read-recently-played",
    "user-top-read",
    "playlist-read-private",
    "playlist-read-collaborative",
    "playlist-modify-public",
    "playlist-modify-private",
    "user-library-read",
    "user-library-modify",
)


class SpotifyAuthService:
    """Build authorize URLs, exchange codes for tokens, and refresh tokens."""

    def __init__(
        self,
        client_id: Optional[str],
        client_secret: Optional[str],
        redirect_uri: Optional[str],
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.client = client or httpx.AsyncClient(timeout=timeout)
        self.timeout = timeout
        self._clock = clock
        self._pending_states: Dict[str, float] = {}

    def _require_credentials(self) -> Tuple[str, str]:
        if not self.client_id or not self.client_secret or not self.redirect_uri:
            raise AuthorizationError(
                "SPOTIFY_CLIENT_ID, SPOTIFY_CLIENT_SECRET and SPOTIFY_REDIRECT_URI must be configured."
            )
        return self.client_id, self.client_secret

    def _prune_states(self) -> None:
        cutoff = self._clock() - STATE_TTL_SECONDS
        for state in [s for s, issued in self._pending_states.items() if issued < cutoff]:
            del self._pending_states[state]

    def begin_authorization(self, scopes: Iterable[str] = DEFAULT_SCOPES) -> str:
        """Return the Spotify authorize URL the browser should be redirected to."""
        client_id, _ = self._require_credentials()
        self._prune_states()
        state = secrets.token_urlsafe(16)
        self._pending_states[state] = self._clock()
        query = urlencode(
            {
                "response_type": "code",
                "client_id": client_id,
                "scope": " ".join(scopes),
                "redirect_uri": self.redirect_uri,
                "state": state,
            }
        )
        return f"{SPOTIFY_AUTHORIZE_URL}?{query}"

    async def complete_authorization(self, code: str, state: Optional[str]) -> TokenGrant:
        """Exchange an authorization code for tokens and the user's profile.

        Raises:
            AuthorizationError: If the state is unknown or Spotify refuses the exchange.
        """
        self._prune_states()
        if not state or self._pending_states.pop(state, None) is None:
            raise AuthorizationError("Unknown or expired OAuth state.")

        data = await self._token_request({
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self.redirect_uri,
        })
        access_token = data.get("access_token")
        if not access_token:
            raise AuthorizationError("Spotify token response did not include an access token.")
        expires_at = self._clock() + int(data.get("expires_in", 3600))

        try:
            me_resp = await self.client.get(
                SPOTIFY_PROFILE_URL,
                headers={"Authorization": f"Bearer {access_token}"},
                timeout=self.timeout,
            )
        except httpx.HTTPError as exc:
            raise AuthorizationError(f"Failed to fetch Spotify profile: {exc}") from exc
        if me_resp.is_error:
            raise AuthorizationError(f"Failed to fetch Spotify profile: HTTP {me_resp.status_code}")

        profile = me_resp.json()
        if not profile.get("id"):
            raise AuthorizationError("Spotify profile response is missing the user id.")

        LOGGER.info("Spotify authorization completed for user %s", profile["id"])
        return TokenGrant(
            access_token=access_token,
            refresh_token=data.get("refresh_token"),
            expires_at=expires_at,
            profile=profile,
        )

    async def refresh_access_token(self, refresh_token: str) -> Tuple[str, float]:
        """Return a new (access_token, expires_at) pair."""
        data = await self._token_request({"grant_type": "refresh_token", "refresh_token": refresh_token})
        access_token = data.get("access_token")
        if not access_token:
            raise AuthorizationError("Spotify refresh response did not include an access token.")
        return access_token, self._clock() + int(data.get("expires_in", 3600))

    async def _token_request(self, form: Dict[str, Optional[str]]) -> Dict[str, object]:
        client_id, client_secret = self._require_credentials()
        try:
            resp = await self.client.post(
                SPOTIFY_TOKEN_URL,
                data=form,
                auth=(client_id, client_secret),
                timeout=self.timeout,
            )
        except httpx.HTTPError as exc:
            LOGGER.error("Failed to contact Spotify token endpoint: %s", exc)
            raise AuthorizationError(f"Failed to contact Spotify token endpoint: {exc}") from exc

        if resp.status_code != 200:
            LOGGER.error("Spotify token request (%s) failed with HTTP %s", form.get("grant_type"), resp.status_code)
            raise AuthorizationError(f"Spotify token request failed: HTTP {resp.status_code}")
        return resp.json()

    async def aclose(self) -> None:
        await self.client.aclose()
