"""Stateless adapter from playback intents to the Spotify Web API.

Command operations (play, pause, skip, volume, ...) raise `UpstreamError`
when Spotify rejects them, because the caller has to know the command did
not take effect. Read operations used for suggestions and dashboards
(search, recommendations, queue, devices, listening history) degrade to an
empty value instead and log a warning.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Sequence

import httpx

from services.spotify.errors import UpstreamError

LOGGER = logging.getLogger(__name__)

SPOTIFY_API_BASE_URL = "https://api.spotify.com/v1"
DEFAULT_TIMEOUT = 10.0
REPEAT_MODES = ("track", "context", "off")


def track_uri(track_id: str) -> str:
    """Return the Spotify URI for a bare track id (URIs pass through)."""
    return track_id if track_id.startswith("spotify:") else f"spotify:track:{track_id}"


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return str(error.get("message") or response.reason_phrase)
    if isinstance(error, str):
        return body.get("error_description") or error
    return response.reason_phrase


def _decode(response: httpx.Response, operation: str) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        raise UpstreamError(operation, response.status_code, "invalid JSON in Spotify response") from exc


class SpotifyPlaybackGateway:
    """Issue authenticated Spotify Web API calls with a caller-supplied token."""

    def __init__(self, client: Optional[httpx.AsyncClient] = None, timeout: float = DEFAULT_TIMEOUT) -> None:
        """Initialize the gateway.

        Args:
            client: Optional shared async HTTP client; one pointed at the
                Spotify API is created when omitted.
            timeout: Per-request timeout in seconds.
        """
        self.timeout = timeout
        self.client = client or httpx.AsyncClient(base_url=SPOTIFY_API_BASE_URL, timeout=timeout)

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _send(
        self,
        method: str,
        path: str,
        token: str,
        *,
        operation: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        query = {key: value for key, value in (params or {}).items() if value is not None}
        body: Dict[str, Any] = {"json": json} if json is not None else {}
        if not body and method in ("PUT", "POST"):
            # Spotify answers 411 to bodiless writes without a Content-Length.
            body = {"content": b""}
        try:
            response = await self.client.request(
                method,
                path,
                headers={"Authorization": f"Bearer {token}"},
                params=query,
                timeout=self.timeout,
                **body,
            )
        except httpx.TimeoutException as exc:
            raise UpstreamError(operation, None, "Spotify request timed out") from exc
        except httpx.HTTPError as exc:
            raise UpstreamError(operation, None, str(exc)) from exc

        if response.is_error:
            raise UpstreamError(operation, response.status_code, _error_detail(response))
        return response

    async def _get_json(self, path: str, token: str, *, operation: str, params=None) -> Any:
        response = await self._send("GET", path, token, operation=operation, params=params)
        if response.status_code == 204 or not response.content:
            return None
        return _decode(response, operation)

    async def _advisory(self, operation: str, default: Any, path: str, token: str, params=None) -> Any:
        """GET that logs and returns `default` instead of raising."""
        try:
            payload = await self._get_json(path, token, operation=operation, params=params)
        except UpstreamError as exc:
            LOGGER.warning("Spotify %s degraded to empty result: %s", operation, exc)
            return default
        if not isinstance(payload, dict):
            if payload is not None:
                LOGGER.warning("Spotify %s returned an unexpected payload; using empty result", operation)
            return default
        return payload

    # Playback state and commands

    async def get_current_playback_state(self, token: str) -> Optional[Dict[str, Any]]:
        """Return the current playback state, or None when no device is active."""
        return await self._get_json("/me/player", token, operation="get_playback_state")

    async def play_track(self, token: str, track_id: str, device_id: Optional[str] = None) -> None:
        await self._send(
            "PUT", "/me/player/play", token,
            operation="play_track",
            params={"device_id": device_id},
            json={"uris": [track_uri(track_id)]},
        )
        LOGGER.info("Playing track %s", track_id)

    async def play_playlist(self, token: str, playlist_id: str, device_id: Optional[str] = None) -> None:
        await self._send(
            "PUT", "/me/player/play", token,
            operation="play_playlist",
            params={"device_id": device_id},
            json={"context_uri": f"spotify:playlist:{playlist_id}"},
        )
        LOGGER.info("Playing playlist %s", playlist_id)

    async def resume(self, token: str, device_id: Optional[str] = None) -> None:
        await self._send("PUT", "/me/player/play", token, operation="resume", params={"device_id": device_id}, json={})

    async def pause(self, token: str, device_id: Optional[str] = None) -> None:
        await self._send("PUT", "/me/player/pause", token, operation="pause", params={"device_id": device_id})

    async def skip_next(self, token: str, device_id: Optional[str] = None) -> None:
        await self._send("POST", "/me/player/next", token, operation="skip_next", params={"device_id": device_id})

    async def skip_previous(self, token: str, device_id: Optional[str] = None) -> None:
        await self._send(
            "POST", "/me/player/previous", token, operation="skip_previous", params={"device_id": device_id}
        )

    async def seek(self, token: str, position_ms: int, device_id: Optional[str] = None) -> None:
        await self._send(
            "PUT", "/me/player/seek", token,
            operation="seek",
            params={"position_ms": int(position_ms), "device_id": device_id},
        )

    async def set_volume(self, token: str, percent: int, device_id: Optional[str] = None) -> None:
        await self._send(
            "PUT", "/me/player/volume", token,
            operation="set_volume",
            params={"volume_percent": int(percent), "device_id": device_id},
        )

    async def set_shuffle(self, token: str, enabled: bool, device_id: Optional[str] = None) -> None:
        await self._send(
            "PUT", "/me/player/shuffle", token,
            operation="set_shuffle",
            params={"state": "true" if enabled else "false", "device_id": device_id},
        )

    async def set_repeat(self, token: str, mode: str, device_id: Optional[str] = None) -> None:
        if mode not in REPEAT_MODES:
            raise ValueError(f"Repeat mode must be one of {', '.join(REPEAT_MODES)}.")
        await self._send(
            "PUT", "/me/player/repeat", token,
            operation="set_repeat",
            params={"state": mode, "device_id": device_id},
        )

    async def enqueue(self, token: str, track_id: str, device_id: Optional[str] = None) -> None:
        await self._send(
            "POST", "/me/player/queue", token,
            operation="enqueue",
            params={"uri": track_uri(track_id), "device_id": device_id},
        )
        LOGGER.info("Added %s to queue", track_id)

    async def transfer_playback(self, token: str, device_id: str, play: bool = True) -> None:
        await self._send(
            "PUT", "/me/player", token,
            operation="transfer_playback",
            json={"device_ids": [device_id], "play": play},
        )

    # Playlists

    async def create_playlist(
        self,
        token: str,
        owner_id: str,
        name: str,
        description: Optional[str] = None,
        is_public: bool = False,
    ) -> Dict[str, Any]:
        """Create a playlist owned by `owner_id` and return Spotify's playlist object."""
        response = await self._send(
            "POST", f"/users/{owner_id}/playlists", token,
            operation="create_playlist",
            json={
                "name": name,
                "description": description or f"Created by Smart DJ AI on {date.today().isoformat()}",
                "public": is_public,
            },
        )
        playlist = _decode(response, "create_playlist")
        if not isinstance(playlist, dict) or not playlist.get("id"):
            raise UpstreamError("create_playlist", response.status_code, "Spotify returned no playlist id")
        LOGGER.info("Created playlist %r", name)
        return playlist

    async def add_tracks_to_playlist(self, token: str, playlist_id: str, track_uris: Sequence[str]) -> None:
        await self._send(
            "POST", f"/playlists/{playlist_id}/tracks", token,
            operation="add_tracks_to_playlist",
            json={"uris": list(track_uris)},
        )
        LOGGER.info("Added %d tracks to playlist %s", len(track_uris), playlist_id)

    # Advisory reads

    async def search(
        self, token: str, query: str, media_types: Iterable[str] = ("track",), limit: int = 10
    ) -> List[Dict[str, Any]]:
        """Return matches for every requested media type, in request order."""
        types = list(media_types) or ["track"]
        payload = await self._advisory(
            "search", {}, "/search", token,
            params={"q": query, "type": ",".join(types), "limit": limit},
        )
        matches: List[Dict[str, Any]] = []
        for media_type in types:
            section = payload.get(f"{media_type}s")
            if isinstance(section, dict):
                matches.extend(item for item in section.get("items") or [] if isinstance(item, dict))
        return matches

    async def get_recommendations(
        self,
        token: str,
        seeds: Dict[str, Sequence[str]],
        target_features: Optional[Dict[str, float]] = None,
        limit: int = 10,
    ) -> List[Dict[str, Any]]:
        """Return recommended tracks.

        Args:
            seeds: Mapping such as {"tracks": [...], "artists": [...], "genres": [...]}.
            target_features: Tunable attributes without the `target_` prefix,
                e.g. {"energy": 0.8, "valence": 0.4}.
        """
        params: Dict[str, Any] = {"limit": limit}
        for kind, values in seeds.items():
            if values:
                params[f"seed_{kind}"] = ",".join(values)
        for feature, value in (target_features or {}).items():
            if value is not None:
                params[f"target_{feature}"] = value
        payload = await self._advisory("get_recommendations", {}, "/recommendations", token, params=params)
        return payload.get("tracks") or []

    async def get_queue(self, token: str) -> Dict[str, Any]:
        return await self._advisory(
            "get_queue", {"currently_playing": None, "queue": []}, "/me/player/queue", token
        )

    async def get_devices(self, token: str) -> List[Dict[str, Any]]:
        payload = await self._advisory("get_devices", {}, "/me/player/devices", token)
        return payload.get("devices") or []

    async def get_profile(self, token: str) -> Dict[str, Any]:
        return await self._advisory("get_profile", {}, "/me", token)

    async def get_playlists(self, token: str, limit: int = 20) -> List[Dict[str, Any]]:
        payload = await self._advisory("get_playlists", {}, "/me/playlists", token, params={"limit": limit})
        return payload.get("items") or []

    async def get_top_tracks(
        self, token: str, limit: int = 10, time_range: str = "medium_term"
    ) -> List[Dict[str, Any]]:
        payload = await self._advisory(
            "get_top_tracks", {}, "/me/top/tracks", token, params={"limit": limit, "time_range": time_range}
        )
        return payload.get("items") or []

    async def get_recently_played(self, token: str, limit: int = 10) -> List[Dict[str, Any]]:
        payload = await self._advisory(
            "get_recently_played", {}, "/me/player/recently-played", token, params={"limit": limit}
        )
        return payload.get("items") or []
