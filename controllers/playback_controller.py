"""Direct Spotify playback controls for the player UI."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, Request

from controllers.session_controller import get_active_session, require_state, resolve_user_id
from services.spotify.errors import UpstreamError
from services.spotify.playback_gateway import SpotifyPlaybackGateway, track_uri

PASSTHROUGH_STATUSES = {401, 403, 404, 429}
PROFILE_KEYS = ("id", "display_name", "email", "country", "product", "images", "followers")


def upstream_http_error(exc: UpstreamError) -> HTTPException:
    """Translate a rejected Spotify command into an HTTP error for the browser."""
    status = exc.status_code if exc.status_code in PASSTHROUGH_STATUSES else 502
    return HTTPException(
        status_code=status,
        detail={"code": "UPSTREAM_ERROR", "operation": exc.operation, "message": exc.detail},
    )


async def _context(request: Request):
    session = await get_active_session(request)
    gateway: SpotifyPlaybackGateway = require_state(request, "gateway")
    return session, gateway


async def current_playback(request: Request) -> Optional[Dict[str, Any]]:
    session, gateway = await _context(request)
    try:
        return await gateway.get_current_playback_state(session.access_token)
    except UpstreamError as exc:
        raise upstream_http_error(exc) from exc


async def play(
    request: Request, track_id: Optional[str], playlist_id: Optional[str], device_id: Optional[str]
) -> Dict[str, str]:
    """Play a track, a playlist, or resume whatever was playing."""
    session, gateway = await _context(request)
    token = session.access_token
    try:
        if track_id:
            await gateway.play_track(token, track_id, device_id)
            return {"message": "Track started playing"}
        if playlist_id:
            await gateway.play_playlist(token, playlist_id, device_id)
            return {"message": "Playlist started playing"}
        await gateway.resume(token, device_id)
        return {"message": "Playback resumed"}
    except UpstreamError as exc:
        raise upstream_http_error(exc) from exc


async def simple_command(request: Request, command: str, device_id: Optional[str]) -> Dict[str, str]:
    """Run one of pause / next / previous."""
    session, gateway = await _context(request)
    handlers = {
        "pause": (gateway.pause, "Playback paused"),
        "next": (gateway.skip_next, "Skipped to next track"),
        "previous": (gateway.skip_previous, "Skipped to previous track"),
    }
    if command not in handlers:
        raise HTTPException(status_code=400, detail="Invalid action")
    handler, message = handlers[command]
    try:
        await handler(session.access_token, device_id)
    except UpstreamError as exc:
        raise upstream_http_error(exc) from exc
    return {"message": message}


async def seek(request: Request, position_ms: int, device_id: Optional[str]) -> Dict[str, Any]:
    if position_ms < 0:
        raise HTTPException(status_code=400, detail="position_ms must not be negative")
    session, gateway = await _context(request)
    try:
        await gateway.seek(session.access_token, position_ms, device_id)
    except UpstreamError as exc:
        raise upstream_http_error(exc) from exc
    return {"message": f"Seeked to {position_ms} ms", "position_ms": position_ms}


async def set_volume(request: Request, volume: float, device_id: Optional[str]) -> Dict[str, Any]:
    """Clamp to 0-100 before handing off; the gateway does not re-validate."""
    percent = int(round(min(max(volume, 0), 100)))
    session, gateway = await _context(request)
    try:
        await gateway.set_volume(session.access_token, percent, device_id)
    except UpstreamError as exc:
        raise upstream_http_error(exc) from exc
    return {"message": f"Volume set to {percent}%", "volume": percent}


async def set_shuffle(request: Request, enabled: bool, device_id: Optional[str]) -> Dict[str, Any]:
    session, gateway = await _context(request)
    try:
        await gateway.set_shuffle(session.access_token, enabled, device_id)
    except UpstreamError as exc:
        raise upstream_http_error(exc) from exc
    return {"message": f"Shuffle {'enabled' if enabled else 'disabled'}", "shuffle": enabled}


async def set_repeat(request: Request, mode: str, device_id: Optional[str]) -> Dict[str, Any]:
    session, gateway = await _context(request)
    try:
        await gateway.set_repeat(session.access_token, mode, device_id)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except UpstreamError as exc:
        raise upstream_http_error(exc) from exc
    return {"message": f"Repeat set to {mode}", "repeat_state": mode}


async def enqueue(request: Request, track_id: str, device_id: Optional[str]) -> Dict[str, str]:
    if not track_id:
        raise HTTPException(status_code=400, detail="Track ID is required")
    session, gateway = await _context(request)
    try:
        await gateway.enqueue(session.access_token, track_id, device_id)
    except UpstreamError as exc:
        raise upstream_http_error(exc) from exc
    return {"message": "Track added to queue"}


async def transfer(request: Request, device_id: str, play: bool) -> Dict[str, str]:
    session, gateway = await _context(request)
    try:
        await gateway.transfer_playback(session.access_token, device_id, play)
    except UpstreamError as exc:
        raise upstream_http_error(exc) from exc
    return {"message": f"Playback transferred to {device_id}"}


async def queue(request: Request) -> Dict[str, Any]:
    session, gateway = await _context(request)
    return await gateway.get_queue(session.access_token)


async def devices(request: Request) -> List[Dict[str, Any]]:
    session, gateway = await _context(request)
    return await gateway.get_devices(session.access_token)


async def search(request: Request, query: str, media_type: str, limit: int) -> List[Dict[str, Any]]:
    if not query.strip():
        raise HTTPException(status_code=400, detail="Query parameter is required")
    session, gateway = await _context(request)
    types = [t.strip() for t in media_type.split(",") if t.strip()]
    return await gateway.search(session.access_token, query, types, limit)


async def recommendations(
    request: Request,
    seed_tracks: List[str],
    seed_artists: List[str],
    seed_genres: List[str],
    target_features: Dict[str, float],
    limit: int,
) -> List[Dict[str, Any]]:
    if not (seed_tracks or seed_artists or seed_genres):
        raise HTTPException(status_code=400, detail="At least one seed is required")
    session, gateway = await _context(request)
    seeds = {"tracks": seed_tracks, "artists": seed_artists, "genres": seed_genres}
    return await gateway.get_recommendations(session.access_token, seeds, target_features, limit)


async def create_playlist(
    request: Request, name: str, description: Optional[str], track_ids: List[str], is_public: bool
) -> Dict[str, Any]:
    """Create a playlist for the caller and fill it with the given tracks."""
    session, gateway = await _context(request)
    token = session.access_token
    try:
        playlist = await gateway.create_playlist(token, session.user_id, name, description, is_public)
        if track_ids:
            await gateway.add_tracks_to_playlist(token, playlist["id"], [track_uri(t) for t in track_ids])
    except UpstreamError as exc:
        raise upstream_http_error(exc) from exc
    return playlist


async def dashboard(request: Request) -> Dict[str, Any]:
    """Return the caller's Spotify profile with playlists, top tracks and recent plays.

    A signed-in caller whose Spotify session is gone gets empty lists and
    `connected: false`, so the dashboard can ask them to reconnect.
    """
    user_id = resolve_user_id(request)
    if require_state(request, "session_store").get(user_id) is None:
        return {
            "user": {"id": user_id, "spotify_profile": None},
            "spotify": {
                "playlists": [],
                "topTracks": [],
                "recentTracks": [],
                "connected": False,
                "message": "Please re-authenticate with Spotify to load your real data",
            },
        }

    session, gateway = await _context(request)
    token = session.access_token
    profile, playlists, top_tracks, recent_tracks = await asyncio.gather(
        gateway.get_profile(token),
        gateway.get_playlists(token, limit=20),
        gateway.get_top_tracks(token, limit=10),
        gateway.get_recently_played(token, limit=10),
    )
    profile = profile or session.profile
    return {
        "user": {
            "id": session.user_id,
            "spotify_profile": {key: profile.get(key) for key in PROFILE_KEYS},
        },
        "spotify": {
            "playlists": playlists,
            "topTracks": top_tracks,
            "recentTracks": recent_tracks,
            "connected": True,
        },
    }
