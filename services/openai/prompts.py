"""Prompt helpers for the Smart DJ assistant."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List

MAX_PLAYLISTS = 10
MAX_TOP_TRACKS = 5
MAX_RECENT_TRACKS = 3


def _artists(track: Dict[str, Any]) -> str:
    names = [artist.get("name", "") for artist in _records(track.get("artists")) if artist.get("name")]
    return ", ".join(names) or "Unknown artist"


def _track_line(track: Dict[str, Any]) -> str:
    line = f"{track.get('name', 'Unknown track')} by {_artists(track)}"
    return f"{line} (id: {track['id']})" if track.get("id") else line


def _records(items: Any) -> List[Dict[str, Any]]:
    """Keep only object entries; Spotify pages can contain null items."""
    return [item for item in items or [] if isinstance(item, dict)]


def _bullets(lines: Iterable[str], empty: str) -> str:
    rows: List[str] = [f"- {line}" for line in lines]
    return "\n".join(rows) if rows else empty


def listening_context(
    profile: Dict[str, Any],
    playlists: List[Dict[str, Any]],
    top_tracks: List[Dict[str, Any]],
    recent_tracks: List[Dict[str, Any]],
) -> str:
    """Summarize the user's Spotify activity with capped list lengths."""
    profile = profile if isinstance(profile, dict) else {}
    playlists = _records(playlists)
    top_tracks = _records(top_tracks)
    recent_tracks = _records(recent_tracks)

    name = profile.get("display_name") or profile.get("id") or "Unknown listener"
    details = ", ".join(
        f"{key}: {profile[key]}" for key in ("country", "product") if profile.get(key)
    )
    header = f"Listener: {name}" + (f" ({details})" if details else "")

    playlist_names = [p.get("name", "Untitled") for p in playlists[:MAX_PLAYLISTS]]
    playlist_block = ", ".join(playlist_names) if playlist_names else "No playlists."
    if len(playlists) > MAX_PLAYLISTS:
        playlist_block += f" (+{len(playlists) - MAX_PLAYLISTS} more)"

    recent = _records(item.get("track") or item for item in recent_tracks[:MAX_RECENT_TRACKS])
    return (
        f"{header}\n\n"
        f"Playlists ({len(playlists)}): {playlist_block}\n\n"
        f"Top tracks:\n{_bullets((_track_line(t) for t in top_tracks[:MAX_TOP_TRACKS]), 'No top tracks.')}\n\n"
        f"Recently played:\n{_bullets((_track_line(t) for t in recent), 'Nothing recently played.')}"
    )


def dj_system_prompt() -> str:
    """Return the DJ persona and tool-use guidance."""
    return (
        "You are a smart DJ assistant that controls the user's Spotify and gives personalized "
        "music recommendations. Be conversational and friendly, like a real DJ. "
        "When the user wants something done, call exactly one of the provided tools: search, "
        "recommendations, playlist creation, playback control, or queueing. Use the listening "
        "context to personalize your choices and prefer track ids that appear in it. "
        "If no action is needed, just reply in text."
    )


def dj_user_prompt(context: str, message: str) -> str:
    """Return the user turn combining listening context and the request."""
    return f"My listening context:\n{context}\n\nRequest: {message.strip()}"
