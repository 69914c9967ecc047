"""Tool definitions exposing the Spotify actions to the DJ model."""

from typing import Any, Dict, List

SEARCH_TOOL = "spotify_search"
RECOMMENDATIONS_TOOL = "get_recommendations"
CREATE_PLAYLIST_TOOL = "create_playlist"
CONTROL_PLAYBACK_TOOL = "control_playback"
ADD_TO_QUEUE_TOOL = "add_to_queue"

# Tool name -> Action discriminator.
TOOL_ACTION_TYPES: Dict[str, str] = {
    SEARCH_TOOL: "search",
    RECOMMENDATIONS_TOOL: "get_recommendations",
    CREATE_PLAYLIST_TOOL: "create_playlist",
    CONTROL_PLAYBACK_TOOL: "control_playback",
    ADD_TO_QUEUE_TOOL: "add_to_queue",
}


def _function(name: str, description: str, properties: Dict[str, Any], required: List[str]) -> Dict[str, Any]:
    return {
        "type": "function",
        "name": name,
        "description": description,
        "parameters": {
            "type": "object",
            "properties": properties,
            "required": required,
            "additionalProperties": False,
        },
        "strict": False,
    }


_ID_LIST = {"type": "array", "items": {"type": "string"}}

ACTION_TOOLS: List[Dict[str, Any]] = [
    _function(
        SEARCH_TOOL,
        "Search for tracks, artists, albums, or playlists on Spotify.",
        {
            "query": {"type": "string", "description": "Search query."},
            "media_type": {"type": "string", "enum": ["track", "artist", "album", "playlist"]},
            "limit": {"type": "integer", "minimum": 1, "maximum": 50, "default": 10},
        },
        ["query", "media_type"],
    ),
    _function(
        RECOMMENDATIONS_TOOL,
        "Get personalized track recommendations from Spotify. At most 5 seeds in total.",
        {
            "seed_tracks": {**_ID_LIST, "description": "Spotify track ids to seed from."},
            "seed_artists": {**_ID_LIST, "description": "Spotify artist ids to seed from."},
            "target_energy": {"type": "number", "minimum": 0, "maximum": 1, "description": "Energy level 0-1."},
            "target_valence": {"type": "number", "minimum": 0, "maximum": 1, "description": "Mood level 0-1."},
            "limit": {"type": "integer", "minimum": 1, "maximum": 100, "default": 10},
        },
        [],
    ),
    _function(
        CREATE_PLAYLIST_TOOL,
        "Create a new private Spotify playlist, optionally filled with tracks.",
        {
            "name": {"type": "string", "description": "Playlist name."},
            "description": {"type": "string", "description": "Playlist description."},
            "track_ids": {**_ID_LIST, "description": "Spotify track ids to add."},
        },
        ["name"],
    ),
    _function(
        CONTROL_PLAYBACK_TOOL,
        "Control Spotify playback: play, pause, skip, volume, shuffle, or repeat.",
        {
            "operation": {
                "type": "string",
                "enum": ["play", "pause", "next", "previous", "volume", "shuffle", "repeat"],
            },
            "track_id": {"type": "string", "description": "Track id to play (play only)."},
            "playlist_id": {"type": "string", "description": "Playlist id to play (play only)."},
            "volume": {"type": "integer", "minimum": 0, "maximum": 100, "description": "Volume percent."},
            "shuffle_state": {"type": "boolean", "description": "Shuffle on or off."},
            "repeat_mode": {"type": "string", "enum": ["track", "context", "off"]},
        },
        ["operation"],
    ),
    _function(
        ADD_TO_QUEUE_TOOL,
        "Add tracks to the Spotify playback queue.",
        {"track_ids": {**_ID_LIST, "description": "Spotify track ids to queue, in order."}},
        ["track_ids"],
    ),
]
