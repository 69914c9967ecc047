"""Controller for Smart DJ chat turns."""

import asyncio
import logging
from typing import Any, Dict

from fastapi import HTTPException, Request

from controllers.session_controller import get_active_session, require_state
from models.orchestration_models import DJRequest
from services.orchestration.dj_engine import SmartDJEngine
from services.spotify.playback_gateway import SpotifyPlaybackGateway

LOGGER = logging.getLogger(__name__)


async def chat(request: Request, message: str) -> Dict[str, Any]:
    """Gather the caller's listening context and run one DJ turn.

    Args:
        request: FastAPI Request (used to access shared clients/state).
        message: Free-text request from the user.

    Returns:
        The orchestration result: reply text, actions, and per-action results.

    Raises:
        HTTPException(400) for an empty message, 401 without a live session.
    """
    if not message or not message.strip():
        raise HTTPException(status_code=400, detail={"code": "MISSING_DATA", "message": "Message is required"})

    session = await get_active_session(request)
    gateway: SpotifyPlaybackGateway = require_state(request, "gateway")
    engine: SmartDJEngine = require_state(request, "dj_engine")

    token = session.access_token
    profile, playlists, top_tracks, recent_tracks = await asyncio.gather(
        gateway.get_profile(token),
        gateway.get_playlists(token, limit=20),
        gateway.get_top_tracks(token, limit=10),
        gateway.get_recently_played(token, limit=10),
    )

    LOGGER.info("Processing DJ chat for user %s", session.user_id)
    result = await engine.process(
        DJRequest(
            message=message,
            access_token=token,
            profile=profile or session.profile,
            playlists=playlists,
            top_tracks=top_tracks,
            recent_tracks=recent_tracks,
        )
    )
    return result.to_dict()
