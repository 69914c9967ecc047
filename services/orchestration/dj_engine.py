"""Smart DJ orchestration built on the OpenAI Responses API.

One call to `SmartDJEngine.process` summarizes the listening context, asks
the model for at most one Spotify action, validates and dispatches it through
the playback gateway, and returns the reply with per-action results. Model
failures never escape: they turn into a canned apology.
"""

from __future__ import annotations

import logging
import os
import time
from typing import Any, List, Optional

from openai import AsyncOpenAI

from models.action_models import (
    Action,
    AddToQueueAction,
    ControlPlaybackAction,
    CreatePlaylistAction,
    GetRecommendationsAction,
    MAX_RECOMMENDATION_SEEDS,
    SearchAction,
)
from models.orchestration_models import ActionResult, DJRequest, OrchestrationResult, OutcomeKind
from services.openai.action_schema import ACTION_TOOLS
from services.openai.prompts import dj_system_prompt, dj_user_prompt, listening_context
from services.openai.response_parser import extract_function_calls, extract_text, extract_usage, parse_action
from services.spotify.errors import UpstreamError
from services.spotify.playback_gateway import SpotifyPlaybackGateway, track_uri

LOGGER = logging.getLogger(__name__)

DEFAULT_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o")
DEFAULT_TIMEOUT = 30.0
MAX_ACTIONS_PER_TURN = 1
DEFAULT_REPLY = "I'd be happy to help you with your music!"
FALLBACK_REPLY = "Sorry, I'm having trouble processing your request right now. Please try again!"


class SmartDJEngine:
    """Turn a chat message into a reply plus dispatched Spotify actions."""

    def __init__(
        self,
        client: AsyncOpenAI,
        gateway: SpotifyPlaybackGateway,
        *,
        model: str = DEFAULT_MODEL,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        if client is None:
            raise ValueError("AsyncOpenAI client is required.")
        self.client = client
        self.gateway = gateway
        self.model = model
        self.timeout = timeout

    async def process(self, request: DJRequest) -> OrchestrationResult:
        """Run one chat turn. Always returns a result, even when the model fails."""
        start = time.time()

        try:
            context = listening_context(
                request.profile, request.playlists, request.top_tracks, request.recent_tracks
            )
            response = await self.client.responses.create(
                model=self.model,
                input=[
                    {"type": "message", "role": "system", "content": [{"type": "input_text", "text": dj_system_prompt()}]},
                    {
                        "type": "message",
                        "role": "user",
                        "content": [{"type": "input_text", "text": dj_user_prompt(context, request.message)}],
                    },
                ],
                tools=ACTION_TOOLS,
                tool_choice="auto",
                parallel_tool_calls=False,
                timeout=self.timeout,
            )
            text = extract_text(response)
            calls = extract_function_calls(response)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            LOGGER.error("DJ turn failed before dispatch: %s", exc)
            return OrchestrationResult(message=FALLBACK_REPLY, outcome=OutcomeKind.MODEL_FAILURE)

        LOGGER.info("DJ model replied with %d tool call(s); usage=%s", len(calls), extract_usage(response))

        actions: List[Action] = []
        for name, arguments in calls[:MAX_ACTIONS_PER_TURN]:
            action = parse_action(name, arguments)
            if action is not None:
                actions.append(action)

        results = await self.dispatch(actions, request)

        outcome = OutcomeKind.OK
        if calls and not actions:
            outcome = OutcomeKind.INVALID_ACTION
        elif any(result.kind != OutcomeKind.OK for result in results):
            outcome = OutcomeKind.UPSTREAM_ERROR

        LOGGER.info("DJ turn finished in %.3fs (outcome=%s)", time.time() - start, outcome.value)
        return OrchestrationResult(
            message=text or DEFAULT_REPLY,
            actions=[action.model_dump(exclude_none=True) for action in actions],
            results=results,
            outcome=outcome,
        )

    async def dispatch(self, actions: List[Action], request: DJRequest) -> List[ActionResult]:
        """Execute validated actions in order; one failure does not stop the rest."""
        results: List[ActionResult] = []
        for action in actions:
            try:
                data = await self._execute(action, request)
            except UpstreamError as exc:
                LOGGER.warning("Action %s (%s) failed: %s", action.type, action.detail, exc)
                results.append(
                    ActionResult(
                        action=action.type,
                        action_detail=action.detail,
                        kind=OutcomeKind.UPSTREAM_ERROR,
                        error=exc.detail,
                    )
                )
                continue
            except Exception as exc:  # pylint: disable=broad-exception-caught
                LOGGER.exception("Action %s (%s) raised unexpectedly", action.type, action.detail)
                results.append(
                    ActionResult(
                        action=action.type,
                        action_detail=action.detail,
                        kind=OutcomeKind.UPSTREAM_ERROR,
                        error=f"Unexpected error: {exc}",
                    )
                )
                continue
            results.append(ActionResult(action=action.type, action_detail=action.detail, data=data))
        return results

    async def _execute(self, action: Action, request: DJRequest) -> Any:
        token = request.access_token
        if isinstance(action, SearchAction):
            return await self.gateway.search(token, action.query, [action.media_type], action.limit)
        if isinstance(action, GetRecommendationsAction):
            return await self._recommend(action, request)
        if isinstance(action, CreatePlaylistAction):
            return await self._create_playlist(action, request)
        if isinstance(action, ControlPlaybackAction):
            return await self._control_playback(action, token)
        if isinstance(action, AddToQueueAction):
            for track_id in action.track_ids:
                await self.gateway.enqueue(token, track_id)
            return None
        raise TypeError(f"Unsupported action type: {type(action).__name__}")

    async def _recommend(self, action: GetRecommendationsAction, request: DJRequest) -> Any:
        seed_tracks, seed_artists = action.seed_tracks, action.seed_artists
        if not action.has_seeds:
            top_ids = [t["id"] for t in request.top_tracks if isinstance(t, dict) and t.get("id")]
            seed_tracks = top_ids[:MAX_RECOMMENDATION_SEEDS]
        return await self.gateway.get_recommendations(
            request.access_token,
            {"tracks": seed_tracks, "artists": seed_artists},
            {"energy": action.target_energy, "valence": action.target_valence},
            action.limit,
        )

    async def _create_playlist(self, action: CreatePlaylistAction, request: DJRequest) -> Any:
        token = request.access_token
        owner_id: Optional[str] = (request.profile or {}).get("id")
        if not owner_id:
            owner_id = (await self.gateway.get_profile(token)).get("id")
        if not owner_id:
            raise UpstreamError("create_playlist", None, "Spotify user id is unavailable.")

        playlist = await self.gateway.create_playlist(token, owner_id, action.name, action.description)
        if action.track_ids:
            await self.gateway.add_tracks_to_playlist(
                token, playlist["id"], [track_uri(track_id) for track_id in action.track_ids]
            )
        return playlist

    async def _control_playback(self, action: ControlPlaybackAction, token: str) -> None:
        operation = action.operation
        if operation == "play":
            if action.track_id:
                await self.gateway.play_track(token, action.track_id)
            elif action.playlist_id:
                await self.gateway.play_playlist(token, action.playlist_id)
            else:
                await self.gateway.resume(token)
        elif operation == "pause":
            await self.gateway.pause(token)
        elif operation == "next":
            await self.gateway.skip_next(token)
        elif operation == "previous":
            await self.gateway.skip_previous(token)
        elif operation == "volume":
            await self.gateway.set_volume(token, action.volume)
        elif operation == "shuffle":
            await self.gateway.set_shuffle(token, action.shuffle_state)
        elif operation == "repeat":
            await self.gateway.set_repeat(token, action.repeat_mode)
