"""Structured Spotify actions the DJ model is allowed to request.

Each variant mirrors one tool exposed to the language model. Raw tool-call
arguments are validated into these models before anything is dispatched, so
the dispatcher only ever sees well-formed instructions.
"""

from __future__ import annotations

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator

MAX_RECOMMENDATION_SEEDS = 5


class _ActionBase(BaseModel):
    model_config = ConfigDict(extra="forbid")

    @property
    def detail(self) -> Optional[str]:
        """Short human-readable qualifier reported alongside results."""
        return None


class SearchAction(_ActionBase):
    type: Literal["search"] = "search"
    query: str = Field(min_length=1)
    media_type: Literal["track", "artist", "album", "playlist"] = "track"
    limit: int = Field(10, ge=1, le=50)

    @property
    def detail(self) -> Optional[str]:
        return self.media_type


class GetRecommendationsAction(_ActionBase):
    type: Literal["get_recommendations"] = "get_recommendations"
    seed_tracks: List[str] = Field(default_factory=list)
    seed_artists: List[str] = Field(default_factory=list)
    target_energy: Optional[float] = Field(None, ge=0.0, le=1.0)
    target_valence: Optional[float] = Field(None, ge=0.0, le=1.0)
    limit: int = Field(10, ge=1, le=100)

    @model_validator(mode="after")
    def _check_seed_count(self) -> "GetRecommendationsAction":
        if len(self.seed_tracks) + len(self.seed_artists) > MAX_RECOMMENDATION_SEEDS:
            raise ValueError(f"At most {MAX_RECOMMENDATION_SEEDS} seeds may be supplied.")
        return self

    @property
    def has_seeds(self) -> bool:
        return bool(self.seed_tracks or self.seed_artists)

    @property
    def detail(self) -> Optional[str]:
        return f"{self.limit} track(s)"


class CreatePlaylistAction(_ActionBase):
    type: Literal["create_playlist"] = "create_playlist"
    name: str = Field(min_length=1)
    description: Optional[str] = None
    track_ids: List[str] = Field(default_factory=list)

    @property
    def detail(self) -> Optional[str]:
        return self.name


class ControlPlaybackAction(_ActionBase):
    type: Literal["control_playback"] = "control_playback"
    operation: Literal["play", "pause", "next", "previous", "volume", "shuffle", "repeat"]
    track_id: Optional[str] = None
    playlist_id: Optional[str] = None
    volume: Optional[int] = Field(None, ge=0, le=100)
    shuffle_state: Optional[bool] = None
    repeat_mode: Optional[Literal["track", "context", "off"]] = None

    @model_validator(mode="after")
    def _check_operation_fields(self) -> "ControlPlaybackAction":
        if self.operation == "volume" and self.volume is None:
            raise ValueError("A volume between 0 and 100 is required for the volume operation.")
        if self.operation == "shuffle" and self.shuffle_state is None:
            raise ValueError("shuffle_state is required for the shuffle operation.")
        if self.operation == "repeat" and self.repeat_mode is None:
            raise ValueError("repeat_mode is required for the repeat operation.")
        return self

    @property
    def detail(self) -> Optional[str]:
        return self.operation


class AddToQueueAction(_ActionBase):
    type: Literal["add_to_queue"] = "add_to_queue"
    track_ids: List[str] = Field(min_length=1)

    @property
    def detail(self) -> Optional[str]:
        return f"{len(self.track_ids)} track(s)"


Action = Annotated[
    Union[
        SearchAction,
        GetRecommendationsAction,
        CreatePlaylistAction,
        ControlPlaybackAction,
        AddToQueueAction,
    ],
    Field(discriminator="type"),
]

ACTION_ADAPTER: TypeAdapter = TypeAdapter(Action)
