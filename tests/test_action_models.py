import json

import pytest

from models.action_models import (
    AddToQueueAction,
    ControlPlaybackAction,
    GetRecommendationsAction,
    SearchAction,
)
from services.openai.action_schema import ACTION_TOOLS, TOOL_ACTION_TYPES
from services.openai.response_parser import parse_action


def test_every_tool_maps_to_an_action_variant():
    assert {tool["name"] for tool in ACTION_TOOLS} == set(TOOL_ACTION_TYPES)


def test_search_call_is_parsed_with_defaults():
    action = parse_action("spotify_search", json.dumps({"query": "lofi beats", "media_type": "playlist"}))

    assert isinstance(action, SearchAction)
    assert action.media_type == "playlist"
    assert action.limit == 10
    assert action.detail == "playlist"


def test_volume_out_of_range_is_rejected():
    assert parse_action("control_playback", json.dumps({"operation": "volume", "volume": 150})) is None


def test_volume_operation_requires_a_volume():
    assert parse_action("control_playback", json.dumps({"operation": "volume"})) is None


@pytest.mark.parametrize(
    "arguments",
    [
        {"operation": "shuffle"},
        {"operation": "repeat"},
        {"operation": "repeat", "repeat_mode": "forever"},
        {"operation": "rewind"},
        {"operation": "pause", "unexpected": True},
    ],
)
def test_invalid_control_playback_calls_are_dropped(arguments):
    assert parse_action("control_playback", json.dumps(arguments)) is None


def test_valid_control_playback_call():
    action = parse_action("control_playback", json.dumps({"operation": "repeat", "repeat_mode": "track"}))

    assert isinstance(action, ControlPlaybackAction)
    assert action.detail == "repeat"
    assert action.model_dump(exclude_none=True) == {
        "type": "control_playback",
        "operation": "repeat",
        "repeat_mode": "track",
    }


def test_unknown_tool_and_malformed_json_are_dropped():
    assert parse_action("delete_library", "{}") is None
    assert parse_action("spotify_search", "{not json") is None
    assert parse_action("spotify_search", "[1, 2]") is None


def test_model_cannot_override_the_action_type():
    action = parse_action("add_to_queue", json.dumps({"type": "search", "track_ids": ["a", "b"]}))

    assert isinstance(action, AddToQueueAction)
    assert action.track_ids == ["a", "b"]


def test_queue_requires_tracks():
    assert parse_action("add_to_queue", json.dumps({"track_ids": []})) is None


def test_recommendation_seed_limit_and_feature_bounds():
    too_many = {"seed_tracks": ["1", "2", "3"], "seed_artists": ["4", "5", "6"]}
    assert parse_action("get_recommendations", json.dumps(too_many)) is None
    assert parse_action("get_recommendations", json.dumps({"target_energy": 1.5})) is None

    action = parse_action("get_recommendations", json.dumps({"target_valence": 0.2}))
    assert isinstance(action, GetRecommendationsAction)
    assert not action.has_seeds


def test_create_playlist_requires_a_name():
    assert parse_action("create_playlist", json.dumps({"name": ""})) is None
    assert parse_action("create_playlist", json.dumps({"name": "Road Trip"})).track_ids == []
