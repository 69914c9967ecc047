import asyncio

import httpx
import pytest

from services.spotify.errors import UpstreamError
from services.spotify.playback_gateway import SPOTIFY_API_BASE_URL, SpotifyPlaybackGateway

TOKEN = "access-token"


def run(coro):
    return asyncio.run(coro)


def test_commands_send_bearer_token_and_device(gateway, fake_spotify):
    run(gateway.pause(TOKEN, device_id="dev-9"))

    request = fake_spotify.calls("PUT", "/me/player/pause")[0]
    assert request.headers["Authorization"] == f"Bearer {TOKEN}"
    assert request.url.params["device_id"] == "dev-9"
    assert fake_spotify.player["is_playing"] is False


def test_device_id_is_omitted_when_not_supplied(gateway, fake_spotify):
    run(gateway.skip_next(TOKEN))

    request = fake_spotify.calls("POST", "/me/player/next")[0]
    assert "device_id" not in request.url.params


def test_set_volume_is_reflected_in_playback_state(gateway):
    run(gateway.set_volume(TOKEN, 42))

    state = run(gateway.get_current_playback_state(TOKEN))

    assert state["device"]["volume_percent"] == 42


def test_no_active_device_is_not_an_error(gateway, fake_spotify):
    fake_spotify.active_device = False

    assert run(gateway.get_current_playback_state(TOKEN)) is None


def test_play_track_and_playlist_payloads(gateway, fake_spotify):
    run(gateway.play_track(TOKEN, "abc"))
    run(gateway.play_playlist(TOKEN, "xyz"))

    first, second = fake_spotify.calls("PUT", "/me/player/play")
    assert b"spotify:track:abc" in first.content
    assert b"spotify:playlist:xyz" in second.content


def test_shuffle_repeat_seek_and_queue(gateway, fake_spotify):
    run(gateway.set_shuffle(TOKEN, True))
    run(gateway.set_repeat(TOKEN, "context"))
    run(gateway.seek(TOKEN, 30_000))
    run(gateway.enqueue(TOKEN, "track-7"))

    assert fake_spotify.player["shuffle_state"] is True
    assert fake_spotify.player["repeat_state"] == "context"
    assert fake_spotify.player["progress_ms"] == 30_000
    assert run(gateway.get_queue(TOKEN))["queue"] == ["spotify:track:track-7"]


def test_invalid_repeat_mode_is_refused_locally(gateway, fake_spotify):
    with pytest.raises(ValueError):
        run(gateway.set_repeat(TOKEN, "forever"))
    assert fake_spotify.requests == []


def test_rejected_command_raises_upstream_error(gateway, fake_spotify):
    fake_spotify.fail("PUT", "/me/player/pause", status=403, message="Player command failed: Premium required")

    with pytest.raises(UpstreamError) as excinfo:
        run(gateway.pause(TOKEN))

    assert excinfo.value.status_code == 403
    assert excinfo.value.operation == "pause"
    assert "Premium required" in excinfo.value.detail


def test_search_returns_empty_list_on_upstream_failure(gateway, fake_spotify):
    fake_spotify.fail("GET", "/search", status=500)

    assert run(gateway.search(TOKEN, "daft punk", ["track"], 5)) == []


def test_search_flattens_requested_types_in_order(gateway, fake_spotify):
    matches = run(gateway.search(TOKEN, "daft punk", ["artist", "track"], 5))

    assert [m["id"] for m in matches] == ["artist-1", "track-1"]
    request = fake_spotify.calls("GET", "/search")[0]
    assert request.url.params["type"] == "artist,track"
    assert request.url.params["limit"] == "5"


def test_recommendations_build_seed_and_target_params(gateway, fake_spotify):
    tracks = run(
        gateway.get_recommendations(
            TOKEN, {"tracks": ["t1", "t2"], "artists": []}, {"energy": 0.8, "valence": None}, limit=3
        )
    )

    assert [t["id"] for t in tracks] == ["rec-1", "rec-2"]
    params = fake_spotify.calls("GET", "/recommendations")[0].url.params
    assert params["seed_tracks"] == "t1,t2"
    assert "seed_artists" not in params
    assert params["target_energy"] == "0.8"
    assert "target_valence" not in params


def test_advisory_reads_degrade_to_empty_values(gateway, fake_spotify):
    for path in ("/recommendations", "/me/player/queue", "/me/player/devices"):
        fake_spotify.fail("GET", path, status=502)

    assert run(gateway.get_recommendations(TOKEN, {"tracks": ["t1"]})) == []
    assert run(gateway.get_queue(TOKEN)) == {"currently_playing": None, "queue": []}
    assert run(gateway.get_devices(TOKEN)) == []


def test_create_playlist_and_add_tracks(gateway, fake_spotify):
    playlist = run(gateway.create_playlist(TOKEN, "dj-user", "Focus"))
    run(gateway.add_tracks_to_playlist(TOKEN, playlist["id"], ["spotify:track:a"]))

    assert playlist == {"id": "new-playlist", "name": "Focus", "public": False}
    create_request = fake_spotify.calls("POST", "/users/dj-user/playlists")[0]
    assert b"Created by Smart DJ AI on" in create_request.content
    assert fake_spotify.calls("POST", "/playlists/new-playlist/tracks")


def test_transfer_playback(gateway, fake_spotify):
    run(gateway.transfer_playback(TOKEN, "phone"))

    assert fake_spotify.player["device"]["id"] == "phone"


def test_timeout_becomes_upstream_error_for_commands_and_empty_for_reads():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=SPOTIFY_API_BASE_URL)
    slow_gateway = SpotifyPlaybackGateway(client, timeout=0.1)

    with pytest.raises(UpstreamError) as excinfo:
        run(slow_gateway.set_volume(TOKEN, 10))
    assert excinfo.value.status_code is None
    assert run(slow_gateway.get_devices(TOKEN)) == []


def test_non_json_reply_degrades_advisory_reads_and_fails_commands():
    def handler(request):
        return httpx.Response(200, text="<html>oops</html>", headers={"Content-Type": "text/html"})

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=SPOTIFY_API_BASE_URL)
    html_gateway = SpotifyPlaybackGateway(client)

    assert run(html_gateway.search(TOKEN, "jazz")) == []
    assert run(html_gateway.get_queue(TOKEN)) == {"currently_playing": None, "queue": []}
    with pytest.raises(UpstreamError) as excinfo:
        run(html_gateway.get_current_playback_state(TOKEN))
    assert excinfo.value.status_code == 200
    with pytest.raises(UpstreamError):
        run(html_gateway.create_playlist(TOKEN, "dj-user", "Focus"))


def test_unexpected_payload_shapes_fall_back_to_defaults():
    def handler(request):
        if request.url.path == "/v1/search":
            return httpx.Response(200, json={"tracks": {"items": [None, {"id": "t1"}]}, "artists": []})
        return httpx.Response(200, json=["not", "an", "object"])

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=SPOTIFY_API_BASE_URL)
    odd_gateway = SpotifyPlaybackGateway(client)

    assert run(odd_gateway.search(TOKEN, "jazz", ["track", "artist"])) == [{"id": "t1"}]
    assert run(odd_gateway.get_devices(TOKEN)) == []
    assert run(odd_gateway.get_top_tracks(TOKEN)) == []
