"""Shared fixtures: an in-process fake of the Spotify Web API and a fake OpenAI client."""

import json
from types import SimpleNamespace

import httpx
import pytest

from services.spotify.playback_gateway import SPOTIFY_API_BASE_URL, SpotifyPlaybackGateway

PROFILE = {"id": "dj-user", "display_name": "DJ User", "country": "US", "product": "premium"}
TOP_TRACKS = [
    {"id": f"top{i}", "name": f"Top Song {i}", "artists": [{"name": f"Artist {i}"}]} for i in range(1, 8)
]
RECENT_TRACKS = [{"track": {"id": "recent1", "name": "Recent Song", "artists": [{"name": "Recent Artist"}]}}]
PLAYLISTS = [{"id": "pl-chill", "name": "Chill Vibes"}, {"id": "pl-gym", "name": "Gym"}]


class FakeSpotify:
    """Stateful stand-in for api.spotify.com, used as an httpx.MockTransport handler."""

    def __init__(self):
        self.requests = []
        self.failures = {}
        self.active_device = True
        self.queue = []
        self.player = {
            "is_playing": True,
            "shuffle_state": False,
            "repeat_state": "off",
            "progress_ms": 0,
            "device": {"id": "dev-1", "name": "Laptop", "volume_percent": 50},
            "item": {"id": "top1", "name": "Top Song 1"},
        }

    def fail(self, method, path, status=500, message="Upstream failure"):
        self.failures[(method, path)] = (status, message)

    def calls(self, method, path):
        return [r for r in self.requests if r.method == method and r.url.path == f"/v1{path}"]

    def __call__(self, request):
        self.requests.append(request)
        path = request.url.path
        if path.startswith("/v1"):
            path = path[3:]
        params = request.url.params
        body = json.loads(request.content) if request.content else {}

        if (request.method, path) in self.failures:
            status, message = self.failures[(request.method, path)]
            return httpx.Response(status, json={"error": {"status": status, "message": message}})

        route = (request.method, path)
        if route == ("GET", "/me/player"):
            return httpx.Response(200, json=self.player) if self.active_device else httpx.Response(204)
        if route == ("PUT", "/me/player/play"):
            self.player["is_playing"] = True
            if body.get("uris"):
                self.player["item"] = {"id": body["uris"][0].split(":")[-1]}
            return httpx.Response(204)
        if route == ("PUT", "/me/player/pause"):
            self.player["is_playing"] = False
            return httpx.Response(204)
        if route in {("POST", "/me/player/next"), ("POST", "/me/player/previous")}:
            return httpx.Response(204)
        if route == ("PUT", "/me/player/volume"):
            self.player["device"]["volume_percent"] = int(params["volume_percent"])
            return httpx.Response(204)
        if route == ("PUT", "/me/player/shuffle"):
            self.player["shuffle_state"] = params["state"] == "true"
            return httpx.Response(204)
        if route == ("PUT", "/me/player/repeat"):
            self.player["repeat_state"] = params["state"]
            return httpx.Response(204)
        if route == ("PUT", "/me/player/seek"):
            self.player["progress_ms"] = int(params["position_ms"])
            return httpx.Response(204)
        if route == ("POST", "/me/player/queue"):
            self.queue.append(params["uri"])
            return httpx.Response(204)
        if route == ("GET", "/me/player/queue"):
            return httpx.Response(200, json={"currently_playing": self.player["item"], "queue": list(self.queue)})
        if route == ("GET", "/me/player/devices"):
            return httpx.Response(200, json={"devices": [self.player["device"]]})
        if route == ("PUT", "/me/player"):
            self.player["device"] = {"id": body["device_ids"][0], "volume_percent": 50}
            return httpx.Response(204)
        if route == ("GET", "/search"):
            payload = {}
            for media_type in params["type"].split(","):
                payload[f"{media_type}s"] = {"items": [{"id": f"{media_type}-1", "name": params["q"]}]}
            return httpx.Response(200, json=payload)
        if route == ("GET", "/recommendations"):
            return httpx.Response(200, json={"tracks": [{"id": "rec-1"}, {"id": "rec-2"}]})
        if request.method == "POST" and path.startswith("/users/") and path.endswith("/playlists"):
            return httpx.Response(201, json={"id": "new-playlist", "name": body["name"], "public": body["public"]})
        if request.method == "POST" and path.startswith("/playlists/") and path.endswith("/tracks"):
            return httpx.Response(201, json={"snapshot_id": "snap-1"})
        if route == ("GET", "/me"):
            return httpx.Response(200, json=PROFILE)
        if route == ("GET", "/me/playlists"):
            return httpx.Response(200, json={"items": PLAYLISTS})
        if route == ("GET", "/me/top/tracks"):
            return httpx.Response(200, json={"items": TOP_TRACKS})
        if route == ("GET", "/me/player/recently-played"):
            return httpx.Response(200, json={"items": RECENT_TRACKS})
        return httpx.Response(404, json={"error": {"status": 404, "message": "Service not found"}})


@pytest.fixture
def fake_spotify():
    return FakeSpotify()


@pytest.fixture
def gateway(fake_spotify):
    client = httpx.AsyncClient(transport=httpx.MockTransport(fake_spotify), base_url=SPOTIFY_API_BASE_URL)
    return SpotifyPlaybackGateway(client, timeout=2.0)


def model_response(text="", calls=()):
    """Build an object shaped like a Responses API result."""
    output = [SimpleNamespace(type="function_call", name=name, arguments=arguments) for name, arguments in calls]
    return SimpleNamespace(output=output, output_text=text, usage=None)


class FakeResponses:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.response


class FakeOpenAI:
    def __init__(self, response=None, error=None):
        self.responses = FakeResponses(response, error)


@pytest.fixture
def fake_openai_factory():
    return FakeOpenAI
