import asyncio
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from services.spotify.auth_service import SpotifyAuthService
from services.spotify.errors import AuthorizationError


@pytest.fixture
def token_endpoint():
    """Fake accounts.spotify.com token endpoint plus /v1/me."""
    state = {"requests": [], "token_status": 200}

    def handler(request):
        state["requests"].append(request)
        if request.url.path == "/api/token":
            if state["token_status"] != 200:
                return httpx.Response(state["token_status"], json={"error": "invalid_grant"})
            form = parse_qs(request.content.decode())
            if form["grant_type"] == ["refresh_token"]:
                return httpx.Response(200, json={"access_token": "refreshed", "expires_in": 1800})
            return httpx.Response(
                200, json={"access_token": "new-access", "refresh_token": "new-refresh", "expires_in": 3600}
            )
        if request.url.path == "/v1/me":
            return httpx.Response(200, json={"id": "dj-user", "display_name": "DJ User"})
        return httpx.Response(404)

    state["client"] = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return state


@pytest.fixture
def auth_service(token_endpoint):
    return SpotifyAuthService(
        "client-id", "client-secret", "http://localhost:8000/auth/callback",
        client=token_endpoint["client"], clock=lambda: 1_000.0,
    )


def _state_from(url):
    return parse_qs(urlparse(url).query)["state"][0]


def test_begin_authorization_builds_authorize_url(auth_service):
    url = auth_service.begin_authorization(["user-read-email", "user-top-read"])

    query = parse_qs(urlparse(url).query)
    assert url.startswith("https://accounts.spotify.com/authorize?")
    assert query["client_id"] == ["client-id"]
    assert query["scope"] == ["user-read-email user-top-read"]
    assert query["response_type"] == ["code"]


def test_complete_authorization_returns_grant(auth_service, token_endpoint):
    state = _state_from(auth_service.begin_authorization())

    grant = asyncio.run(auth_service.complete_authorization("the-code", state))

    assert grant.user_id == "dj-user"
    assert grant.access_token == "new-access"
    assert grant.refresh_token == "new-refresh"
    assert grant.expires_at == 1_000.0 + 3600
    token_request = token_endpoint["requests"][0]
    assert token_request.headers["Authorization"].startswith("Basic ")


def test_state_can_only_be_used_once(auth_service):
    state = _state_from(auth_service.begin_authorization())
    asyncio.run(auth_service.complete_authorization("the-code", state))

    with pytest.raises(AuthorizationError):
        asyncio.run(auth_service.complete_authorization("the-code", state))


def test_unknown_state_is_rejected(auth_service, token_endpoint):
    with pytest.raises(AuthorizationError):
        asyncio.run(auth_service.complete_authorization("the-code", "forged"))
    assert token_endpoint["requests"] == []


def test_refused_exchange_raises(auth_service, token_endpoint):
    token_endpoint["token_status"] = 400
    state = _state_from(auth_service.begin_authorization())

    with pytest.raises(AuthorizationError):
        asyncio.run(auth_service.complete_authorization("bad-code", state))


def test_refresh_access_token(auth_service):
    access_token, expires_at = asyncio.run(auth_service.refresh_access_token("new-refresh"))

    assert access_token == "refreshed"
    assert expires_at == 1_000.0 + 1800


def test_missing_credentials_fail_fast(token_endpoint):
    service = SpotifyAuthService(None, None, None, client=token_endpoint["client"])

    with pytest.raises(AuthorizationError):
        service.begin_authorization()
