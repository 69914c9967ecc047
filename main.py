import inspect
import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from openai import AsyncOpenAI

from routes.auth_route import router as auth_router
from routes.dj_route import router as dj_router
from routes.playback_route import router as playback_router
from routes.session_route import router as session_router
from services.orchestration.dj_engine import SmartDJEngine
from services.session.session_store import InMemorySessionStore
from services.spotify.auth_service import SpotifyAuthService
from services.spotify.playback_gateway import SPOTIFY_API_BASE_URL, SpotifyPlaybackGateway
from utils.settings import Settings

LOGGER = logging.getLogger(__name__)


async def _close_quietly(resource) -> None:
    """Close a client exposing aclose/close, ignoring shutdown errors."""
    aclose = getattr(resource, "aclose", None) or getattr(resource, "close", None)
    if aclose is None:
        return
    try:
        if inspect.iscoroutinefunction(aclose):
            await aclose()
        else:
            result = aclose()
            if inspect.isawaitable(result):
                await result
    except Exception as exc:
        LOGGER.warning("Error while closing %s: %s", type(resource).__name__, exc)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan manager to initialize:
      - the in-memory Spotify session store
      - the shared HTTP clients, playback gateway and OAuth service
      - the OpenAI async client and the DJ engine
    and attach them to `app.state`.
    """
    settings: Settings = app.state.settings

    if not os.getenv("OPENAI_API_KEY"):
        raise RuntimeError("OPENAI_API_KEY environment variable is not set")
    if not (settings.spotify_client_id and settings.spotify_client_secret and settings.spotify_redirect_uri):
        LOGGER.warning("Spotify OAuth credentials are incomplete; /auth/spotify will fail.")

    try:
        openai_client = AsyncOpenAI()
    except Exception as exc:
        raise RuntimeError("Failed to initialize OpenAI Async client") from exc

    spotify_http = httpx.AsyncClient(base_url=SPOTIFY_API_BASE_URL, timeout=settings.spotify_timeout)
    accounts_http = httpx.AsyncClient(timeout=settings.spotify_timeout)

    gateway = SpotifyPlaybackGateway(spotify_http, timeout=settings.spotify_timeout)
    app.state.session_store = InMemorySessionStore()
    app.state.gateway = gateway
    app.state.auth_service = SpotifyAuthService(
        settings.spotify_client_id,
        settings.spotify_client_secret,
        settings.spotify_redirect_uri,
        client=accounts_http,
        timeout=settings.spotify_timeout,
    )
    app.state.openai_client = openai_client
    app.state.dj_engine = SmartDJEngine(
        openai_client, gateway, model=settings.openai_model, timeout=settings.openai_timeout
    )

    try:
        yield
    finally:
        for resource in (spotify_http, accounts_http, getattr(app.state, "openai_client", None)):
            if resource is not None:
                await _close_quietly(resource)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application instance.
    """
    settings = settings or Settings.from_env()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="Smart DJ", lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health(request: Request):
        """
        Simple health check that reports which collaborators are ready.
        """
        state = request.app.state
        store = getattr(state, "session_store", None)
        return {
            "ok": True,
            "openai_available": getattr(state, "openai_client", None) is not None,
            "spotify_gateway": getattr(state, "gateway", None) is not None,
            "active_sessions": len(store.list_active()) if store is not None else 0,
        }

    # Register application routers
    app.include_router(auth_router)
    app.include_router(dj_router)
    app.include_router(playback_router)
    app.include_router(session_router)

    return app


app = create_app()
