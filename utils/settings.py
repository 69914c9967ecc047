"""Environment-driven configuration for the Smart DJ backend."""

from __future__ import annotations

import logging
import os
import secrets
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file if present

LOGGER = logging.getLogger(__name__)


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be a number, got {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
    """Runtime settings; secrets are never included in repr."""

    openai_model: str = "gpt-4o"
    openai_timeout: float = 30.0
    spotify_client_id: Optional[str] = None
    spotify_client_secret: Optional[str] = field(default=None, repr=False)
    spotify_redirect_uri: Optional[str] = None
    spotify_timeout: float = 10.0
    jwt_secret: str = field(default_factory=lambda: secrets.token_urlsafe(32), repr=False)
    jwt_ttl_seconds: int = 7 * 24 * 3600
    frontend_url: str = "http://localhost:3000"
    cors_origins: List[str] = field(default_factory=lambda: ["http://localhost:3000"])
    session_refresh_margin: float = 60.0
    diagnostics_token: Optional[str] = field(default=None, repr=False)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment."""
        jwt_secret = os.getenv("JWT_SECRET")
        if not jwt_secret:
            LOGGER.warning("JWT_SECRET is not set; issued app tokens will not survive a restart.")
            jwt_secret = secrets.token_urlsafe(32)

        frontend_url = os.getenv("FRONTEND_URL", "http://localhost:3000").rstrip("/")
        origins = [o.strip() for o in os.getenv("CORS_ORIGINS", frontend_url).split(",") if o.strip()]

        return cls(
            openai_model=os.getenv("OPENAI_MODEL", "gpt-4o"),
            openai_timeout=_float_env("OPENAI_TIMEOUT", 30.0),
            spotify_client_id=os.getenv("SPOTIFY_CLIENT_ID"),
            spotify_client_secret=os.getenv("SPOTIFY_CLIENT_SECRET"),
            spotify_redirect_uri=os.getenv("SPOTIFY_REDIRECT_URI"),
            spotify_timeout=_float_env("SPOTIFY_TIMEOUT", 10.0),
            jwt_secret=jwt_secret,
            jwt_ttl_seconds=int(_float_env("JWT_TTL_SECONDS", 7 * 24 * 3600)),
            frontend_url=frontend_url,
            cors_origins=origins,
            session_refresh_margin=_float_env("SESSION_REFRESH_MARGIN", 60.0),
            diagnostics_token=os.getenv("DIAGNOSTICS_TOKEN") or None,
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
