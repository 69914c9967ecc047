"""Session domain models for authenticated Spotify users."""

from __future__ import annotations

import time
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Session:
    """A user's live connection to Spotify.

    Instances are immutable; the session store swaps in updated copies so a
    reader never sees a half-applied token refresh.
    """

    user_id: str
    access_token: str
    refresh_token: Optional[str]
    expires_at: float
    profile: Dict[str, Any] = field(default_factory=dict)

    def is_valid(self, now: Optional[float] = None) -> bool:
        """Return True while the access token has not expired."""
        current = time.time() if now is None else now
        return current < self.expires_at

    def with_token(self, access_token: str, expires_at: float) -> "Session":
        """Return a copy carrying a refreshed access token."""
        return replace(self, access_token=access_token, expires_at=expires_at)

    def public_view(self) -> Dict[str, Any]:
        """Return a secret-free summary safe to send to the browser."""
        return {
            "user_id": self.user_id,
            "display_name": self.profile.get("display_name"),
            "expires_at": self.expires_at,
            "has_refresh_token": bool(self.refresh_token),
        }

    def __repr__(self) -> str:
        return f"Session(user_id={self.user_id!r}, expires_at={self.expires_at!r})"


@dataclass(frozen=True)
class TokenGrant:
    """Tokens and profile obtained from a completed Spotify authorization."""

    access_token: str
    refresh_token: Optional[str]
    expires_at: float
    profile: Dict[str, Any] = field(default_factory=dict)

    @property
    def user_id(self) -> str:
        return str(self.profile.get("id", ""))
