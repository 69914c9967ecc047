"""Simple in-memory store for Spotify sessions."""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional, Protocol

from models.session_models import Session

LOGGER = logging.getLogger(__name__)


class SessionRepository(Protocol):
    """Capability the HTTP layer depends on; the in-memory map is one implementation."""

    def put(
        self,
        user_id: str,
        access_token: str,
        refresh_token: Optional[str],
        expires_at: float,
        profile: Optional[Dict[str, Any]] = None,
    ) -> Session: ...

    def get(self, user_id: str) -> Optional[Session]: ...

    def delete(self, user_id: str) -> None: ...

    def refresh(self, user_id: str, new_access_token: str, new_expires_at: float) -> bool: ...

    def list_active(self) -> List[Session]: ...


class InMemorySessionStore:
    """Track per-user Spotify tokens with lazy expiry.

    Every operation runs under one lock. Nothing is persisted; a restart drops
    all sessions and users sign in again.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def put(
        self,
        user_id: str,
        access_token: str,
        refresh_token: Optional[str],
        expires_at: float,
        profile: Optional[Dict[str, Any]] = None,
    ) -> Session:
        """Store a session, replacing any existing one for the user."""
        session = Session(
            user_id=user_id,
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=float(expires_at),
            profile=dict(profile or {}),
        )
        with self._lock:
            self._sessions[user_id] = session
        LOGGER.info("Session stored for user %s", user_id)
        return session

    def get(self, user_id: str) -> Optional[Session]:
        """Return the session if its token is still valid, evicting it otherwise."""
        with self._lock:
            session = self._sessions.get(user_id)
            if session is None:
                return None
            if not session.is_valid(self._clock()):
                del self._sessions[user_id]
                LOGGER.info("Session expired for user %s", user_id)
                return None
            return session

    def delete(self, user_id: str) -> None:
        """Remove a user's session; missing sessions are ignored."""
        with self._lock:
            removed = self._sessions.pop(user_id, None)
        if removed is not None:
            LOGGER.info("Session deleted for user %s", user_id)

    def refresh(self, user_id: str, new_access_token: str, new_expires_at: float) -> bool:
        """Swap in a refreshed access token. Returns False when no session exists."""
        with self._lock:
            session = self._sessions.get(user_id)
            if session is None:
                return False
            self._sessions[user_id] = session.with_token(new_access_token, float(new_expires_at))
        LOGGER.info("Access token refreshed for user %s", user_id)
        return True

    def list_active(self) -> List[Session]:
        """Return every unexpired session, pruning the expired ones."""
        now = self._clock()
        with self._lock:
            expired = [uid for uid, session in self._sessions.items() if not session.is_valid(now)]
            for uid in expired:
                del self._sessions[uid]
            return list(self._sessions.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
