"""Request/response models for one Smart DJ chat turn."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class OutcomeKind(str, Enum):
    """How an operation ended, so callers can branch without parsing logs."""

    OK = "ok"
    UPSTREAM_ERROR = "upstream_error"
    ADVISORY_EMPTY = "advisory_empty"
    MODEL_FAILURE = "model_failure"
    INVALID_ACTION = "invalid_action"
    SESSION_ABSENT = "session_absent"


@dataclass
class DJRequest:
    """Inbound message plus the caller-supplied listening context."""

    message: str
    access_token: str
    profile: Dict[str, Any] = field(default_factory=dict)
    playlists: List[Dict[str, Any]] = field(default_factory=list)
    top_tracks: List[Dict[str, Any]] = field(default_factory=list)
    recent_tracks: List[Dict[str, Any]] = field(default_factory=list)

    def __repr__(self) -> str:
        return f"DJRequest(message={self.message!r})"


@dataclass
class ActionResult:
    """Outcome of dispatching one validated action."""

    action: str
    action_detail: Optional[str]
    kind: OutcomeKind = OutcomeKind.OK
    data: Any = None
    error: Optional[str] = None

    @property
    def status(self) -> str:
        return "ok" if self.kind == OutcomeKind.OK else "error"

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "action": self.action,
            "action_detail": self.action_detail,
            "status": self.status,
        }
        if self.data is not None:
            payload["data"] = self.data
        if self.error is not None:
            payload["error"] = self.error
        return payload


@dataclass
class OrchestrationResult:
    """Reply text, the actions attempted, and one result per dispatched action."""

    message: str
    actions: List[Dict[str, Any]] = field(default_factory=list)
    results: List[ActionResult] = field(default_factory=list)
    outcome: OutcomeKind = OutcomeKind.OK

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "actions": list(self.actions),
            "results": [result.to_dict() for result in self.results],
            "outcome": self.outcome.value,
        }
