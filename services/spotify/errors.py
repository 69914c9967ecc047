"""Exceptions raised by the Spotify service layer."""

from __future__ import annotations

from typing import Optional


class UpstreamError(Exception):
    """Spotify rejected a command or could not be reached.

    `status_code` is None for timeouts and transport failures.
    """

    def __init__(self, operation: str, status_code: Optional[int], detail: str) -> None:
        super().__init__(f"{operation} failed ({status_code or 'no response'}): {detail}")
        self.operation = operation
        self.status_code = status_code
        self.detail = detail


class AuthorizationError(Exception):
    """The OAuth exchange with Spotify could not be completed."""
