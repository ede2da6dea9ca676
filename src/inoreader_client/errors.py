"""Exceptions raised by the Inoreader client.

Everything the client raises for a provider-side problem derives from
:class:`InoreaderError`, so callers that only want best-effort behaviour can
catch one type. Cancellation is never wrapped.
"""

from __future__ import annotations

from typing import Any


class InoreaderError(Exception):
    """Base exception for Inoreader API and auth errors."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class AuthenticationError(InoreaderError):
    """Wrong credentials, denied consent, or a provider-reported auth failure."""

    pass


class CommunicationError(InoreaderError):
    """Network failure or a response that could not be understood."""

    pass


class RateLimitError(InoreaderError):
    """Rate limit exceeded."""

    pass
