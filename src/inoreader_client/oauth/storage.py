"""Token persistence for OAuth and password-login tokens.

The token manager only needs something that satisfies :class:`TokenStore`.
:class:`FileTokenStore` is a ready-made implementation that keeps tokens in
``~/.inoreader/tokens.json`` with restrictive file permissions.

Note: Tokens are stored in plaintext and protected by file permissions (0o600).
Applications that need encryption at rest should supply their own store.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import time
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

# Default storage directory
DEFAULT_CONFIG_DIR = Path.home() / ".inoreader"


@dataclass(frozen=True)
class TokenRecord:
    """Persisted credential state.

    A record holds the OAuth triple (access token, refresh token, expiry),
    the password-login token, or neither. Fields are only ever added or
    replaced as a whole record; instances are immutable.
    """

    access_token: str | None = None
    refresh_token: str | None = None
    expires_at: float | None = None  # Unix timestamp
    password_token: str | None = None  # Does not expire

    @property
    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    def seconds_until_expiry(self, now: float | None = None) -> float | None:
        """Seconds until the access token expires, or None if it never does."""
        if self.expires_at is None:
            return None
        now = time.time() if now is None else now
        return self.expires_at - now

    def merge_missing(self, older: TokenRecord) -> TokenRecord:
        """Fill fields this record lacks from an older record, e.g. one loaded from disk.

        The OAuth triple is taken as a unit and only when this record has no
        access token, so a token obtained in memory always beats a stale
        persisted one.
        """
        merged = self
        if merged.access_token is None and older.access_token is not None:
            merged = replace(
                merged,
                access_token=older.access_token,
                refresh_token=older.refresh_token,
                expires_at=older.expires_at,
            )
        if merged.password_token is None and older.password_token is not None:
            merged = replace(merged, password_token=older.password_token)
        return merged

    def updated_with(self, newer: TokenRecord) -> TokenRecord:
        """Return a copy where every field set on ``newer`` wins."""
        changes = {f.name: getattr(newer, f.name) for f in fields(newer) if getattr(newer, f.name) is not None}
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for storage."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TokenRecord":
        """Create from dictionary, ignoring unknown keys.

        Raises:
            TypeError: If ``data`` is not a mapping or a field has the wrong type
        """
        if not isinstance(data, dict):
            raise TypeError(f"token record must be an object, got {type(data).__name__}")
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        for name, value in values.items():
            if value is None:
                continue
            if name == "expires_at":
                if isinstance(value, bool) or not isinstance(value, (int, float)):
                    raise TypeError(f"expires_at must be a number, got {value!r}")
            elif not isinstance(value, str):
                raise TypeError(f"{name} must be a string, got {type(value).__name__}")
        return cls(**values)


@runtime_checkable
class TokenStore(Protocol):
    """Durable load/save of a :class:`TokenRecord`, supplied by the application."""

    async def load(self) -> TokenRecord | None: ...

    async def save(self, record: TokenRecord) -> None: ...


class FileTokenStore:
    """JSON-file implementation of :class:`TokenStore`.

    Usage:
        store = FileTokenStore()
        record = await store.load()
        await store.save(TokenRecord(password_token="abc"))
    """

    def __init__(self, config_dir: Path | str | None = None):
        """Initialize token storage.

        Args:
            config_dir: Directory for the token file (default: ~/.inoreader)
        """
        self.config_dir = Path(config_dir).expanduser() if config_dir else DEFAULT_CONFIG_DIR
        self.tokens_file = self.config_dir / "tokens.json"

    async def load(self) -> TokenRecord | None:
        """Load the token record, or None if nothing usable is stored."""
        try:
            record = await asyncio.to_thread(self._read)
        except (ValueError, TypeError) as e:
            logger.warning("Could not load tokens from %s: %s", self.tokens_file, e)
            return None

        return None if record is None or record.is_empty else record

    async def save(self, record: TokenRecord) -> None:
        """Save the token record."""
        await asyncio.to_thread(self._write, record)

    def _read(self) -> TokenRecord | None:
        # Undecodable bytes and bad JSON both surface as ValueError
        if not self.tokens_file.exists():
            return None
        with open(self.tokens_file, encoding="utf-8") as f:
            return TokenRecord.from_dict(json.load(f))

    def _write(self, record: TokenRecord) -> None:
        self.config_dir.mkdir(parents=True, exist_ok=True)
        content = json.dumps(record.to_dict(), indent=2)

        with open(self.tokens_file, "w", encoding="utf-8") as f:
            f.write(content)

        # Set restrictive permissions
        os.chmod(self.tokens_file, 0o600)

    def clear(self) -> None:
        """Delete all stored tokens."""
        self.tokens_file.unlink(missing_ok=True)

    def get_status(self) -> dict[str, Any]:
        """Get token status summary without exposing secrets."""
        status: dict[str, Any] = {
            "config_dir": str(self.config_dir),
            "oauth_token": None,
            "password_token": False,
        }
        try:
            record = self._read()
        except (ValueError, TypeError):
            return status
        if record is None:
            return status

        if record.access_token:
            remaining = record.seconds_until_expiry()
            status["oauth_token"] = {
                "has_refresh_token": record.refresh_token is not None,
                "expires_in_seconds": None if remaining is None else max(0, int(remaining)),
            }
        status["password_token"] = record.password_token is not None
        return status
