"""Inoreader API client - authenticated access to the Reader API."""

from __future__ import annotations

from typing import Any, Iterable

import httpx

from ..auth import TokenAuth, TokenManager
from ..config import InoreaderSettings, settings as default_settings
from ..errors import AuthenticationError, CommunicationError, InoreaderError, RateLimitError
from ..labels import LabelCache, LabelClassification, ListingChannel
from .folders import FoldersAPI
from .models import StreamState, User, label_stream_id, parse_stream_state
from .tags import TagsAPI


class InoreaderClient:
    """Inoreader API client with ergonomic interface.

    Usage:
        async with InoreaderClient(TokenManager.from_settings(settings)) as ino:
            me = await ino.user_info()
            tags = await ino.tags.list()
            folders, tags = await ino.classify_categories(article["categories"])
    """

    def __init__(
        self,
        token_manager: TokenManager | None = None,
        settings: InoreaderSettings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.settings = settings or default_settings
        self.token_manager = token_manager or TokenManager.from_settings(self.settings)

        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            base_url=self.settings.api_url,
            auth=TokenAuth(self.token_manager, self.settings.root_url),
            timeout=self.settings.http_timeout_seconds,
        )

        self.listings = ListingChannel()
        self.label_cache = LabelCache(self.list_label_states, ttl=self.settings.label_cache_ttl_seconds)
        self.listings.subscribe(self.label_cache.notify)

        self.tags = TagsAPI(self)
        self.folders = FoldersAPI(self)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.close()

    async def close(self):
        """Close the HTTP client, if this client created it."""
        if self._owns_client:
            await self._client.aclose()

    # =========================================================================
    # HTTP helpers
    # =========================================================================

    async def _request(
        self,
        method: str,
        path: str,
        action: str,
        params: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Make an API request with error handling.

        Args:
            action: What the request does, used as the error message prefix
        """
        try:
            response = await self._client.request(method, path, params=params, data=data)
        except httpx.RequestError as e:
            raise CommunicationError(f"{action}: {e}") from e

        if response.status_code in (401, 403):
            raise AuthenticationError("Inoreader auth failure", response.status_code)

        if response.status_code == 429:
            raise RateLimitError(
                "Rate limited",
                429,
                details={
                    name: response.headers[name]
                    for name in ("X-Reader-Zone1-Limit", "X-Reader-Zone1-Usage", "X-Reader-Limits-Reset-After")
                    if name in response.headers
                },
            )

        if response.status_code >= 400:
            body = response.text.strip()
            if body.startswith("Error="):
                body = body[len("Error=") :]
            raise InoreaderError(f"{action}: {body}" if body else action, response.status_code)

        return response

    async def _get(self, path: str, action: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        response = await self._request("GET", path, action, params=params)
        try:
            return response.json() if response.content else {}
        except ValueError as e:
            raise CommunicationError(f"{action}: invalid JSON response", response.status_code) from e

    async def _post(self, path: str, action: str, data: dict[str, Any]) -> str:
        response = await self._request("POST", path, action, data=data)
        return response.text

    # =========================================================================
    # Operations
    # =========================================================================

    async def list_label_states(self) -> list[StreamState]:
        """List every folder, tag and system stream with unread counts.

        Each successful listing is published on :attr:`listings`, which keeps
        the label cache fresh.
        """
        action = "Failed to list tags and folders"
        data = await self._get("tag/list", action, params={"types": 1, "counts": 1})
        entries = data.get("tags", []) if isinstance(data, dict) else None
        if not isinstance(entries, list):
            raise CommunicationError(f"{action}: malformed response")
        try:
            states = [parse_stream_state(entry) for entry in entries]
        except (KeyError, TypeError, ValueError) as e:
            raise CommunicationError(f"{action}: malformed response", details={"cause": str(e)}) from e
        self.listings.publish(states)
        return states

    async def labels(self) -> LabelClassification:
        """Folder and tag names, from the cache when fresh."""
        return await self.label_cache.resolve()

    async def classify_categories(self, categories: Iterable[str]) -> tuple[frozenset[str], frozenset[str]]:
        """Split an article's category stream ids into (folder names, tag names)."""
        labels = await self.label_cache.resolve()
        return labels.classify(categories)

    async def user_info(self) -> User:
        """Get the authenticated user's account."""
        return User.from_dict(await self._get("user-info", "Failed to get self user info"))

    async def _rename_label(self, name: str, new_name: str, is_folder: bool) -> None:
        kind = "folder" if is_folder else "tag"
        await self._post(
            "rename-tag",
            f"Failed to rename {kind} {name} to {new_name}",
            data={"s": label_stream_id(name), "dest": new_name},
        )
        self.label_cache.correct(name, is_folder, remove=True)
        self.label_cache.correct(new_name, is_folder)

    async def _delete_label(self, name: str, is_folder: bool) -> None:
        kind = "folder" if is_folder else "tag"
        await self._post("disable-tag", f"Failed to delete {kind} {name}", data={"s": label_stream_id(name)})
        self.label_cache.correct(name, is_folder, remove=True)
