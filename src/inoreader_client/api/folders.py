"""Folders API - folder listing and management."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .models import FolderState

if TYPE_CHECKING:
    from .client import InoreaderClient


class FoldersAPI:
    """Folders API for Inoreader.

    Usage:
        async with InoreaderClient() as ino:
            folders = await ino.folders.list()
            await ino.folders.rename("Tech", "Technology")
    """

    def __init__(self, client: "InoreaderClient"):
        self._client = client

    async def list(self) -> list[FolderState]:
        """List folders with their unread counts."""
        states = await self._client.list_label_states()
        return [state for state in states if isinstance(state, FolderState)]

    async def rename(self, folder: str, new_name: str) -> None:
        await self._client._rename_label(folder, new_name, is_folder=True)

    async def delete(self, folder: str) -> None:
        """Delete a folder. Its subscriptions move to the root."""
        await self._client._delete_label(folder, is_folder=True)
