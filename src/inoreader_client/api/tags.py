"""Tags API - tag listing and management."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .models import TagState

if TYPE_CHECKING:
    from .client import InoreaderClient


class TagsAPI:
    """Tags API for Inoreader.

    Usage:
        async with InoreaderClient() as ino:
            tags = await ino.tags.list()
            await ino.tags.rename("Later", "Read later")
            await ino.tags.delete("Read later")
    """

    def __init__(self, client: "InoreaderClient"):
        self._client = client

    async def list(self) -> list[TagState]:
        """List tags with their unread counts.

        Active searches are left out even though Inoreader lists them as tags.
        """
        states = await self._client.list_label_states()
        return [state for state in states if type(state) is TagState]

    async def rename(self, tag: str, new_name: str) -> None:
        """Rename a tag.

        Args:
            tag: Current tag name
            new_name: New tag name
        """
        await self._client._rename_label(tag, new_name, is_folder=False)

    async def delete(self, tag: str) -> None:
        """Delete a tag. Articles keep their other labels."""
        await self._client._delete_label(tag, is_folder=False)
