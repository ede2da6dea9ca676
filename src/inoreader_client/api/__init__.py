"""Inoreader API client module.

Usage:
    from inoreader_client.api import InoreaderClient

    async with InoreaderClient() as ino:
        user = await ino.user_info()
        tags = await ino.tags.list()
        folders = await ino.folders.list()
        folder_names, tag_names = await ino.classify_categories(article["categories"])
"""

from .client import InoreaderClient
from .folders import FoldersAPI
from .models import (
    ActiveSearchState,
    FolderState,
    LabelState,
    StreamState,
    TagState,
    User,
    label_name,
    label_stream_id,
    parse_stream_state,
)
from .tags import TagsAPI

__all__ = [
    "InoreaderClient",
    "FoldersAPI",
    "TagsAPI",
    "StreamState",
    "LabelState",
    "FolderState",
    "TagState",
    "ActiveSearchState",
    "User",
    "label_name",
    "label_stream_id",
    "parse_stream_state",
]
