"""Entities returned by the Inoreader API: folder and tag states from ``tag/list``, and the user.

Documentation: https://www.inoreader.com/developers/tag-list
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

LABEL_SEGMENT = "label"


def label_name(stream_id: str) -> str | None:
    """Return the folder or tag name for a label stream id.

    ``user/1005/label/Science`` and ``user/-/label/Science`` both give
    ``Science``; ids that do not point to a label give None.
    """
    parts = stream_id.split("/", 3)
    if len(parts) == 4 and parts[0] == "user" and parts[2] == LABEL_SEGMENT and parts[3]:
        return parts[3]
    return None


def label_stream_id(name: str) -> str:
    """Stream id for a folder or tag name."""
    return f"user/-/{LABEL_SEGMENT}/{name}"


@dataclass(frozen=True)
class StreamState:
    """One stream (system state, folder, or tag) from the label listing."""

    id: str
    sort_id: str | None = None


@dataclass(frozen=True)
class LabelState(StreamState):
    """A folder or tag with its unread counts."""

    unread_count: int | None = None
    unseen_count: int | None = None

    @property
    def name(self) -> str:
        """The folder or tag's name, with no prefix."""
        return self.id.split("/", 3)[3]


@dataclass(frozen=True)
class FolderState(LabelState):
    pass


@dataclass(frozen=True)
class TagState(LabelState):
    is_pinned: bool = False
    article_count: int = 0
    article_count_today: int = 0


@dataclass(frozen=True)
class ActiveSearchState(TagState):
    pass


def parse_stream_state(data: dict[str, Any]) -> StreamState:
    """Build the right state class from a ``tag/list`` entry's ``type``."""
    if not isinstance(data["id"], str):
        raise TypeError(f"stream id must be a string, got {data['id']!r}")
    base = {"id": data["id"], "sort_id": data.get("sortid")}
    kind = data.get("type")
    if kind in ("folder", "tag", "active_search") and label_name(data["id"]) is None:
        raise ValueError(f"{kind} entry is not a label stream: {data['id']!r}")

    if kind == "folder":
        return FolderState(**base, **_counts(data))
    if kind in ("tag", "active_search"):
        cls = ActiveSearchState if kind == "active_search" else TagState
        return cls(
            **base,
            **_counts(data),
            is_pinned=bool(int(data.get("pinned") or 0)),
            article_count=int(data.get("article_count") or 0),
            article_count_today=int(data.get("article_count_today") or 0),
        )
    return StreamState(**base)


def _counts(data: dict[str, Any]) -> dict[str, int | None]:
    return {
        "unread_count": _optional_int(data.get("unread_count")),
        "unseen_count": _optional_int(data.get("unseen_count")),
    }


def _optional_int(value: Any) -> int | None:
    return None if value is None else int(value)


@dataclass(frozen=True)
class User:
    """Account of the authenticated user, from ``user-info``."""

    id: int
    name: str
    profile_id: int
    email: str
    signup_time: datetime | None = None
    is_blogger_user: bool = False
    is_multi_login_enabled: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "User":
        signup = data.get("signupTimeSec")
        return cls(
            id=int(data["userId"]),
            name=data["userName"],
            profile_id=int(data.get("userProfileId") or data["userId"]),
            email=data.get("userEmail", ""),
            signup_time=datetime.fromtimestamp(int(signup), tz=timezone.utc) if signup is not None else None,
            is_blogger_user=bool(data.get("isBloggerUser", False)),
            is_multi_login_enabled=bool(data.get("isMultiLoginEnabled", False)),
        )
