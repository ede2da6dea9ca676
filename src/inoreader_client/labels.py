"""Time-boxed cache of folder and tag names.

Inoreader reports an article's categories only as label stream ids, which do
not say whether a label is a folder or a tag. The cache keeps the two name
sets from the last full label listing so articles can be classified without a
request per article.

The cache is fed two ways:
- pull: :meth:`LabelCache.resolve` fetches a listing when the snapshot is stale
- push: :meth:`LabelCache.notify`, subscribed to a :class:`ListingChannel`,
  receives every listing any other code path performs
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from dataclasses import dataclass, replace
from typing import Awaitable, Callable, Iterable

from .api.models import FolderState, StreamState, TagState, label_name
from .errors import InoreaderError

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 3600

ListingCallback = Callable[[list[StreamState]], None]


@dataclass(frozen=True)
class LabelClassification:
    """Snapshot of folder and tag names."""

    folders: frozenset[str] = frozenset()
    tags: frozenset[str] = frozenset()

    @classmethod
    def from_states(cls, states: Iterable[StreamState]) -> "LabelClassification":
        folders: set[str] = set()
        tags: set[str] = set()
        for state in states:
            if isinstance(state, FolderState):
                folders.add(state.name)
            elif isinstance(state, TagState):
                tags.add(state.name)
        return cls(folders=frozenset(folders), tags=frozenset(tags))

    def is_folder(self, name: str) -> bool:
        return name in self.folders

    def is_tag(self, name: str) -> bool:
        return name in self.tags

    def classify(self, category_ids: Iterable[str]) -> tuple[frozenset[str], frozenset[str]]:
        """Split an article's category stream ids into folder names and tag names.

        Labels that are not known folders are treated as tags, since an unknown
        label is most likely a tag created after the last listing.
        """
        folders: set[str] = set()
        tags: set[str] = set()
        for category in category_ids:
            name = label_name(category)
            if name is None:
                continue
            if name in self.folders:
                folders.add(name)
            else:
                tags.add(name)
        return frozenset(folders), frozenset(tags)


class ListingChannel:
    """Broadcast of every full label listing the client observes.

    Subscribers are permanent and called synchronously, in subscription order.
    """

    def __init__(self):
        self._subscribers: list[ListingCallback] = []

    def subscribe(self, callback: ListingCallback) -> None:
        self._subscribers.append(callback)

    def publish(self, states: Iterable[StreamState]) -> None:
        listing = list(states)
        for callback in list(self._subscribers):
            try:
                callback(listing)
            except Exception:
                logger.exception("Label listing subscriber %r failed", callback)


@dataclass(frozen=True)
class _CacheState:
    labels: LabelClassification
    refreshed_at: float | None  # clock() reading of the last full rebuild


class LabelCache:
    """Single-flight, TTL-bounded cache of :class:`LabelClassification`.

    Usage:
        cache = LabelCache(client.list_label_states, ttl=3600)
        client.listings.subscribe(cache.notify)

        labels = await cache.resolve()
        folders, tags = labels.classify(article_categories)
    """

    def __init__(
        self,
        fetch: Callable[[], Awaitable[Iterable[StreamState]]],
        ttl: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._fetch = fetch
        self.ttl = ttl
        self._clock = clock
        self._state = _CacheState(labels=LabelClassification(), refreshed_at=None)
        self._state_lock = threading.Lock()
        self._fetch_lock = asyncio.Lock()

    @property
    def labels(self) -> LabelClassification:
        """Current snapshot, fresh or not, without fetching."""
        return self._state.labels

    @property
    def is_stale(self) -> bool:
        refreshed_at = self._state.refreshed_at
        return refreshed_at is None or self._clock() - refreshed_at > self.ttl

    async def resolve(self) -> LabelClassification:
        """Return the classification, fetching a full listing first if stale.

        Concurrent callers that find the cache stale share one fetch. A failed
        fetch yields an empty classification and still resets the timer.
        """
        if not self.is_stale:
            return self._state.labels

        async with self._fetch_lock:
            if self.is_stale:
                try:
                    states = await self._fetch()
                except InoreaderError as e:
                    logger.warning("Failed to list folders and tags, treating all labels as tags: %s", e)
                    states = []
                self._rebuild(states)

        return self._state.labels

    def notify(self, states: Iterable[StreamState]) -> None:
        """Rebuild from a full listing performed elsewhere and reset the timer."""
        self._rebuild(states)

    def correct(self, name: str, is_folder: bool, remove: bool = False) -> None:
        """Add or remove one name after a local create, rename or delete.

        The freshness timer is left alone, so the next full rebuild stays
        authoritative. A correction made while a fetch is in flight is lost
        when that fetch's rebuild lands.
        """
        with self._state_lock:
            labels = self._state.labels
            names = labels.folders if is_folder else labels.tags
            names = names - {name} if remove else names | {name}
            labels = replace(labels, folders=names) if is_folder else replace(labels, tags=names)
            self._state = replace(self._state, labels=labels)

    def _rebuild(self, states: Iterable[StreamState]) -> None:
        labels = LabelClassification.from_states(states)
        with self._state_lock:
            self._state = _CacheState(labels=labels, refreshed_at=self._clock())
        logger.debug("Label cache rebuilt: %d folders, %d tags", len(labels.folders), len(labels.tags))
