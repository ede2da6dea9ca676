"""Tests for the label cache."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from inoreader_client.api.models import ActiveSearchState, FolderState, StreamState, TagState
from inoreader_client.errors import CommunicationError, RateLimitError
from inoreader_client.labels import LabelCache, LabelClassification, ListingChannel

LISTING = [
    StreamState(id="user/1005/state/com.google/starred"),
    FolderState(id="user/1005/label/Tech"),
    FolderState(id="user/1005/label/News"),
    TagState(id="user/1005/label/Later"),
    ActiveSearchState(id="user/1005/label/Python jobs"),
]


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fetch():
    return AsyncMock(return_value=LISTING)


@pytest.fixture
def cache(fetch, clock):
    return LabelCache(fetch, ttl=3600, clock=clock)


class TestLabelClassification:
    """Tests for LabelClassification."""

    def test_from_states(self):
        labels = LabelClassification.from_states(LISTING)

        assert labels.folders == {"Tech", "News"}
        assert labels.tags == {"Later", "Python jobs"}
        assert labels.is_folder("Tech") is True
        assert labels.is_tag("Tech") is False

    def test_classify(self):
        """Should treat any label that is not a known folder as a tag."""
        labels = LabelClassification.from_states(LISTING)

        folders, tags = labels.classify(
            [
                "user/1005/label/Tech",
                "user/-/label/Later",
                "user/1005/label/Brand new",
                "user/1005/state/com.google/read",
            ]
        )

        assert folders == {"Tech"}
        assert tags == {"Later", "Brand new"}

    def test_classify_with_empty_snapshot(self):
        folders, tags = LabelClassification().classify(["user/1005/label/Tech"])
        assert folders == frozenset()
        assert tags == {"Tech"}


class TestListingChannel:
    """Tests for ListingChannel."""

    def test_publish_reaches_every_subscriber(self):
        channel = ListingChannel()
        first, second = MagicMock(), MagicMock()
        channel.subscribe(first)
        channel.subscribe(second)

        channel.publish(LISTING)

        first.assert_called_once_with(LISTING)
        second.assert_called_once_with(LISTING)

    def test_failing_subscriber_does_not_stop_others(self):
        """Should log a subscriber failure and keep delivering."""
        channel = ListingChannel()
        failing = MagicMock(side_effect=RuntimeError("boom"))
        healthy = MagicMock()
        channel.subscribe(failing)
        channel.subscribe(healthy)

        channel.publish(LISTING)

        healthy.assert_called_once()


class TestLabelCache:
    """Tests for LabelCache."""

    @pytest.mark.asyncio
    async def test_first_resolve_fetches(self, cache, fetch):
        labels = await cache.resolve()

        assert labels.folders == {"Tech", "News"}
        fetch.assert_called_once()

    @pytest.mark.asyncio
    async def test_fetches_once_within_ttl(self, cache, fetch, clock):
        """Should serve every resolve within the TTL from one fetch."""
        await cache.resolve()
        clock.now = 3599
        await cache.resolve()
        clock.now = 3600
        await cache.resolve()

        fetch.assert_called_once()

    @pytest.mark.asyncio
    async def test_refetches_after_ttl(self, cache, fetch, clock):
        await cache.resolve()
        clock.now = 3601

        await cache.resolve()

        assert fetch.call_count == 2

    @pytest.mark.asyncio
    async def test_concurrent_resolves_share_one_fetch(self, clock):
        """Should let concurrent callers of a stale cache share one fetch."""
        release = asyncio.Event()
        calls = 0

        async def slow_fetch():
            nonlocal calls
            calls += 1
            await release.wait()
            return LISTING

        cache = LabelCache(slow_fetch, ttl=3600, clock=clock)
        tasks = [asyncio.create_task(cache.resolve()) for _ in range(10)]
        await asyncio.sleep(0)
        release.set()
        results = await asyncio.gather(*tasks)

        assert calls == 1
        assert all(labels.folders == {"Tech", "News"} for labels in results)

    @pytest.mark.asyncio
    async def test_concurrent_resolves_after_expiry(self, cache, fetch, clock):
        await cache.resolve()
        clock.now = 7200

        await asyncio.gather(*(cache.resolve() for _ in range(5)))

        assert fetch.call_count == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [CommunicationError("offline"), RateLimitError("Rate limited", 429)])
    async def test_failed_fetch_yields_empty_and_resets_timer(self, cache, fetch, clock, error):
        """Should treat a failed listing as empty and not retry until the TTL passes."""
        fetch.side_effect = error

        labels = await cache.resolve()

        assert labels == LabelClassification()
        assert cache.is_stale is False
        clock.now = 100
        await cache.resolve()
        fetch.assert_called_once()

    @pytest.mark.asyncio
    async def test_unexpected_fetch_error_propagates(self, cache, fetch):
        fetch.side_effect = ValueError("bug")

        with pytest.raises(ValueError):
            await cache.resolve()

        assert cache.is_stale is True

    @pytest.mark.asyncio
    async def test_notify_replaces_snapshot_and_resets_timer(self, cache, fetch, clock):
        """Should rebuild from a listing performed elsewhere."""
        clock.now = 5000
        cache.notify([FolderState(id="user/1005/label/Only")])

        labels = await cache.resolve()

        assert labels.folders == {"Only"}
        assert labels.tags == frozenset()
        fetch.assert_not_called()

    @pytest.mark.asyncio
    async def test_correct_adds_and_removes(self, cache):
        await cache.resolve()

        cache.correct("Later", is_folder=False, remove=True)
        cache.correct("Read later", is_folder=False)
        cache.correct("Science", is_folder=True)

        assert cache.labels.tags == {"Read later", "Python jobs"}
        assert cache.labels.folders == {"Tech", "News", "Science"}

    @pytest.mark.asyncio
    async def test_correct_does_not_reset_timer(self, cache, fetch, clock):
        """Should leave freshness to full rebuilds."""
        await cache.resolve()
        clock.now = 3601

        cache.correct("Science", is_folder=True)

        assert cache.is_stale is True
        labels = await cache.resolve()
        assert "Science" not in labels.folders
        assert fetch.call_count == 2

    def test_correct_on_empty_cache_keeps_it_stale(self, cache):
        cache.correct("Tech", is_folder=True)

        assert cache.labels.folders == {"Tech"}
        assert cache.is_stale is True
