"""Tests for location caching and the fallback provider."""

from __future__ import annotations

import asyncio
import json
from datetime import timedelta
from pathlib import Path

import pytest
from fakes import NOW, FakeDevice, FrozenClock, make_fix

from catchpoint.errors import LocationUnavailableError
from catchpoint.location import LocationCache, LocationProvider, StaticLocator
from catchpoint.location.cache import CACHE_PATH
from catchpoint.schemas import LocationFix, LocationSource
from catchpoint.store import DataStore

SLOW = 0.5


@pytest.fixture
def cache(tmp_path: Path, clock: FrozenClock) -> LocationCache:
    return LocationCache(DataStore(tmp_path), clock=clock)


def make_provider(device: FakeDevice, cache: LocationCache, clock: FrozenClock) -> LocationProvider:
    return LocationProvider(device, cache, fresh_timeout=0.05, clock=clock)


# =============================================================================
# LocationCache
# =============================================================================


class TestLocationCache:
    """Test the single-slot freshness cache."""

    def test_empty_cache(self, cache: LocationCache) -> None:
        assert cache.load() is None
        assert cache.peek() is None

    def test_load_within_window(self, cache: LocationCache, clock: FrozenClock) -> None:
        cache.save(make_fix(lat=10.0, lon=20.0))
        clock.advance(minutes=4, seconds=59)
        fix = cache.load()
        assert fix is not None
        assert fix.latitude == 10.0
        assert fix.source is LocationSource.CACHED

    def test_stale_at_exactly_five_minutes(self, cache: LocationCache, clock: FrozenClock) -> None:
        cache.save(make_fix())
        clock.advance(minutes=5)
        assert cache.load() is None

    def test_peek_ignores_age(self, cache: LocationCache, clock: FrozenClock) -> None:
        cache.save(make_fix(lat=10.0))
        clock.advance(hours=1)
        fix = cache.peek()
        assert fix is not None
        assert fix.latitude == 10.0

    def test_last_save_wins(self, cache: LocationCache) -> None:
        cache.save(make_fix(lat=10.0))
        cache.save(make_fix(lat=11.0))
        fix = cache.load()
        assert fix is not None
        assert fix.latitude == 11.0

    def test_window_measured_from_fix_timestamp(
        self, cache: LocationCache, clock: FrozenClock
    ) -> None:
        cache.save(make_fix(at=NOW - timedelta(minutes=6)))
        assert cache.load() is None

    def test_unreadable_slot_is_empty(self, tmp_path: Path, cache: LocationCache) -> None:
        path = tmp_path / CACHE_PATH
        path.parent.mkdir(parents=True)
        path.write_text("{not json")
        assert cache.peek() is None
        assert cache.load() is None

    def test_invalid_payload_is_empty(self, tmp_path: Path, cache: LocationCache) -> None:
        DataStore(tmp_path).write(CACHE_PATH, {"latitude": "north"}, source="test")
        assert cache.peek() is None

    def test_list_document_is_empty(self, tmp_path: Path, cache: LocationCache) -> None:
        path = tmp_path / CACHE_PATH
        path.parent.mkdir(parents=True)
        path.write_text("[]")
        assert cache.peek() is None
        assert cache.load() is None

    def test_bad_valid_until_is_empty(self, tmp_path: Path, cache: LocationCache) -> None:
        path = tmp_path / CACHE_PATH
        path.parent.mkdir(parents=True)
        envelope = {
            "meta": {"source": "device-gps", "valid_until": "not-a-date"},
            "data": make_fix().model_dump(mode="json"),
        }
        path.write_text(json.dumps(envelope))
        assert cache.peek() is None
        assert cache.load() is None

    def test_missing_valid_until_is_stale(self, tmp_path: Path, cache: LocationCache) -> None:
        DataStore(tmp_path).write(CACHE_PATH, make_fix().model_dump(mode="json"), source="test")
        assert cache.peek() is not None
        assert cache.load() is None

    def test_clear(self, cache: LocationCache) -> None:
        cache.save(make_fix())
        cache.clear()
        assert cache.peek() is None


# =============================================================================
# StaticLocator
# =============================================================================


class TestStaticLocator:
    def test_returns_configured_fix(self) -> None:
        locator = StaticLocator(45.5, -122.6, accuracy=3.0)
        fix = asyncio.run(locator.get_current_fix(high_accuracy=True))
        assert (fix.latitude, fix.longitude, fix.accuracy) == (45.5, -122.6, 3.0)

    def test_no_coordinates_raises(self) -> None:
        with pytest.raises(LocationUnavailableError):
            asyncio.run(StaticLocator().get_current_fix(high_accuracy=True))


# =============================================================================
# LocationProvider
# =============================================================================


class TestAcquire:
    """Test the fresh -> cached -> forced -> sentinel chain."""

    def test_fresh_fix(self, cache: LocationCache, clock: FrozenClock) -> None:
        device = FakeDevice(make_fix(lat=12.0, lon=34.0))
        provider = make_provider(device, cache, clock)

        fix = asyncio.run(provider.acquire())

        assert fix.source is LocationSource.FRESH
        assert (fix.latitude, fix.longitude) == (12.0, 34.0)
        assert fix.needs_refresh is False
        cached = cache.peek()
        assert cached is not None
        assert cached.latitude == 12.0

    def test_device_asked_for_brand_new_high_accuracy_fix(
        self, cache: LocationCache, clock: FrozenClock
    ) -> None:
        device = FakeDevice(make_fix())
        asyncio.run(make_provider(device, cache, clock).acquire())
        assert device.calls[0]["high_accuracy"] is True
        assert device.calls[0]["max_cache_age"] == 0
        assert device.calls[0]["timeout"] == 0.05

    def test_cached_fix_when_fresh_times_out(
        self, cache: LocationCache, clock: FrozenClock
    ) -> None:
        cache.save(make_fix(lat=1.0, lon=2.0, at=NOW - timedelta(minutes=1)))
        device = FakeDevice((SLOW, make_fix(lat=9.0, lon=9.0)))
        provider = make_provider(device, cache, clock)

        async def scenario() -> LocationFix:
            fix = await provider.acquire()
            await provider.aclose()
            return fix

        fix = asyncio.run(scenario())
        assert fix.source is LocationSource.CACHED
        assert (fix.latitude, fix.longitude) == (1.0, 2.0)
        assert fix.needs_refresh is True

    def test_cached_fix_starts_cache_warmer(
        self, cache: LocationCache, clock: FrozenClock
    ) -> None:
        cache.save(make_fix(lat=1.0, at=NOW - timedelta(minutes=1)))
        device = FakeDevice(LocationUnavailableError("timeout"), make_fix(lat=7.0))
        provider = make_provider(device, cache, clock)

        async def scenario() -> LocationFix:
            fix = await provider.acquire()
            await provider.wait_idle()
            return fix

        fix = asyncio.run(scenario())
        assert fix.source is LocationSource.CACHED
        assert len(device.calls) == 2
        warmed = cache.peek()
        assert warmed is not None
        assert warmed.latitude == 7.0

    def test_only_one_cache_warmer(self, cache: LocationCache, clock: FrozenClock) -> None:
        cache.save(make_fix(at=NOW - timedelta(minutes=1)))
        device = FakeDevice((SLOW, make_fix()))
        provider = make_provider(device, cache, clock)

        async def scenario() -> None:
            await provider.acquire()
            await provider.acquire()
            await provider.aclose()

        asyncio.run(scenario())
        # Two racing attempts plus a single warmer
        assert len(device.calls) == 3

    def test_forced_fix_without_cache(self, cache: LocationCache, clock: FrozenClock) -> None:
        device = FakeDevice((SLOW, make_fix(lat=3.0)), make_fix(lat=4.0))
        provider = make_provider(device, cache, clock)

        async def scenario() -> LocationFix:
            fix = await provider.acquire()
            await provider.aclose()
            return fix

        fix = asyncio.run(scenario())
        assert fix.source is LocationSource.FORCED
        assert fix.latitude == 4.0
        assert fix.needs_refresh is False
        assert device.calls[1]["timeout"] is None

    def test_stale_cache_is_skipped(self, cache: LocationCache, clock: FrozenClock) -> None:
        cache.save(make_fix(lat=1.0, at=NOW - timedelta(minutes=10)))
        device = FakeDevice(LocationUnavailableError("no fix"), make_fix(lat=4.0))
        fix = asyncio.run(make_provider(device, cache, clock).acquire())
        assert fix.source is LocationSource.FORCED
        assert fix.latitude == 4.0

    def test_sentinel_when_everything_fails(
        self, cache: LocationCache, clock: FrozenClock
    ) -> None:
        device = FakeDevice(LocationUnavailableError("permission denied"))
        fix = asyncio.run(make_provider(device, cache, clock).acquire())
        assert fix.source is LocationSource.SENTINEL
        assert (fix.latitude, fix.longitude, fix.accuracy) == (0.0, 0.0, 0.0)
        assert fix.timestamp == NOW
        assert fix.is_sentinel
        assert fix.needs_refresh is True

    def test_unexpected_device_error_never_escapes(
        self, cache: LocationCache, clock: FrozenClock
    ) -> None:
        device = FakeDevice(RuntimeError("driver crashed"))
        fix = asyncio.run(make_provider(device, cache, clock).acquire())
        assert fix.source is LocationSource.SENTINEL

    @pytest.mark.parametrize(
        "document",
        [
            "[]",
            json.dumps(
                {"meta": {"valid_until": "not-a-date"}, "data": {"latitude": 1.0, "longitude": 2.0}}
            ),
            "{not json",
        ],
    )
    def test_damaged_cache_never_escapes(
        self, tmp_path: Path, cache: LocationCache, clock: FrozenClock, document: str
    ) -> None:
        """A damaged cache slot degrades to the sentinel instead of raising."""
        path = tmp_path / CACHE_PATH
        path.parent.mkdir(parents=True)
        path.write_text(document)
        device = FakeDevice(LocationUnavailableError("no fix"))

        fix = asyncio.run(make_provider(device, cache, clock).acquire())

        assert fix.source is LocationSource.SENTINEL


class TestRequestFresh:
    """Test the deadline race on its own."""

    def test_returns_none_on_timeout(self, cache: LocationCache, clock: FrozenClock) -> None:
        device = FakeDevice((SLOW, make_fix()))
        provider = make_provider(device, cache, clock)

        async def scenario() -> LocationFix | None:
            fix = await provider.request_fresh(timeout=0.05)
            await provider.aclose()
            return fix

        assert asyncio.run(scenario()) is None

    def test_late_fix_still_updates_cache(self, cache: LocationCache, clock: FrozenClock) -> None:
        device = FakeDevice((0.2, make_fix(lat=22.0)))
        provider = make_provider(device, cache, clock)

        async def scenario() -> LocationFix | None:
            fix = await provider.request_fresh(timeout=0.05)
            await provider.wait_idle()
            return fix

        assert asyncio.run(scenario()) is None
        late = cache.peek()
        assert late is not None
        assert late.latitude == 22.0

    def test_no_deadline_waits(self, cache: LocationCache, clock: FrozenClock) -> None:
        device = FakeDevice((0.1, make_fix(lat=5.0)))
        fix = asyncio.run(make_provider(device, cache, clock).request_fresh(timeout=None))
        assert fix is not None
        assert fix.latitude == 5.0

    def test_failure_returns_none(self, cache: LocationCache, clock: FrozenClock) -> None:
        device = FakeDevice(LocationUnavailableError("no fix"))
        assert asyncio.run(make_provider(device, cache, clock).request_fresh(timeout=1.0)) is None
        assert cache.peek() is None
