"""Durable single-slot cache for the last fresh location fix.

Stored as ``live/last_location.json`` with ``valid_until`` set to the fix
timestamp plus the freshness window. Every save overwrites the slot; reads
ignore entries whose window has elapsed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta
from pathlib import Path

from catchpoint.schemas import LocationFix, LocationSource, utc_now
from catchpoint.store import DataStore  # noqa: TC001

logger = logging.getLogger(__name__)

CACHE_PATH = Path("live/last_location.json")

#: How long a cached fix stays usable, measured from the fix timestamp.
FRESHNESS_WINDOW = timedelta(minutes=5)


class LocationCache:
    """Last-fresh-fix-wins location cache."""

    def __init__(
        self,
        store: DataStore,
        ttl: timedelta = FRESHNESS_WINDOW,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self.ttl = ttl
        self._clock = clock

    def save(self, fix: LocationFix) -> None:
        """Overwrite the slot with ``fix``. Write failures are logged, not raised."""
        payload = fix.model_copy(update={"source": LocationSource.FRESH}).model_dump(mode="json")
        try:
            self._store.write(
                CACHE_PATH,
                payload,
                source="device-gps",
                valid_until=fix.timestamp + self.ttl,
            )
        except OSError:
            logger.exception("Failed to cache location fix")

    def peek(self) -> LocationFix | None:
        """The stored fix regardless of age, or None if missing/unreadable."""
        entry = self._read()
        return entry[0] if entry else None

    def load(self) -> LocationFix | None:
        """The cached fix if it is younger than the freshness window."""
        entry = self._read()
        if entry is None:
            return None
        fix, expiry = entry
        if expiry is None or self._clock() >= expiry:
            return None
        return fix.model_copy(update={"source": LocationSource.CACHED})

    def _read(self) -> tuple[LocationFix, datetime | None] | None:
        # Any damage to the slot reads as an empty cache
        try:
            envelope = self._store.read_raw(CACHE_PATH)
            if envelope is None:
                return None
            fix = LocationFix.model_validate(envelope["data"])
            expiry = self._store.expiry(envelope)
        except (OSError, ValueError, TypeError, AttributeError, KeyError) as exc:
            logger.warning("Ignoring unreadable location cache: %s", exc)
            return None
        return fix, expiry

    def clear(self) -> None:
        self._store.delete(CACHE_PATH)
