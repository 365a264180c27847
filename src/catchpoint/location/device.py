"""Device location interface.

Platform glue implements :class:`DeviceLocator`; the rest of the package only
depends on this protocol. ``StaticLocator`` is the implementation used by the
CLI, where the "device" is whatever the user typed.
"""

from __future__ import annotations

import asyncio
from typing import Protocol

from catchpoint.errors import LocationUnavailableError
from catchpoint.schemas import LocationFix, utc_now


class DeviceLocator(Protocol):
    """Source of raw device fixes."""

    async def get_current_fix(
        self,
        *,
        high_accuracy: bool,
        timeout: float | None = None,
        max_cache_age: float | None = None,
    ) -> LocationFix:
        """Return a fix or raise :class:`LocationUnavailableError`.

        Args:
            high_accuracy: Request GPS-grade accuracy.
            timeout: Platform-side deadline in seconds, if supported.
            max_cache_age: Oldest platform-cached fix acceptable, in seconds.
                ``0`` demands a brand-new reading.
        """
        ...


class StaticLocator:
    """A locator that always reports the same coordinates (or none at all)."""

    def __init__(
        self,
        latitude: float | None = None,
        longitude: float | None = None,
        accuracy: float = 10.0,
        delay: float = 0.0,
    ) -> None:
        self.latitude = latitude
        self.longitude = longitude
        self.accuracy = accuracy
        self.delay = delay

    async def get_current_fix(
        self,
        *,
        high_accuracy: bool,
        timeout: float | None = None,
        max_cache_age: float | None = None,
    ) -> LocationFix:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.latitude is None or self.longitude is None:
            msg = "No coordinates configured"
            raise LocationUnavailableError(msg)
        return LocationFix(
            latitude=self.latitude,
            longitude=self.longitude,
            accuracy=self.accuracy,
            timestamp=utc_now(),
        )
