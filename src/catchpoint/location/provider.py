"""Location acquisition with graceful degradation.

:meth:`LocationProvider.acquire` always returns a usable fix, trying in order:

1. A fresh high-accuracy device fix, raced against ``fresh_timeout`` (8 s).
2. The cached last fix, if younger than the cache's freshness window. A fresh
   fix is re-issued in the background purely to warm the cache for next time.
3. A fresh device fix with no deadline.
4. The ``(0, 0)`` sentinel.

Device calls that lose the race in step 1 are not cancelled. The platform
location APIs we target have no cancellation hook, so the request is left
running and, if it eventually produces a fix, that fix still overwrites the
cache. :meth:`aclose` cancels whatever is still in flight at shutdown.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from datetime import datetime
from typing import Any

from catchpoint.errors import LocationUnavailableError
from catchpoint.location.cache import LocationCache  # noqa: TC001
from catchpoint.location.device import DeviceLocator  # noqa: TC001
from catchpoint.schemas import LocationFix, LocationSource, utc_now

logger = logging.getLogger(__name__)

#: Deadline for the first fresh-fix attempt, in seconds.
FRESH_FIX_TIMEOUT = 8.0


class LocationProvider:
    """Three-tier location fallback over a device locator and a cache."""

    def __init__(
        self,
        device: DeviceLocator,
        cache: LocationCache,
        *,
        fresh_timeout: float = FRESH_FIX_TIMEOUT,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._device = device
        self.cache = cache
        self.fresh_timeout = fresh_timeout
        self._clock = clock
        self._inflight: set[asyncio.Task[LocationFix | None]] = set()
        self._cache_warmer: asyncio.Task[LocationFix | None] | None = None

    async def acquire(self) -> LocationFix:
        """Resolve the best fix available right now. Never raises."""
        fix = await self.request_fresh(timeout=self.fresh_timeout)
        if fix is not None:
            return fix

        cached = self.cache.load()
        if cached is not None:
            logger.info("Using cached fix from %s", cached.timestamp.isoformat())
            self._warm_cache()
            return cached

        logger.info("No usable cached fix, waiting for GPS without a deadline")
        fix = await self._fetch_fresh(timeout=None)
        if fix is not None:
            return fix.model_copy(update={"source": LocationSource.FORCED})

        logger.warning("Location unavailable, recording catch at (0, 0)")
        return LocationFix.sentinel(self._clock())

    async def request_fresh(self, timeout: float | None) -> LocationFix | None:
        """Fresh fix raced against ``timeout`` seconds.

        Returns None on failure or when the deadline passes first. A request
        that misses the deadline keeps running and caches its fix if it
        eventually gets one.
        """
        task = self._spawn(self._fetch_fresh(timeout))
        done, _ = await asyncio.wait({task}, timeout=timeout)
        if task in done:
            return task.result()
        logger.info("No GPS fix within %.1fs", timeout)
        return None

    async def wait_idle(self) -> None:
        """Wait for background and late device requests to settle."""
        while self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    async def aclose(self) -> None:
        tasks = list(self._inflight)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    def _warm_cache(self) -> None:
        if self._cache_warmer is not None and not self._cache_warmer.done():
            return
        self._cache_warmer = self._spawn(self._fetch_fresh(self.fresh_timeout))

    def _spawn(
        self, coro: Coroutine[Any, Any, LocationFix | None]
    ) -> asyncio.Task[LocationFix | None]:
        task = asyncio.get_running_loop().create_task(coro)
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        return task

    async def _fetch_fresh(self, timeout: float | None) -> LocationFix | None:
        """One device request. Successful fixes overwrite the cache."""
        try:
            fix = await self._device.get_current_fix(
                high_accuracy=True,
                timeout=timeout,
                max_cache_age=0,
            )
        except LocationUnavailableError as exc:
            logger.warning("GPS fix failed: %s", exc)
            return None
        except Exception:  # noqa: BLE001
            logger.exception("GPS fix raised unexpectedly")
            return None

        fix = fix.model_copy(update={"source": LocationSource.FRESH})
        self.cache.save(fix)
        return fix
