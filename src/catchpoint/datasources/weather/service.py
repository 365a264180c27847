"""Weather lookup policy: current vs historical.

Routing for ``fetch(lat, lon, timestamp)``:

- No timestamp, or one less than 30 minutes old: current conditions.
- Otherwise the historical path. Inside it, a timestamp less than 3 hours old
  is close enough and goes straight to current conditions; older timestamps
  try the historical endpoint and fall back to current conditions on any
  weather error (401 "not entitled" included).

The 3-hour check can never fire for a timestamp the 30-minute gate already
routed to current; both rules are kept as-is.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from catchpoint.datasources.weather.current import fetch_current
from catchpoint.datasources.weather.historical import fetch_historical
from catchpoint.errors import WeatherAuthError, WeatherError
from catchpoint.schemas import WeatherSnapshot, utc_now

logger = logging.getLogger(__name__)

#: Timestamps younger than this use current conditions outright.
CURRENT_WINDOW = timedelta(minutes=30)

#: Inside the historical path, timestamps younger than this use current conditions.
RECENT_WINDOW = timedelta(hours=3)


class WeatherService:
    """Fetches a weather snapshot for a catch location and time."""

    def __init__(
        self,
        api_key: str | None,
        *,
        clock: Callable[[], datetime] = utc_now,
        current_window: timedelta = CURRENT_WINDOW,
        recent_window: timedelta = RECENT_WINDOW,
    ) -> None:
        self._api_key = api_key
        self._clock = clock
        self.current_window = current_window
        self.recent_window = recent_window

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    async def fetch(
        self,
        lat: float,
        lon: float,
        timestamp: datetime | None = None,
    ) -> WeatherSnapshot:
        """Async wrapper: runs the blocking HTTP lookup in a worker thread."""
        return await asyncio.to_thread(self.fetch_sync, lat, lon, timestamp)

    def fetch_sync(
        self,
        lat: float,
        lon: float,
        timestamp: datetime | None = None,
    ) -> WeatherSnapshot:
        """
        Fetch weather for a point, optionally at a past instant.

        Raises:
            WeatherError: If the current-conditions lookup (direct or fallback) fails.
        """
        if timestamp is None or self._age(timestamp) < self.current_window:
            return fetch_current(lat, lon, self._api_key)
        return self._fetch_historical_or_current(lat, lon, timestamp)

    def _fetch_historical_or_current(
        self,
        lat: float,
        lon: float,
        timestamp: datetime,
    ) -> WeatherSnapshot:
        age = self._age(timestamp)
        if age < self.recent_window:
            logger.debug("Timestamp is %s old, current weather is close enough", age)
            return fetch_current(lat, lon, self._api_key)

        try:
            return fetch_historical(lat, lon, timestamp, self._api_key)
        except WeatherAuthError:
            logger.warning("Historical weather not available for this API key, using current")
        except WeatherError as exc:
            logger.warning("Historical weather failed (%s), using current", exc)
        return fetch_current(lat, lon, self._api_key)

    def _age(self, timestamp: datetime) -> timedelta:
        return self._clock() - timestamp
