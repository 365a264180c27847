"""Historical conditions from the One Call 3.0 timemachine endpoint."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003
from typing import Any

from catchpoint.datasources.weather.client import HISTORICAL_WEATHER_API, get_json
from catchpoint.errors import WeatherAPIError
from catchpoint.schemas import WeatherSnapshot, WeatherSource


def parse_historical(data: dict[str, Any]) -> WeatherSnapshot:
    """Normalize a timemachine response (first data point wins)."""
    points = data.get("data") or []
    if not points:
        msg = "No historical weather data available"
        raise WeatherAPIError(msg)

    point = points[0]
    try:
        conditions = point.get("weather") or []
        return WeatherSnapshot(
            temperature=point["temp"],
            condition=conditions[0].get("main") if conditions else None,
            pressure=point["pressure"],
            humidity=point["humidity"],
            wind_speed=point.get("wind_speed", 0.0),
            source=WeatherSource.HISTORICAL,
        )
    except (KeyError, TypeError) as exc:
        msg = f"Unexpected historical-weather payload: missing {exc}"
        raise WeatherAPIError(msg) from exc


def fetch_historical(
    lat: float,
    lon: float,
    when: datetime,
    api_key: str | None,
) -> WeatherSnapshot:
    """
    Fetch conditions at a point for a past instant.

    Args:
        lat: Latitude.
        lon: Longitude.
        when: Instant to look up (timezone-aware).
        api_key: OpenWeatherMap API key with One Call 3.0 access.

    Returns:
        WeatherSnapshot with ``source=historical``.

    Raises:
        WeatherAuthError: The key is not entitled to historical data.
    """
    params = {"lat": lat, "lon": lon, "dt": int(when.timestamp())}
    data = get_json(HISTORICAL_WEATHER_API, params, api_key)
    return parse_historical(data)
