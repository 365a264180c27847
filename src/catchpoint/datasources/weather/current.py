"""Current conditions from the OpenWeatherMap 2.5 weather endpoint."""

from __future__ import annotations

from typing import Any

from catchpoint.datasources.weather.client import CURRENT_WEATHER_API, get_json
from catchpoint.errors import WeatherAPIError
from catchpoint.schemas import WeatherSnapshot, WeatherSource


def parse_current(data: dict[str, Any]) -> WeatherSnapshot:
    """Normalize a 2.5 ``/weather`` response."""
    try:
        main = data["main"]
        conditions = data.get("weather") or []
        return WeatherSnapshot(
            temperature=main["temp"],
            condition=conditions[0].get("main") if conditions else None,
            pressure=main["pressure"],
            humidity=main["humidity"],
            wind_speed=(data.get("wind") or {}).get("speed", 0.0),
            source=WeatherSource.CURRENT,
        )
    except (KeyError, TypeError) as exc:
        msg = f"Unexpected current-weather payload: missing {exc}"
        raise WeatherAPIError(msg) from exc


def fetch_current(lat: float, lon: float, api_key: str | None) -> WeatherSnapshot:
    """
    Fetch current conditions at a point.

    Args:
        lat: Latitude.
        lon: Longitude.
        api_key: OpenWeatherMap API key.

    Returns:
        WeatherSnapshot with ``source=current``.
    """
    data = get_json(CURRENT_WEATHER_API, {"lat": lat, "lon": lon}, api_key)
    return parse_current(data)
