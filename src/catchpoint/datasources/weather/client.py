"""OpenWeatherMap API client constants and shared response handling.

API docs:
  - Current weather (2.5, free tier): https://openweathermap.org/current
  - One Call 3.0 timemachine (paid): https://openweathermap.org/api/one-call-3#history

The timemachine endpoint answers 401 for keys without a One Call 3.0
subscription; that surfaces as :class:`~catchpoint.errors.WeatherAuthError`.
"""

from __future__ import annotations

from typing import Any

import requests

from catchpoint.errors import (
    WeatherAPIError,
    WeatherAuthError,
    WeatherNotConfiguredError,
    WeatherTransportError,
)
from catchpoint.services.http import session

OPENWEATHERMAP_BASE_URL = "https://api.openweathermap.org/data"
CURRENT_WEATHER_API = f"{OPENWEATHERMAP_BASE_URL}/2.5/weather"
HISTORICAL_WEATHER_API = f"{OPENWEATHERMAP_BASE_URL}/3.0/onecall/timemachine"

UNITS = "metric"  # Celsius, m/s; pressure is always hPa


def get_json(url: str, params: dict[str, Any], api_key: str | None) -> dict[str, Any]:
    """GET ``url`` with the API key attached and return the decoded body.

    Raises:
        WeatherNotConfiguredError: No API key.
        WeatherAuthError: HTTP 401.
        WeatherAPIError: Any other non-2xx status, or a non-JSON body.
        WeatherTransportError: The request failed before a response arrived.
    """
    if not api_key:
        msg = "OpenWeatherMap API key is not configured"
        raise WeatherNotConfiguredError(msg)

    try:
        resp = session.get(url, params={**params, "appid": api_key, "units": UNITS})
    except requests.RequestException as exc:
        msg = f"Weather request failed: {exc}"
        raise WeatherTransportError(msg) from exc

    if resp.status_code == 401:
        msg = f"Weather API rejected credentials for {url}"
        raise WeatherAuthError(msg)
    if not resp.ok:
        msg = f"Weather API error: {resp.status_code} {resp.reason}"
        raise WeatherAPIError(msg, status_code=resp.status_code)

    try:
        result: dict[str, Any] = resp.json()
    except ValueError as exc:
        msg = "Weather API returned a non-JSON body"
        raise WeatherAPIError(msg, status_code=resp.status_code) from exc
    return result
