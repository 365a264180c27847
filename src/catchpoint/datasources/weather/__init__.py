"""OpenWeatherMap weather data source.

Fetches current and historical conditions for a catch location.

Public API:
  - current: fetch_current (2.5 current weather, free tier)
  - historical: fetch_historical (One Call 3.0 timemachine, paid tier)
  - service: WeatherService (current-vs-historical routing with fallback)
  - client: API URLs, shared request/error handling
"""

from catchpoint.datasources.weather.client import (
    CURRENT_WEATHER_API,
    HISTORICAL_WEATHER_API,
)
from catchpoint.datasources.weather.current import fetch_current
from catchpoint.datasources.weather.historical import fetch_historical
from catchpoint.datasources.weather.service import (
    CURRENT_WINDOW,
    RECENT_WINDOW,
    WeatherService,
)

__all__ = [
    "CURRENT_WEATHER_API",
    "CURRENT_WINDOW",
    "HISTORICAL_WEATHER_API",
    "RECENT_WINDOW",
    "WeatherService",
    "fetch_current",
    "fetch_historical",
]
