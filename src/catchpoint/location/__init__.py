"""Device location acquisition.

Public API:
  - device: DeviceLocator protocol, StaticLocator (CLI/manual fixes)
  - cache: LocationCache (single-slot, 5-minute freshness window)
  - provider: LocationProvider (fresh -> cached -> forced -> (0, 0) fallback)
"""

from catchpoint.location.cache import FRESHNESS_WINDOW, LocationCache
from catchpoint.location.device import DeviceLocator, StaticLocator
from catchpoint.location.provider import FRESH_FIX_TIMEOUT, LocationProvider

__all__ = [
    "FRESHNESS_WINDOW",
    "FRESH_FIX_TIMEOUT",
    "DeviceLocator",
    "LocationCache",
    "LocationProvider",
    "StaticLocator",
]
