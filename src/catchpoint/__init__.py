"""Catchpoint - one-tap fishing catch capture with offline-first weather enrichment.

Architecture::

    location/      Device fix acquisition (fresh -> cached -> forced -> sentinel) + cache
    network.py     Tri-state connectivity monitor with transition events
    records.py     Catch record repository (JSON file via store.py)
    datasources/   External APIs (OpenWeatherMap current + historical conditions)
    pipeline/      Capture orchestration, background location refresh, weather queue
    jobs/          Supervised fire-and-forget job runners
    flows/         Prefect orchestration (scheduled enrichment passes)
    services/      Shared utilities (HTTP client with retry)
    app.py         Wiring: builds every component once and injects dependencies

Data flow: capture -> location -> records -> {location refresh, weather queue}
"""

__version__ = "0.1.0"

from catchpoint.config import Settings
from catchpoint.schemas import CatchRecord, LocationFix, WeatherSnapshot

__all__ = ["CatchRecord", "LocationFix", "Settings", "WeatherSnapshot", "__version__"]
