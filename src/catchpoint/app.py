"""Process wiring.

:func:`build_app` constructs every component once and passes collaborators by
reference, so tests (and platform glue) can swap in their own device locator,
weather service or network monitor::

    app = build_app(settings, device=StaticLocator(45.5, -122.6))
    app.network.update(is_connected=True)

    async def main() -> None:
        app.capture.capture()
        await app.drain()
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from catchpoint.config import Settings, get_settings
from catchpoint.datasources.weather import WeatherService
from catchpoint.jobs import JobRunner
from catchpoint.location import DeviceLocator, LocationCache, LocationProvider, StaticLocator
from catchpoint.network import NetworkMonitor
from catchpoint.pipeline import (
    BackgroundLocationRefresher,
    CaptureOrchestrator,
    WeatherEnrichmentQueue,
)
from catchpoint.records import CatchRecordStore
from catchpoint.schemas import utc_now
from catchpoint.store import DataStore


@dataclass
class CatchApp:
    """Every long-lived component, built once per process."""

    settings: Settings
    store: DataStore
    records: CatchRecordStore
    location: LocationProvider
    network: NetworkMonitor
    weather: WeatherService
    refresher: BackgroundLocationRefresher
    enrichment: WeatherEnrichmentQueue
    capture: CaptureOrchestrator

    @property
    def runners(self) -> list[JobRunner]:
        return [self.capture.jobs, self.refresher.jobs, self.enrichment.jobs]

    async def drain(self) -> None:
        """Wait for all background work, including work spawned while waiting."""
        while any(r.busy for r in self.runners):
            for runner in self.runners:
                await runner.join()
        await self.location.wait_idle()

    async def aclose(self) -> None:
        for runner in self.runners:
            await runner.aclose()
        await self.location.aclose()


def build_app(
    settings: Settings | None = None,
    *,
    device: DeviceLocator | None = None,
    weather: WeatherService | None = None,
    network: NetworkMonitor | None = None,
    clock: Callable[[], datetime] = utc_now,
) -> CatchApp:
    """Construct and wire the pipeline from settings."""
    settings = settings or get_settings()
    store = DataStore(settings.data_dir)
    records = CatchRecordStore(store, clock=clock)

    cache = LocationCache(store, ttl=timedelta(seconds=settings.location_cache_ttl_s), clock=clock)
    location = LocationProvider(
        device or StaticLocator(settings.default_lat, settings.default_lon),
        cache,
        fresh_timeout=settings.location_timeout_s,
        clock=clock,
    )
    network = network or NetworkMonitor()
    weather = weather or WeatherService(settings.openweathermap_api_key, clock=clock)

    refresher = BackgroundLocationRefresher(
        location,
        records,
        jobs=JobRunner("location-refresh", max_workers=settings.refresh_workers),
        timeout=settings.location_timeout_s,
    )
    enrichment = WeatherEnrichmentQueue(
        records,
        weather,
        network=network,
        request_delay=settings.weather_request_delay_s,
    )
    enrichment.subscribe(network)

    capture = CaptureOrchestrator(location, records, network, refresher, enrichment, clock=clock)

    return CatchApp(
        settings=settings,
        store=store,
        records=records,
        location=location,
        network=network,
        weather=weather,
        refresher=refresher,
        enrichment=enrichment,
        capture=capture,
    )
