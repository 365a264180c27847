"""Background weather enrichment for pending catch records.

Each :meth:`WeatherEnrichmentQueue.run` takes a fresh snapshot of eligible
records, so overlapping triggers (connectivity coming back, a capture while
online, a scheduled flow) are safe: a record enriched by one pass is no longer
pending for the next.

A record is eligible when all of these hold:
  - ``pending_weather_fetch`` is set
  - ``pending_location_refresh`` is clear (coordinates are final)
  - it is not at the ``(0, 0)`` sentinel

Records are processed newest first, one at a time, with a fixed pause before
every request. A failure leaves the record pending and the pass moves on;
there is no retry loop, the next trigger picks it up again.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from catchpoint.errors import RecordConflictError, WeatherError
from catchpoint.jobs import JobRecord, JobRunner
from catchpoint.schemas import (
    CatchRecord,
    EnrichmentReport,
    NetworkStatus,
    RecordError,
    WeatherSnapshot,
)

if TYPE_CHECKING:
    from catchpoint.datasources.weather import WeatherService
    from catchpoint.network import NetworkMonitor
    from catchpoint.records import CatchRecordStore

logger = logging.getLogger(__name__)

#: Pause before each outbound weather request, in seconds.
REQUEST_DELAY = 1.0

MAX_WRITE_ATTEMPTS = 3


def is_eligible(record: CatchRecord) -> bool:
    """Whether a record should be enriched now."""
    return (
        record.pending_weather_fetch
        and not record.pending_location_refresh
        and not record.has_unknown_location
    )


class WeatherEnrichmentQueue:
    """Reconciles pending records with weather snapshots."""

    def __init__(
        self,
        records: CatchRecordStore,
        weather: WeatherService,
        *,
        network: NetworkMonitor | None = None,
        jobs: JobRunner | None = None,
        request_delay: float = REQUEST_DELAY,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._records = records
        self._weather = weather
        self._network = network
        self.jobs = jobs or JobRunner("weather-enrichment", max_workers=1, coalesce=True)
        self.request_delay = request_delay
        self._sleep = sleep

    async def eligible(self) -> list[CatchRecord]:
        """Eligible records, newest capture first."""
        pending = await self._records.query_pending_weather()
        batch = [r for r in pending if is_eligible(r)]
        batch.sort(key=lambda r: r.timestamp, reverse=True)
        return batch

    def trigger(self) -> JobRecord:
        """Queue a run in the background (coalesced with any queued run)."""
        return self.jobs.submit(self.run, label="enrichment-pass")

    def subscribe(self, monitor: NetworkMonitor) -> Callable[[], None]:
        """Trigger a run whenever ``monitor`` transitions to online."""
        return monitor.on_online(self.trigger)

    async def run(self) -> EnrichmentReport:
        """Enrich every eligible record once. Never raises for per-record failures."""
        report = EnrichmentReport()

        if not self._weather.is_configured:
            logger.info("Weather API not configured, skipping enrichment")
            report.skipped = "weather-not-configured"
            return report
        if self._network is not None and self._network.status is NetworkStatus.OFFLINE:
            logger.info("Device is offline, skipping enrichment")
            report.skipped = "offline"
            return report

        batch = await self.eligible()
        if not batch:
            logger.debug("No catches pending weather")
            return report

        logger.info("Enriching %d catch(es) with weather", len(batch))
        for record in batch:
            await self._sleep(self.request_delay)
            try:
                snapshot = await self._weather.fetch(
                    record.latitude, record.longitude, record.timestamp
                )
                written = await self._write_weather(record.id, snapshot)
            except (WeatherError, RecordConflictError) as exc:
                logger.warning("Weather enrichment failed for catch %s: %s", record.id, exc)
                report.failed += 1
                report.errors.append(
                    RecordError(record_id=record.id, error=str(exc), error_code=exc.error_code)
                )
            except Exception as exc:  # noqa: BLE001
                logger.exception("Unexpected error enriching catch %s", record.id)
                report.failed += 1
                report.errors.append(
                    RecordError(record_id=record.id, error=f"{type(exc).__name__}: {exc}")
                )
            else:
                if written:
                    report.processed += 1

        logger.info(
            "Weather enrichment done: %d processed, %d failed", report.processed, report.failed
        )
        return report

    async def _write_weather(self, record_id: str, snapshot: WeatherSnapshot) -> bool:
        """Attach ``snapshot`` if the record is still pending. False if nothing was written.

        Raises:
            RecordConflictError: The record kept changing across every attempt.
        """
        attempt = 0
        while True:
            attempt += 1
            current = await self._records.get(record_id)
            if current is None or not current.pending_weather_fetch:
                logger.debug("Catch %s no longer pending weather", record_id)
                return False
            try:
                await self._records.update(
                    record_id,
                    expected_version=current.version,
                    weather=snapshot,
                    pending_weather_fetch=False,
                )
            except RecordConflictError:
                if attempt >= MAX_WRITE_ATTEMPTS:
                    raise
                logger.debug("Catch %s changed underneath, re-reading", record_id)
                continue
            return True
