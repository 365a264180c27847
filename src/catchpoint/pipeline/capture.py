"""One-tap quick capture.

:meth:`CaptureOrchestrator.capture` flips the user-facing feedback to success
immediately and does the real work in a background job:

1. Resolve a location (never raises, may degrade to cache or ``(0, 0)``).
2. Create the record, pending weather, and pending a location refresh when
   the fix came from the cache or the sentinel path.
3. Hand the record to the location refresher if a refresh is owed.
4. Kick the weather queue if the network is online.

If anything in 1-4 raises, the feedback switches to an error state. Success
was already shown, so this is the correction path.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING

from catchpoint.errors import CaptureError
from catchpoint.jobs import JobRecord, JobRunner
from catchpoint.schemas import LocationFix, utc_now

if TYPE_CHECKING:
    from catchpoint.location import LocationProvider
    from catchpoint.network import NetworkMonitor
    from catchpoint.pipeline.enrichment import WeatherEnrichmentQueue
    from catchpoint.pipeline.refresh import BackgroundLocationRefresher
    from catchpoint.records import CatchRecordStore

logger = logging.getLogger(__name__)

CAPTURE_FAILED_MESSAGE = "Something went wrong saving your catch"


class FeedbackState(StrEnum):
    IDLE = "idle"
    SUCCESS = "success"
    ERROR = "error"


FeedbackListener = Callable[[FeedbackState, str | None], None]


class CaptureFeedback:
    """UI-facing capture indicator. A UX signal, not a data guarantee."""

    def __init__(self) -> None:
        self.state = FeedbackState.IDLE
        self.message: str | None = None
        self._listeners: list[FeedbackListener] = []

    def subscribe(self, listener: FeedbackListener) -> None:
        self._listeners.append(listener)

    def succeed(self) -> None:
        self._set(FeedbackState.SUCCESS, None)

    def fail(self, message: str) -> None:
        self._set(FeedbackState.ERROR, message)

    def reset(self) -> None:
        self._set(FeedbackState.IDLE, None)

    def _set(self, state: FeedbackState, message: str | None) -> None:
        self.state = state
        self.message = message
        for listener in list(self._listeners):
            listener(state, message)


@dataclass
class CaptureResult:
    """What a finished capture produced."""

    record_id: str
    fix: LocationFix
    refresh_dispatched: bool
    enrichment_triggered: bool


class CaptureOrchestrator:
    """Drives the quick-capture action."""

    def __init__(
        self,
        location: LocationProvider,
        records: CatchRecordStore,
        network: NetworkMonitor,
        refresher: BackgroundLocationRefresher,
        enrichment: WeatherEnrichmentQueue,
        *,
        feedback: CaptureFeedback | None = None,
        jobs: JobRunner | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._location = location
        self._records = records
        self._network = network
        self._refresher = refresher
        self._enrichment = enrichment
        self.feedback = feedback or CaptureFeedback()
        self.jobs = jobs or JobRunner("capture", max_workers=4)
        self._clock = clock

    def capture(self) -> JobRecord:
        """Signal success now and run the capture pipeline in the background.

        Must be called from inside a running event loop.
        """
        captured_at = self._clock()
        self.feedback.succeed()
        return self.jobs.submit(
            lambda: self.run_pipeline(captured_at), label=captured_at.isoformat()
        )

    async def run_pipeline(self, captured_at: datetime) -> CaptureResult:
        """Resolve location, create the record, dispatch follow-up work.

        Raises:
            CaptureError: The record could not be created (feedback already
                switched to the error state).
        """
        try:
            fix = await self._location.acquire()
            needs_refresh = fix.needs_refresh
            record_id = await self._records.create(
                latitude=fix.latitude,
                longitude=fix.longitude,
                timestamp=captured_at,
                pending_weather_fetch=True,
                pending_location_refresh=needs_refresh,
            )
            logger.info("Captured catch %s from %s fix", record_id, fix.source)

            if needs_refresh:
                self._refresher.dispatch(record_id)

            online = self._network.is_online
            if online:
                self._enrichment.trigger()
        except Exception as exc:
            logger.exception("Quick capture failed")
            self.feedback.fail(CAPTURE_FAILED_MESSAGE)
            raise CaptureError(str(exc)) from exc

        return CaptureResult(
            record_id=record_id,
            fix=fix,
            refresh_dispatched=needs_refresh,
            enrichment_triggered=online,
        )
