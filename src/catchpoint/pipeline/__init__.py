"""Capture-and-enrichment pipeline.

Three cooperating parts, with no central coordinator. They agree only through
the record flags:

- capture.py     CaptureOrchestrator: optimistic quick capture
- refresh.py     BackgroundLocationRefresher: owns location fields while
                 ``pending_location_refresh`` is set
- enrichment.py  WeatherEnrichmentQueue: owns weather fields while
                 ``pending_weather_fetch`` is set
"""

from catchpoint.pipeline.capture import (
    CaptureFeedback,
    CaptureOrchestrator,
    CaptureResult,
    FeedbackState,
)
from catchpoint.pipeline.enrichment import WeatherEnrichmentQueue, is_eligible
from catchpoint.pipeline.refresh import BackgroundLocationRefresher

__all__ = [
    "BackgroundLocationRefresher",
    "CaptureFeedback",
    "CaptureOrchestrator",
    "CaptureResult",
    "FeedbackState",
    "WeatherEnrichmentQueue",
    "is_eligible",
]
