"""
Domain models for catchpoint.

Pydantic models shared by the pipeline components. These define the canonical
schema - datasources normalize API responses to these, and the record store
persists them as JSON.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, Field


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


# =============================================================================
# Jobs
# =============================================================================


class Status(StrEnum):
    """Status enum for tracking background job state."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


# =============================================================================
# Location
# =============================================================================


class LocationSource(StrEnum):
    """Which acquisition path produced a fix."""

    FRESH = "fresh"  # device fix within the deadline
    CACHED = "cached"  # last fresh fix, still inside the freshness window
    FORCED = "forced"  # device fix after waiting with no deadline
    SENTINEL = "sentinel"  # (0, 0): nothing could be determined


class LocationFix(BaseModel):
    """A single geolocation reading."""

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    accuracy: float = Field(default=0.0, ge=0, description="Radius in metres")
    timestamp: datetime = Field(default_factory=utc_now)
    source: LocationSource = LocationSource.FRESH

    @classmethod
    def sentinel(cls, timestamp: datetime | None = None) -> LocationFix:
        """The documented last-resort fix: ``(0, 0)`` with zero accuracy."""
        return cls(
            latitude=0.0,
            longitude=0.0,
            accuracy=0.0,
            timestamp=timestamp or utc_now(),
            source=LocationSource.SENTINEL,
        )

    @property
    def is_sentinel(self) -> bool:
        return self.latitude == 0 and self.longitude == 0

    @property
    def needs_refresh(self) -> bool:
        """Whether a record built from this fix should owe a location refresh."""
        return self.source in (LocationSource.CACHED, LocationSource.SENTINEL)


# =============================================================================
# Network
# =============================================================================


class NetworkStatus(StrEnum):
    """Tri-state connectivity."""

    UNKNOWN = "unknown"
    OFFLINE = "offline"
    ONLINE = "online"


class NetworkState(BaseModel):
    """Latest connectivity signal plus the status derived from it."""

    status: NetworkStatus = NetworkStatus.UNKNOWN
    is_connected: bool = False
    is_internet_reachable: bool | None = None
    connection_type: str = "unknown"


# =============================================================================
# Weather
# =============================================================================


class WeatherSource(StrEnum):
    """Which endpoint produced a snapshot."""

    CURRENT = "current"
    HISTORICAL = "historical"


class WeatherSnapshot(BaseModel):
    """Weather conditions attached to a catch."""

    temperature: float
    temperature_unit: str = "C"
    condition: str | None = None
    pressure: float
    pressure_unit: str = "hPa"
    humidity: float
    wind_speed: float
    fetched_at: datetime = Field(default_factory=utc_now)
    source: WeatherSource = WeatherSource.CURRENT


# =============================================================================
# Catch records
# =============================================================================


class CatchRecord(BaseModel):
    """A captured catch, as persisted by the record store."""

    id: str = Field(..., description="Opaque unique identifier")
    timestamp: datetime = Field(..., description="Capture instant")
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    weather: WeatherSnapshot | None = None
    pending_weather_fetch: bool = True
    pending_location_refresh: bool = False
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    version: int = Field(default=1, ge=1)

    @property
    def has_unknown_location(self) -> bool:
        """True for the ``(0, 0)`` sentinel coordinate."""
        return self.latitude == 0 and self.longitude == 0


class RecordError(BaseModel):
    """A per-record failure collected during an enrichment run."""

    record_id: str
    error: str
    error_code: str | None = None


class EnrichmentReport(BaseModel):
    """Outcome of one weather enrichment pass."""

    processed: int = 0
    failed: int = 0
    errors: list[RecordError] = Field(default_factory=list)
    skipped: str | None = Field(default=None, description="Reason the whole run was skipped")

    @property
    def attempted(self) -> int:
        return self.processed + self.failed
