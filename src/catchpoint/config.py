"""Application settings, read from ``CATCHPOINT_*`` environment variables or ``.env``."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration."""

    model_config = SettingsConfigDict(
        env_prefix="CATCHPOINT_",
        env_file=".env",
        extra="ignore",
    )

    app_name: str = "catchpoint"
    app_env: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    data_dir: Path = Path("data")

    # Weather (OpenWeatherMap). Enrichment is skipped while unset.
    openweathermap_api_key: str | None = None

    # Location acquisition
    location_timeout_s: float = Field(default=8.0, gt=0)
    location_cache_ttl_s: float = Field(default=300.0, gt=0)

    # Background work
    weather_request_delay_s: float = Field(default=1.0, ge=0)
    refresh_workers: int = Field(default=4, ge=1)

    # Coordinates used by the CLI when no manual fix is supplied
    default_lat: float | None = Field(default=None, ge=-90, le=90)
    default_lon: float | None = Field(default=None, ge=-180, le=180)


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
