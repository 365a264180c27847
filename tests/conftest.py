"""Shared pytest fixtures."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from fakes import FrozenClock

from catchpoint.config import Settings

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        data_dir=tmp_path,
        openweathermap_api_key="test-key",
        location_timeout_s=0.05,
        weather_request_delay_s=0.0,
    )
