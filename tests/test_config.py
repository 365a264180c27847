"""Tests for application settings."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from catchpoint.config import Settings, get_settings


class TestSettings:
    """Test defaults, environment overrides and validation."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.chdir(tmp_path)  # no stray .env
        settings = Settings()
        assert settings.app_name == "catchpoint"
        assert settings.data_dir == Path("data")
        assert settings.openweathermap_api_key is None
        assert settings.location_timeout_s == 8.0
        assert settings.location_cache_ttl_s == 300.0
        assert settings.weather_request_delay_s == 1.0
        assert settings.refresh_workers == 4

    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("CATCHPOINT_OPENWEATHERMAP_API_KEY", "abc123")
        monkeypatch.setenv("CATCHPOINT_DATA_DIR", str(tmp_path / "store"))
        monkeypatch.setenv("CATCHPOINT_LOCATION_TIMEOUT_S", "2.5")
        settings = Settings()
        assert settings.openweathermap_api_key == "abc123"
        assert settings.data_dir == tmp_path / "store"
        assert settings.location_timeout_s == 2.5

    def test_dotenv_file(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.chdir(tmp_path)
        (tmp_path / ".env").write_text("CATCHPOINT_DEFAULT_LAT=45.5\nCATCHPOINT_DEFAULT_LON=-122.6\n")
        settings = Settings()
        assert settings.default_lat == 45.5
        assert settings.default_lon == -122.6

    @pytest.mark.parametrize(
        "overrides",
        [
            {"location_timeout_s": 0},
            {"weather_request_delay_s": -1},
            {"refresh_workers": 0},
            {"default_lat": 91},
        ],
    )
    def test_rejects_invalid(self, overrides: dict[str, float]) -> None:
        with pytest.raises(ValidationError):
            Settings(**overrides)

    def test_get_settings_is_cached(self) -> None:
        assert get_settings() is get_settings()
