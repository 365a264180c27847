"""Tests for the DataStore module."""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from catchpoint.store import DataStore


class TestDataStoreInit:
    """Test DataStore initialization."""

    def test_creates_tier_paths(self, tmp_path: Path) -> None:
        store = DataStore(tmp_path)
        assert store.base == tmp_path
        assert store.live == tmp_path / "live"
        assert store.records == tmp_path / "records"


class TestDataStoreWrite:
    """Test writing data with metadata envelopes."""

    def test_write_creates_file(self, tmp_path: Path) -> None:
        store = DataStore(tmp_path)
        path = store.write(Path("live/last_location.json"), {"latitude": 1.0}, source="test")
        assert path.exists()

    def test_write_envelope_format(self, tmp_path: Path) -> None:
        store = DataStore(tmp_path)
        valid = datetime(2026, 3, 1, tzinfo=UTC)
        store.write(Path("live/fix.json"), {"latitude": 1.0}, source="device-gps", valid_until=valid)

        data = json.loads((tmp_path / "live" / "fix.json").read_text())
        assert data["meta"]["source"] == "device-gps"
        assert "fetched_at" in data["meta"]
        assert data["meta"]["valid_until"] == valid.isoformat()
        assert data["data"] == {"latitude": 1.0}

    def test_write_extra_params(self, tmp_path: Path) -> None:
        store = DataStore(tmp_path)
        store.write(Path("live/test.json"), {}, source="test", accuracy_m=12.5)
        data = json.loads((tmp_path / "live" / "test.json").read_text())
        assert data["meta"]["accuracy_m"] == 12.5

    def test_write_creates_parent_dirs(self, tmp_path: Path) -> None:
        store = DataStore(tmp_path)
        store.write(Path("records/deep/nested.json"), {}, source="test")
        assert (tmp_path / "records" / "deep" / "nested.json").exists()

    def test_write_leaves_no_temp_file(self, tmp_path: Path) -> None:
        store = DataStore(tmp_path)
        store.write(Path("records/catches.json"), {"catches": []}, source="test")
        store.write(Path("records/catches.json"), {"catches": [1]}, source="test")
        assert sorted(p.name for p in (tmp_path / "records").iterdir()) == ["catches.json"]
        assert store.read(Path("records/catches.json")) == {"catches": [1]}

    def test_write_no_valid_until(self, tmp_path: Path) -> None:
        store = DataStore(tmp_path)
        store.write(Path("records/catches.json"), {}, source="test")
        data = json.loads((tmp_path / "records" / "catches.json").read_text())
        assert "valid_until" not in data["meta"]

    def test_rejects_path_outside_base(self, tmp_path: Path) -> None:
        store = DataStore(tmp_path / "store")
        with pytest.raises(ValueError, match="escapes"):
            store.write(Path("../outside.json"), {}, source="test")


class TestDataStoreRead:
    """Test reading data from the store."""

    def test_read_returns_data_payload(self, tmp_path: Path) -> None:
        store = DataStore(tmp_path)
        store.write(Path("live/test.json"), {"key": "value"}, source="test")
        assert store.read(Path("live/test.json")) == {"key": "value"}

    def test_read_missing_file(self, tmp_path: Path) -> None:
        store = DataStore(tmp_path)
        assert store.read(Path("nonexistent.json")) is None

    def test_read_raw_returns_full_envelope(self, tmp_path: Path) -> None:
        store = DataStore(tmp_path)
        store.write(Path("live/test.json"), {"key": "value"}, source="test")
        result = store.read_raw(Path("live/test.json"))
        assert result is not None
        assert result["meta"]["source"] == "test"
        assert result["data"] == {"key": "value"}


class TestDataStoreDelete:
    def test_delete_existing(self, tmp_path: Path) -> None:
        store = DataStore(tmp_path)
        store.write(Path("live/test.json"), {}, source="test")
        assert store.delete(Path("live/test.json")) is True
        assert store.read(Path("live/test.json")) is None

    def test_delete_missing(self, tmp_path: Path) -> None:
        store = DataStore(tmp_path)
        assert store.delete(Path("live/test.json")) is False


class TestDataStoreIsFresh:
    """Test freshness checking."""

    def test_missing_file_not_fresh(self, tmp_path: Path) -> None:
        store = DataStore(tmp_path)
        assert store.is_fresh(Path("nonexistent.json")) is False

    def test_expired_file_not_fresh(self, tmp_path: Path) -> None:
        store = DataStore(tmp_path)
        past = datetime.now(UTC) - timedelta(hours=1)
        store.write(Path("live/test.json"), {}, source="test", valid_until=past)
        assert store.is_fresh(Path("live/test.json")) is False

    def test_future_valid_until_is_fresh(self, tmp_path: Path) -> None:
        store = DataStore(tmp_path)
        future = datetime.now(UTC) + timedelta(minutes=5)
        store.write(Path("live/test.json"), {}, source="test", valid_until=future)
        assert store.is_fresh(Path("live/test.json")) is True

    def test_stale_exactly_at_expiry(self, tmp_path: Path) -> None:
        store = DataStore(tmp_path)
        expiry = datetime(2026, 6, 1, 12, 0, tzinfo=UTC)
        store.write(Path("live/test.json"), {}, source="test", valid_until=expiry)
        assert store.is_fresh(Path("live/test.json"), now=expiry - timedelta(seconds=1)) is True
        assert store.is_fresh(Path("live/test.json"), now=expiry) is False

    def test_no_valid_until_not_fresh(self, tmp_path: Path) -> None:
        store = DataStore(tmp_path)
        store.write(Path("records/test.json"), {}, source="test")
        assert store.is_fresh(Path("records/test.json")) is False


class TestDataStoreExpiry:
    """Test reading ``valid_until`` from an envelope."""

    def test_missing(self) -> None:
        assert DataStore.expiry({"meta": {}, "data": {}}) is None

    def test_naive_timestamp_is_utc(self) -> None:
        expiry = DataStore.expiry({"meta": {"valid_until": "2026-06-01T12:00:00"}})
        assert expiry == datetime(2026, 6, 1, 12, 0, tzinfo=UTC)

    def test_malformed_raises(self) -> None:
        with pytest.raises(ValueError):
            DataStore.expiry({"meta": {"valid_until": "not-a-date"}})
