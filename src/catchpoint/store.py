"""JSON data store with freshness-aware envelopes.

Manages read/write of JSON data files under a base directory, organized by
purpose:
  - live/: Short-lived device state (last location fix, 5-minute TTL)
  - records/: Durable catch records, no TTL

Every file is wrapped in a metadata envelope so readers can tell where the data
came from and, for cached values, when it stops being usable::

    {"meta": {"source": ..., "fetched_at": ..., "valid_until": ...}, "data": ...}

Freshness is evaluated at read time against ``valid_until``; nothing is evicted
actively.
"""

from __future__ import annotations

import json
import os
from datetime import UTC, datetime
from pathlib import Path  # noqa: TC003
from typing import Any


class DataStore:
    """Manages read/write of enveloped JSON files with optional TTL."""

    def __init__(self, base_dir: Path) -> None:
        self.base = base_dir
        self.live = base_dir / "live"
        self.records = base_dir / "records"

    def read(self, path: Path) -> Any:
        """Read data payload from a metadata-enveloped JSON file.

        Returns the ``data`` field, or None if the file doesn't exist.
        """
        envelope = self.read_raw(path)
        if envelope is None:
            return None
        return envelope.get("data", envelope)

    def read_raw(self, path: Path) -> dict[str, Any] | None:
        """Read the full envelope (meta + data) from a JSON file."""
        full = self._resolve(path)
        if not full.exists():
            return None
        with full.open() as f:
            result: dict[str, Any] = json.load(f)
        return result

    def write(
        self,
        path: Path,
        data: Any,
        source: str,
        valid_until: datetime | None = None,
        **params: Any,
    ) -> Path:
        """Write data wrapped in a metadata envelope.

        The file is written to a sibling temp file first and then renamed over
        the target, so readers never observe a half-written envelope.

        Args:
            path: Relative path under base_dir (e.g. ``live/last_location.json``).
            data: JSON-serializable payload stored under the ``data`` key.
            source: Data source identifier (e.g. ``"device-gps"``).
            valid_until: Expiry timestamp. None means no expiry.
            **params: Extra metadata fields.

        Returns:
            Absolute path of the written file.
        """
        full = self._resolve(path)
        full.parent.mkdir(parents=True, exist_ok=True)

        meta: dict[str, Any] = {
            "source": source,
            "fetched_at": datetime.now(UTC).isoformat(),
        }
        if valid_until is not None:
            meta["valid_until"] = valid_until.isoformat()
        if params:
            meta.update(params)

        envelope = {"meta": meta, "data": data}
        tmp = full.with_suffix(full.suffix + ".tmp")
        with tmp.open("w") as f:
            json.dump(envelope, f, indent=2)
        os.replace(tmp, full)

        return full

    def delete(self, path: Path) -> bool:
        """Remove a stored file. Returns False if it was already gone."""
        full = self._resolve(path)
        try:
            full.unlink()
        except FileNotFoundError:
            return False
        return True

    def is_fresh(self, path: Path, now: datetime | None = None) -> bool:
        """Check if a file exists and hasn't expired.

        Returns False if the file is missing, has no ``valid_until``, or
        the expiry time has been reached (an entry is stale at exactly
        ``valid_until``).
        """
        envelope = self.read_raw(path)
        if envelope is None:
            return False

        expiry = self.expiry(envelope)
        if expiry is None:
            return False
        return (now or datetime.now(UTC)) < expiry

    @staticmethod
    def expiry(envelope: dict[str, Any]) -> datetime | None:
        """The envelope's ``valid_until`` as an aware datetime, or None.

        Raises:
            ValueError: ``valid_until`` is not an ISO-8601 timestamp.
        """
        valid_until = envelope.get("meta", {}).get("valid_until")
        if valid_until is None:
            return None
        expiry = datetime.fromisoformat(valid_until)
        if expiry.tzinfo is None:
            expiry = expiry.replace(tzinfo=UTC)
        return expiry

    def _resolve(self, path: Path) -> Path:
        full = self.base / path if not path.is_absolute() else path
        try:
            full.resolve().relative_to(self.base.resolve())
        except ValueError:
            msg = f"Path escapes store base directory: {path}"
            raise ValueError(msg) from None
        return full
