"""Catch record repository.

The store owns persistence but no policy: it never decides which records need
weather or location work, it only answers queries and applies whole-field
updates. Records live in a single enveloped JSON document
(``records/catches.json``) managed by :class:`~catchpoint.store.DataStore`.

Every update bumps ``updated_at`` and ``version``. Callers that must not
clobber a concurrent writer pass ``expected_version`` and handle
:class:`~catchpoint.errors.RecordConflictError`.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Callable
from datetime import datetime  # noqa: TC003
from pathlib import Path
from typing import Any

from catchpoint.errors import RecordConflictError
from catchpoint.schemas import CatchRecord, utc_now
from catchpoint.store import DataStore  # noqa: TC001

logger = logging.getLogger(__name__)

RECORDS_PATH = Path("records/catches.json")

# Fields that may change after creation
MUTABLE_FIELDS = frozenset(
    {
        "latitude",
        "longitude",
        "weather",
        "pending_weather_fetch",
        "pending_location_refresh",
    }
)


class CatchRecordStore:
    """Async CRUD access to catch records."""

    def __init__(
        self,
        store: DataStore,
        clock: Callable[[], datetime] = utc_now,
        path: Path = RECORDS_PATH,
    ) -> None:
        self._store = store
        self._clock = clock
        self._path = path
        self._records: dict[str, CatchRecord] | None = None
        self._lock = asyncio.Lock()

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    async def get(self, record_id: str) -> CatchRecord | None:
        async with self._lock:
            records = await self._load()
            return records.get(record_id)

    async def list_all(self) -> list[CatchRecord]:
        """All records, newest capture first."""
        async with self._lock:
            records = await self._load()
            return sorted(records.values(), key=lambda r: r.timestamp, reverse=True)

    async def query_pending_weather(self) -> list[CatchRecord]:
        """Records still owed a weather snapshot (no location filtering)."""
        async with self._lock:
            records = await self._load()
            return [r for r in records.values() if r.pending_weather_fetch]

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def create(
        self,
        *,
        latitude: float,
        longitude: float,
        timestamp: datetime | None = None,
        pending_weather_fetch: bool = True,
        pending_location_refresh: bool = False,
    ) -> str:
        """Insert a new record and return its id."""
        now = self._clock()
        record = CatchRecord(
            id=uuid.uuid4().hex,
            timestamp=timestamp or now,
            latitude=latitude,
            longitude=longitude,
            pending_weather_fetch=pending_weather_fetch,
            pending_location_refresh=pending_location_refresh,
            created_at=now,
            updated_at=now,
        )
        async with self._lock:
            records = await self._load()
            await self._commit({**records, record.id: record})
        logger.debug("Created catch %s at (%s, %s)", record.id, latitude, longitude)
        return record.id

    async def update(
        self,
        record_id: str,
        *,
        expected_version: int | None = None,
        **fields: Any,
    ) -> CatchRecord | None:
        """Apply whole-field updates to one record.

        Returns the updated record, or None if the record no longer exists.

        Raises:
            ValueError: If a field is unknown or immutable.
            RecordConflictError: If ``expected_version`` doesn't match.
        """
        invalid = set(fields) - MUTABLE_FIELDS
        if invalid:
            msg = f"Cannot update field(s): {', '.join(sorted(invalid))}"
            raise ValueError(msg)

        async with self._lock:
            records = await self._load()
            current = records.get(record_id)
            if current is None:
                return None
            if expected_version is not None and current.version != expected_version:
                raise RecordConflictError(record_id, expected_version, current.version)

            updated = CatchRecord.model_validate(
                {
                    **current.model_dump(),
                    **fields,
                    "updated_at": self._clock(),
                    "version": current.version + 1,
                }
            )
            await self._commit({**records, record_id: updated})
            return updated

    async def delete(self, record_id: str) -> bool:
        async with self._lock:
            records = await self._load()
            if record_id not in records:
                return False
            await self._commit({k: v for k, v in records.items() if k != record_id})
            return True

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    async def _load(self) -> dict[str, CatchRecord]:
        if self._records is None:
            raw = await asyncio.to_thread(self._store.read, self._path)
            items = (raw or {}).get("catches", [])
            self._records = {r.id: r for r in (CatchRecord.model_validate(i) for i in items)}
        return self._records

    async def _commit(self, records: dict[str, CatchRecord]) -> None:
        """Persist ``records``, then make them current. A failed write changes nothing."""
        await self._save(records)
        self._records = records

    async def _save(self, records: dict[str, CatchRecord]) -> None:
        payload = {"catches": [r.model_dump(mode="json") for r in records.values()]}
        await asyncio.to_thread(self._store.write, self._path, payload, source="catchpoint")
