"""Post-capture location upgrade.

Records created from a cached or sentinel fix carry
``pending_location_refresh``. The refresher asks for one fresh fix with a
deadline and then clears the flag whatever happened: the flag means "a
refresh attempt is owed", not "a refresh must eventually succeed".

It only touches ``latitude``/``longitude``/``pending_location_refresh``; weather
fields belong to the enrichment queue.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from catchpoint.errors import RecordConflictError
from catchpoint.jobs import JobRecord, JobRunner
from catchpoint.location.provider import FRESH_FIX_TIMEOUT

if TYPE_CHECKING:
    from catchpoint.location import LocationProvider
    from catchpoint.records import CatchRecordStore

logger = logging.getLogger(__name__)

MAX_WRITE_ATTEMPTS = 3


class BackgroundLocationRefresher:
    """Replaces provisional coordinates with a fresh fix, best-effort."""

    def __init__(
        self,
        location: LocationProvider,
        records: CatchRecordStore,
        *,
        jobs: JobRunner | None = None,
        timeout: float = FRESH_FIX_TIMEOUT,
    ) -> None:
        self._location = location
        self._records = records
        self.jobs = jobs or JobRunner("location-refresh", max_workers=4)
        self.timeout = timeout

    def dispatch(self, record_id: str) -> JobRecord:
        """Run :meth:`refresh` in the background."""
        return self.jobs.submit(lambda: self.refresh(record_id), label=record_id)

    async def refresh(self, record_id: str) -> bool:
        """Try once to upgrade a record's coordinates.

        Returns True if the coordinates were replaced. Deleted records and
        records with no refresh owed are left alone.
        """
        record = await self._records.get(record_id)
        if record is None or not record.pending_location_refresh:
            logger.debug("Catch %s needs no location refresh", record_id)
            return False

        fix = await self._location.request_fresh(timeout=self.timeout)
        fields: dict[str, Any] = {"pending_location_refresh": False}
        if fix is not None:
            fields.update(latitude=fix.latitude, longitude=fix.longitude)
            logger.info(
                "Refreshed catch %s location to (%.5f, %.5f)", record_id, fix.latitude, fix.longitude
            )
        else:
            logger.info("Location refresh for catch %s failed, keeping coordinates", record_id)

        try:
            written = await self._write(record_id, fields)
        except RecordConflictError:
            # Only the refresher writes this flag, so clearing it needs no version check
            logger.warning(
                "Catch %s kept changing, clearing its refresh flag without the new fix", record_id
            )
            await self._records.update(record_id, pending_location_refresh=False)
            return False
        return written and fix is not None

    async def _write(self, record_id: str, fields: dict[str, Any]) -> bool:
        """Versioned write of ``fields`` while the refresh is still owed.

        Raises:
            RecordConflictError: The record kept changing across every attempt.
        """
        attempt = 0
        while True:
            attempt += 1
            current = await self._records.get(record_id)
            if current is None:
                logger.debug("Catch %s was deleted before its location refresh landed", record_id)
                return False
            if not current.pending_location_refresh:
                return False
            try:
                await self._records.update(
                    record_id, expected_version=current.version, **fields
                )
            except RecordConflictError:
                if attempt >= MAX_WRITE_ATTEMPTS:
                    raise
                continue
            return True
