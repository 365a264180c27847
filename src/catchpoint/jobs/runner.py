"""Supervised fire-and-forget jobs.

A :class:`JobRunner` owns one concern's background work (location refreshes,
enrichment passes, captures). Submitting returns immediately with a
:class:`JobRecord` that tracks the job through pending -> in_progress ->
completed/failed. Concurrency is bounded by a semaphore, so a burst of
submissions queues up instead of spawning unbounded parallel work.

With ``coalesce=True`` a submission made while another job is still waiting to
start is folded into that waiting job. Combined with ``max_workers=1`` this
gives "at most one running, at most one queued", which is what repeated
triggers of an idempotent pass need.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from catchpoint.schemas import Status, utc_now

logger = logging.getLogger(__name__)

JobFactory = Callable[[], Awaitable[Any]]


@dataclass
class JobRecord:
    """Bookkeeping for one submitted job."""

    kind: str
    label: str = ""
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    status: Status = Status.PENDING
    submitted_at: datetime = field(default_factory=utc_now)
    started_at: datetime | None = None
    finished_at: datetime | None = None
    result: Any = None
    error: str | None = None

    @property
    def done(self) -> bool:
        return self.status in (Status.COMPLETED, Status.FAILED, Status.CANCELLED)


class JobRunner:
    """Bounded, supervised background job runner for one concern."""

    def __init__(
        self,
        kind: str,
        max_workers: int = 1,
        *,
        coalesce: bool = False,
        history_size: int = 100,
    ) -> None:
        if max_workers < 1:
            msg = "max_workers must be at least 1"
            raise ValueError(msg)
        self.kind = kind
        self.max_workers = max_workers
        self.coalesce = coalesce
        self._semaphore = asyncio.Semaphore(max_workers)
        self._tasks: dict[str, asyncio.Task[Any]] = {}
        self._history: deque[JobRecord] = deque(maxlen=history_size)

    @property
    def history(self) -> list[JobRecord]:
        """Recent jobs, oldest first."""
        return list(self._history)

    @property
    def active(self) -> list[JobRecord]:
        return [r for r in self._history if not r.done]

    @property
    def busy(self) -> bool:
        """Whether any submitted job has not finished yet."""
        return bool(self._tasks)

    def submit(self, factory: JobFactory, *, label: str = "") -> JobRecord:
        """Schedule ``factory()`` to run in the background.

        Must be called from inside a running event loop. Returns at once; the
        job starts at the caller's next suspension point (or later, if all
        workers are busy).
        """
        if self.coalesce:
            for queued in self._history:
                if queued.status is Status.PENDING and queued.id in self._tasks:
                    logger.debug("Coalescing %s job into queued %s", self.kind, queued.id)
                    return queued

        record = JobRecord(kind=self.kind, label=label)
        self._history.append(record)
        task = asyncio.get_running_loop().create_task(
            self._run(record, factory), name=f"{self.kind}:{record.id}"
        )
        self._tasks[record.id] = task
        task.add_done_callback(lambda _t, job_id=record.id: self._tasks.pop(job_id, None))
        return record

    async def join(self) -> None:
        """Wait until every submitted job (including ones submitted meanwhile) is done."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks.values()), return_exceptions=True)

    async def aclose(self) -> None:
        """Cancel outstanding jobs and wait for them to unwind."""
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        for record in self._history:
            if record.status is Status.PENDING:
                record.status = Status.CANCELLED

    async def _run(self, record: JobRecord, factory: JobFactory) -> None:
        try:
            async with self._semaphore:
                record.status = Status.IN_PROGRESS
                record.started_at = utc_now()
                record.result = await factory()
        except asyncio.CancelledError:
            record.status = Status.CANCELLED
            raise
        except Exception as exc:
            record.status = Status.FAILED
            record.error = f"{type(exc).__name__}: {exc}"
            logger.exception("%s job %s failed", self.kind, record.id)
        else:
            record.status = Status.COMPLETED
        finally:
            record.finished_at = utc_now()
