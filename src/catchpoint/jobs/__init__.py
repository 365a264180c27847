"""
Background jobs.

Fire-and-forget work (location refreshes, weather enrichment passes, the
capture pipeline itself) is submitted to a :class:`JobRunner` per concern
rather than spawned ad hoc. Each runner:

- Records submission, start, completion and errors for every job
- Bounds concurrency (``max_workers``)
- Optionally coalesces repeated submissions while one is queued

Jobs should be idempotent (safe to re-run) and log their own progress.
"""

from catchpoint.jobs.runner import JobRecord, JobRunner

__all__ = ["JobRecord", "JobRunner"]
