"""
Prefect flow for backfilling weather on pending catches.

The in-app triggers (connectivity returning, a capture while online) cover the
common case; this flow is the scheduled safety net, e.g. run hourly from cron
or a Prefect deployment.

Run locally:
    python -m catchpoint.flows.enrich
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

from prefect import flow

from catchpoint.app import build_app
from catchpoint.config import get_settings


@flow(name="enrich-weather", log_prints=True)
async def enrich_weather(data_dir: str | None = None) -> dict[str, Any]:
    """
    Run one weather enrichment pass.

    Args:
        data_dir: Store directory (defaults to ``settings.data_dir``).

    Returns:
        The enrichment report as a dict, plus the number of records still pending.
    """
    settings = get_settings()
    if data_dir is not None:
        settings = settings.model_copy(update={"data_dir": Path(data_dir)})

    app = build_app(settings)
    eligible = await app.enrichment.eligible()
    print(f"{len(eligible)} catch(es) eligible for weather enrichment")

    report = await app.enrichment.run()
    if report.skipped:
        print(f"Enrichment skipped: {report.skipped}")
    else:
        print(f"Enriched {report.processed} catch(es), {report.failed} failed")
        for err in report.errors:
            print(f"  {err.record_id}: {err.error}")

    still_pending = await app.records.query_pending_weather()
    return {**report.model_dump(), "still_pending": len(still_pending)}


if __name__ == "__main__":
    result = asyncio.run(enrich_weather())
    print(f"Flow complete: {result}")
