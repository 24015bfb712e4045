"""
Command-line entry points.

``fiosfon-update`` refreshes ``apps.json``; ``fiosfon-scrape <id>``
extracts one app's privacy record and prints it as JSON without
touching the cache.
"""

from __future__ import annotations

import asyncio
import sys
from datetime import timedelta

from fiosfon.config import get_settings
from fiosfon.extraction.extractor import PageExtractor
from fiosfon.feeds.charts import ChartClient
from fiosfon.models.charts import AppIdentity
from fiosfon.pipeline.update import UpdatePipeline
from fiosfon.records.refresh import LookupEnrichingExtractor
from fiosfon.records.store import FileRecordStore
from fiosfon.utils import logger
from fiosfon.utils.errors import FiosFonError, get_error_message

log = logger.create_logger("Main")


async def run_update() -> None:
    settings = get_settings()
    store = FileRecordStore(settings.cache_dir, ttl=timedelta(days=settings.privacy_ttl_days))
    async with ChartClient(
        country=settings.country,
        limit=settings.chart_limit,
        user_agent=settings.user_agent,
    ) as client:
        extractor = LookupEnrichingExtractor(PageExtractor(settings), client.lookup_developer_site)
        pipeline = UpdatePipeline(settings, charts=client, store=store, extractor=extractor)
        await pipeline.run()


async def run_debug_scrape(app_id: str) -> str:
    settings = get_settings()
    record = await PageExtractor(settings).extract(AppIdentity(app_id=app_id))
    return record.to_json()


def update() -> None:
    """Refresh the charts and privacy records."""
    logger.start_log_file("update")
    try:
        asyncio.run(run_update())
    except FiosFonError as exc:
        log.error("Update failed", {"error": get_error_message(exc)})
        sys.exit(1)
    finally:
        logger.end_log_file()


def debug_scrape() -> None:
    """Extract one app and print its record."""
    if len(sys.argv) < 2 or not sys.argv[1].isdigit():
        print("usage: fiosfon-scrape <numeric app id>", file=sys.stderr)
        sys.exit(2)
    try:
        print(asyncio.run(run_debug_scrape(sys.argv[1])), end="")
    except FiosFonError as exc:
        log.error("Scrape failed", {"error": get_error_message(exc)})
        sys.exit(1)


if __name__ == "__main__":
    update()
