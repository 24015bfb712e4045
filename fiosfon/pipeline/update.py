"""
End-to-end refresh: chart boards → privacy records → apps.json.

1. Fetch the free, paid and games boards concurrently.  A board that
   fails falls back to its entries in the previous artifact.
2. Deduplicate across boards by identity; optionally cap the count.
3. Resolve each app's record through the cache-first refresh policy,
   with bounded concurrency and a randomised pause after each real
   extraction.
4. Merge boards and the combined list with the records and write the
   artifact atomically.

A rerun within the TTL on the same day makes no extraction calls and
writes a byte-identical artifact.
"""

from __future__ import annotations

import asyncio
import json
import pathlib
import random
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Protocol

import pydantic

from fiosfon.config import Settings
from fiosfon.feeds.charts import BOARDS, Board
from fiosfon.models.charts import AppIdentity, AppsDocument, BoardDocument, ChartEntry
from fiosfon.models.privacy import PrivacyRecord
from fiosfon.pipeline.merge import dedupe_by_identity, enrich, merge
from fiosfon.records.refresh import Extractor, get_or_refresh
from fiosfon.records.store import RecordStore
from fiosfon.utils import files, logger
from fiosfon.utils.errors import FetchError, MalformedDataError

log = logger.create_logger("Update")


class ChartSource(Protocol):
    async def fetch_chart(self, board: Board) -> list[ChartEntry]: ...


class PacedExtractor:
    """Sleeps a random interval after every extraction attempt."""

    def __init__(
        self,
        inner: Extractor,
        delay_ms: tuple[int, int],
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.inner = inner
        self.delay_ms = delay_ms
        self._sleep = sleep
        self.calls = 0

    async def extract(self, identity: AppIdentity) -> PrivacyRecord:
        self.calls += 1
        try:
            return await self.inner.extract(identity)
        finally:
            low, high = self.delay_ms
            if high > 0:
                await self._sleep(random.uniform(low, high) / 1000)


def load_previous(path: pathlib.Path) -> AppsDocument | None:
    """The last written artifact, or ``None`` if absent or unreadable."""
    try:
        data = files.read_json(path)
        return AppsDocument.model_validate(data) if data is not None else None
    except (MalformedDataError, pydantic.ValidationError) as exc:
        log.warn("Ignoring unreadable previous artifact", {"path": str(path), "error": str(exc)[:120]})
        return None


def render_artifact(document: AppsDocument) -> str:
    return json.dumps(document.to_json_dict(), indent=2, ensure_ascii=False) + "\n"


class UpdatePipeline:
    """One refresh run.

    Args:
        settings: Country, limits, concurrency, TTL and paths.
        charts: Source of chart boards.
        store: Record cache.
        extractor: Page extractor used on cache misses.
        clock: Returns "now" for TTL checks and the artifact date.
        sleep: Pause used between extractions.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        charts: ChartSource,
        store: RecordStore,
        extractor: Extractor,
        clock: Callable[[], datetime] | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.settings = settings
        self.charts = charts
        self.store = store
        self.extractor = PacedExtractor(
            extractor,
            (settings.scrape_delay_min_ms, settings.scrape_delay_max_ms),
            sleep=sleep,
        )
        self._clock = clock or (lambda: datetime.now(UTC))

    # ==========================================================================
    # Boards
    # ==========================================================================

    async def _fetch_board(self, board: Board, previous: AppsDocument | None, today: str) -> BoardDocument:
        try:
            entries = await self.charts.fetch_chart(board)
            return BoardDocument(as_of=today, apps=[enrich(entry, None) for entry in entries])
        except FetchError as exc:
            fallback = previous.boards.get(board.key) if previous else None
            if fallback is not None:
                log.warn(
                    "Board fetch failed, reusing previous entries",
                    {"board": board.key, "asOf": fallback.as_of, "error": str(exc)},
                )
                return fallback
            log.error("Board fetch failed, no previous entries", {"board": board.key, "error": str(exc)})
            return BoardDocument(as_of=today, apps=[])

    async def fetch_boards(self, previous: AppsDocument | None, today: str) -> dict[str, BoardDocument]:
        """Fetch all boards concurrently; each one fails independently."""
        results = await asyncio.gather(*(self._fetch_board(board, previous, today) for board in BOARDS))
        return {board.key: doc for board, doc in zip(BOARDS, results)}

    # ==========================================================================
    # Records
    # ==========================================================================

    async def resolve_records(self, entries: list[ChartEntry], now: datetime) -> dict[AppIdentity, PrivacyRecord]:
        """Cache-first record lookup for every entry, bounded concurrency."""
        semaphore = asyncio.Semaphore(self.settings.scrape_concurrency)
        total = len(entries)

        async def resolve(index: int, entry: ChartEntry) -> PrivacyRecord | None:
            async with semaphore:
                log.info(f"[{index + 1}/{total}] {entry.name}", {"appId": entry.app_id})
                return await get_or_refresh(entry.identity, self.store, self.extractor, now=now)

        results = await asyncio.gather(*(resolve(i, entry) for i, entry in enumerate(entries)))
        return {entry.identity: record for entry, record in zip(entries, results) if record is not None}

    # ==========================================================================
    # Run
    # ==========================================================================

    async def run(self) -> AppsDocument:
        """Refresh everything and write the artifact."""
        log.section("Chart refresh")
        log.start_timer("update")
        now = self._clock()
        today = now.date().isoformat()

        previous = load_previous(self.settings.apps_path)
        boards = await self.fetch_boards(previous, today)
        log.info("Fetched charts", {key: len(board.apps) for key, board in boards.items()})

        combined = dedupe_by_identity(entry for board in boards.values() for entry in board.apps)
        if self.settings.test_n:
            combined = combined[: self.settings.test_n]
        log.info("Unique apps to process", {"count": len(combined)})

        records = await self.resolve_records(combined, now)

        document = AppsDocument(
            as_of=today,
            boards={
                key: BoardDocument(as_of=board.as_of, apps=merge(board.apps, records))
                for key, board in boards.items()
            },
            apps=merge(combined, records),
        )
        files.write_text_atomic(self.settings.apps_path, render_artifact(document))

        log.end_timer("update", "Artifact written")
        log.success(
            "Update complete",
            {
                "apps": len(document.apps),
                "withPrivacy": sum(1 for app in document.apps if app.has_privacy),
                "extractions": self.extractor.calls,
                "path": str(self.settings.apps_path),
            },
        )
        return document
