"""Tests for the end-to-end update pipeline.

Charts and extraction are faked; the record cache and the artifact
are real files under a temp data dir.
"""

from __future__ import annotations

import asyncio
import json
from datetime import datetime, timedelta

import pytest

from fiosfon.config import Settings
from fiosfon.feeds.charts import Board
from fiosfon.models.charts import AppIdentity, ChartEntry
from fiosfon.models.privacy import PrivacyRecord
from fiosfon.pipeline.update import UpdatePipeline, load_previous
from fiosfon.records.store import FileRecordStore
from fiosfon.utils.errors import FetchError

ACME = ChartEntry(rank=1, name="Acme", developer="Acme Inc.", app_id="111")
BETA = ChartEntry(rank=2, name="Beta", developer="Beta Ltd", app_id="222")
GAMMA = ChartEntry(rank=1, name="Gamma", developer="Gamma", app_id="333")


class FakeCharts:
    """Serves fixed boards; a board mapped to an exception raises it."""

    def __init__(self, boards: dict[str, list[ChartEntry] | Exception]) -> None:
        self.boards = boards

    async def fetch_chart(self, board: Board) -> list[ChartEntry]:
        result = self.boards.get(board.key, [])
        if isinstance(result, Exception):
            raise result
        return list(result)


DEFAULT_BOARDS = {"free": [ACME, BETA], "paid": [GAMMA], "games": [ACME]}


@pytest.fixture()
def records(tracking_record: PrivacyRecord, detailed_record: PrivacyRecord, now: datetime) -> dict[str, PrivacyRecord]:
    return {
        "111": tracking_record,
        "222": PrivacyRecord(as_of=now),
        "333": detailed_record,
    }


def _pipeline(settings: Settings, extractor, now: datetime, boards=None, sleep=None) -> UpdatePipeline:
    kwargs = {"sleep": sleep} if sleep else {}
    return UpdatePipeline(
        settings,
        charts=FakeCharts(boards or DEFAULT_BOARDS),
        store=FileRecordStore(settings.cache_dir, ttl=timedelta(days=settings.privacy_ttl_days)),
        extractor=extractor,
        clock=lambda: now + timedelta(hours=1),
        **kwargs,
    )


class TestUpdatePipeline:
    """Tests for UpdatePipeline.run."""

    def test_artifact_shape(self, settings, records, fake_extractor_cls, now) -> None:
        document = asyncio.run(_pipeline(settings, fake_extractor_cls(records), now).run())

        assert document.as_of == "2026-03-15"
        assert set(document.boards) == {"free", "paid", "games"}
        assert [app.app_id for app in document.apps] == ["111", "222", "333"]
        assert [app.rank for app in document.boards["free"].apps] == [1, 2]

        written = json.loads(settings.apps_path.read_text(encoding="utf-8"))
        assert written["boards"]["games"]["apps"][0]["privacy_labels"]["Data Used to Track You"] == [
            "Identifiers",
            "Location",
        ]
        assert (settings.cache_dir / "333.json").exists()

    def test_rerun_within_ttl_is_identical(self, settings, records, fake_extractor_cls, now) -> None:
        first = fake_extractor_cls(records)
        asyncio.run(_pipeline(settings, first, now).run())
        before = settings.apps_path.read_bytes()

        second = fake_extractor_cls(records)
        asyncio.run(_pipeline(settings, second, now).run())

        assert sorted(first.calls) == ["111", "222", "333"]
        assert second.calls == []
        assert settings.apps_path.read_bytes() == before

    def test_failed_extraction_leaves_entry_bare(self, settings, tracking_record, fake_extractor_cls, now) -> None:
        document = asyncio.run(_pipeline(settings, fake_extractor_cls({"111": tracking_record}), now).run())
        by_id = {app.app_id: app for app in document.apps}
        assert by_id["111"].has_privacy
        assert not by_id["222"].has_privacy
        assert not by_id["333"].has_privacy

    def test_failed_board_reuses_previous(self, settings, records, fake_extractor_cls, now) -> None:
        asyncio.run(_pipeline(settings, fake_extractor_cls(records), now).run())

        boards = {**DEFAULT_BOARDS, "paid": FetchError("https://itunes.apple.com/x", "HTTP 503", status=503)}
        document = asyncio.run(_pipeline(settings, fake_extractor_cls(records), now, boards=boards).run())
        assert [app.name for app in document.boards["paid"].apps] == ["Gamma"]
        assert document.boards["paid"].apps[0].has_privacy

    def test_failed_board_without_previous(self, settings, records, fake_extractor_cls, now) -> None:
        boards = {**DEFAULT_BOARDS, "paid": FetchError("https://itunes.apple.com/x", "HTTP 500", status=500)}
        document = asyncio.run(_pipeline(settings, fake_extractor_cls(records), now, boards=boards).run())
        assert document.boards["paid"].apps == []
        assert [app.app_id for app in document.apps] == ["111", "222"]

    def test_test_n_caps_processing(self, settings, records, fake_extractor_cls, now) -> None:
        capped = settings.model_copy(update={"test_n": 1})
        extractor = fake_extractor_cls(records)
        document = asyncio.run(_pipeline(capped, extractor, now).run())
        assert extractor.calls == ["111"]
        assert len(document.apps) == 1

    def test_concurrency_is_bounded(self, settings, records, now) -> None:
        state = {"active": 0, "peak": 0}

        class SlowExtractor:
            async def extract(self, identity: AppIdentity) -> PrivacyRecord:
                state["active"] += 1
                state["peak"] = max(state["peak"], state["active"])
                await asyncio.sleep(0.01)
                state["active"] -= 1
                return records[identity.app_id]

        many = [ChartEntry(rank=i + 1, name=f"App {i}", app_id=str(1000 + i)) for i in range(8)]
        records.update({str(1000 + i): records["111"] for i in range(8)})
        limited = settings.model_copy(update={"scrape_concurrency": 2})
        asyncio.run(_pipeline(limited, SlowExtractor(), now, boards={"free": many}).run())
        assert state["peak"] == 2

    def test_pauses_after_each_extraction(self, settings, records, fake_extractor_cls, now) -> None:
        pauses: list[float] = []

        async def record_sleep(seconds: float) -> None:
            pauses.append(seconds)

        paced = settings.model_copy(update={"scrape_delay_min_ms": 500, "scrape_delay_max_ms": 900})
        asyncio.run(_pipeline(paced, fake_extractor_cls(records), now, sleep=record_sleep).run())
        assert len(pauses) == 3
        assert all(0.5 <= p <= 0.9 for p in pauses)


class TestLoadPrevious:
    """Tests for load_previous."""

    def test_missing(self, settings) -> None:
        assert load_previous(settings.apps_path) is None

    def test_unreadable(self, settings) -> None:
        settings.apps_path.parent.mkdir(parents=True)
        settings.apps_path.write_text("[1, 2", encoding="utf-8")
        assert load_previous(settings.apps_path) is None
