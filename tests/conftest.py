"""Shared fixtures for the test suite."""

from __future__ import annotations

import json
import pathlib
from datetime import UTC, datetime
from typing import Any

import pytest

from fiosfon.config import Settings
from fiosfon.models import browser
from fiosfon.models.charts import AppIdentity, ChartEntry
from fiosfon.models.privacy import (
    BUCKET_LINKED,
    BUCKET_NOT_LINKED,
    BUCKET_TRACKED,
    CategoryDetail,
    PrivacyRecord,
    SourceLink,
)
from fiosfon.utils.errors import ExtractionError

FIXTURES = pathlib.Path(__file__).parent / "fixtures"

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=UTC)


# ── Files ───────────────────────────────────────────────────────


@pytest.fixture()
def privacy_html() -> str:
    """Rendered App Store page with summary chips and the details panel open."""
    return (FIXTURES / "app_privacy.html").read_text(encoding="utf-8")


@pytest.fixture()
def feed_payload() -> dict[str, Any]:
    """A small top-free chart feed."""
    return json.loads((FIXTURES / "top_free.json").read_text(encoding="utf-8"))


# ── Settings ────────────────────────────────────────────────────


@pytest.fixture()
def settings(tmp_path: pathlib.Path) -> Settings:
    """Settings rooted in a temp data dir, with no pacing delays."""
    return Settings(
        DATA_DIR=tmp_path / "data",
        COUNTRY="ie",
        SCRAPE_DELAY_MIN_MS=0,
        SCRAPE_DELAY_MAX_MS=0,
        HEADING_WAIT_MS=100,
        SCRAPE_WAIT_MS=1000,
        TEST_N=None,
    )


# ── Records ─────────────────────────────────────────────────────


@pytest.fixture()
def now() -> datetime:
    return NOW


@pytest.fixture()
def acme_identity() -> AppIdentity:
    return AppIdentity(app_id="111", name="Acme", developer="Acme Inc.")


@pytest.fixture()
def tracking_record() -> PrivacyRecord:
    """Tracking Identifiers and Location; nothing else."""
    return PrivacyRecord(
        as_of=NOW,
        buckets={BUCKET_TRACKED: ["Identifiers", "Location"]},
        sources=[SourceLink(label="App Store (IE)", url="https://apps.apple.com/ie/app/id111")],
    )


@pytest.fixture()
def detailed_record() -> PrivacyRecord:
    """A record with details, purposes and links."""
    return PrivacyRecord(
        as_of=NOW,
        buckets={
            BUCKET_TRACKED: ["Identifiers"],
            BUCKET_LINKED: ["Identifiers", "Contact Info"],
            BUCKET_NOT_LINKED: ["Diagnostics"],
        },
        details={
            "Identifiers": CategoryDetail(tracked=True, linked=True, purposes=["Advertising", "Analytics"]),
            "Contact Info": CategoryDetail(linked=True, purposes=["App Functionality"], subtypes=["Email Address"]),
            "Diagnostics": CategoryDetail(not_linked=True, purposes=["App Functionality"]),
        },
        policy_url="https://acme.example.com/privacy",
        developer_site_url="https://acme.example.com",
        sources=[SourceLink(label="App Store (IE)", url="https://apps.apple.com/ie/app/id111")],
    )


# ── Chart entries ───────────────────────────────────────────────


@pytest.fixture()
def chart_entries() -> list[ChartEntry]:
    """Acme (111) and Beta (222) as ranks 1 and 2."""
    return [
        ChartEntry(rank=1, name="Acme", developer="Acme Inc.", app_id="111"),
        ChartEntry(rank=2, name="Beta", developer="Beta Ltd", app_id="222"),
    ]


# ── Fakes ───────────────────────────────────────────────────────


class FakeExtractor:
    """Returns canned records per app ID; raises ExtractionError otherwise."""

    def __init__(self, records: dict[str, PrivacyRecord] | None = None) -> None:
        self.records = dict(records or {})
        self.calls: list[str] = []

    async def extract(self, identity: AppIdentity) -> PrivacyRecord:
        self.calls.append(identity.app_id or "")
        record = self.records.get(identity.app_id or "")
        if record is None:
            raise ExtractionError(identity.app_id or "?", "page unavailable")
        return record


class FakeSession:
    """Scripted stand-in for BrowserSession."""

    def __init__(
        self,
        html: str = "",
        *,
        headings: list[bool] | None = None,
        navigation_ok: bool = True,
        click_error: Exception | None = None,
    ) -> None:
        self.html = html
        self.headings = list(headings if headings is not None else [True])
        self.navigation_ok = navigation_ok
        self.click_error = click_error
        self.navigations: list[tuple[str, str]] = []
        self.heading_timeouts: list[int] = []
        self.launched = False
        self.closed = False

    async def launch(self) -> None:
        self.launched = True

    async def navigate_to(self, url: str, wait_until: str = "domcontentloaded", timeout: int = 45000):
        self.navigations.append((url, wait_until))
        if not self.navigation_ok:
            return browser.NavigationResult(success=False, status_code=404, error_message="HTTP 404")
        return browser.NavigationResult(success=True, status_code=200, final_url=url)

    async def scroll_to_fraction(self, fraction: float) -> None:
        pass

    async def click_all_matching(self, pattern: str) -> int:
        if self.click_error is not None:
            raise self.click_error
        return 1

    async def wait_for_headings(self, labels: list[str], timeout: int) -> bool:
        self.heading_timeouts.append(timeout)
        return self.headings.pop(0) if self.headings else False

    async def wait_for_timeout(self, ms: int) -> None:
        pass

    async def get_page_content(self) -> str:
        return self.html

    async def close(self) -> None:
        self.closed = True


@pytest.fixture()
def fake_extractor_cls() -> type[FakeExtractor]:
    return FakeExtractor


@pytest.fixture()
def fake_session_cls() -> type[FakeSession]:
    return FakeSession
