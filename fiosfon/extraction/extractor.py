"""
Page Extractor: loads one app's App Store detail page in a headless
browser and turns the rendered privacy section into a PrivacyRecord.

The browser work is split into named steps so each can be exercised
with a fake session:

    navigate → settle → expand_details → await_headings
             → (retry unanchored) → snapshot → read_snapshot → build_record

The session is closed on every exit path, and the whole attempt is
bounded by an overall timeout.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Literal, Protocol

from playwright import async_api

from fiosfon.config import Settings
from fiosfon.extraction import dom
from fiosfon.models import browser
from fiosfon.models.charts import AppIdentity
from fiosfon.models.privacy import BUCKET_NAMES, PrivacyRecord, SourceLink
from fiosfon.records.builder import build_record
from fiosfon.utils import logger
from fiosfon.utils.errors import ExtractionError

log = logger.create_logger("Extractor")

HEADING_LABELS = [*BUCKET_NAMES, dom.NOT_COLLECTED_HEADING]

SEE_DETAILS_PATTERN = r"see details"

# Pauses that let the privacy section hydrate after scrolling.
SETTLE_MS = 1200
RETRY_SETTLE_MS = 1500

WaitUntil = Literal["commit", "domcontentloaded", "load", "networkidle"]


def plain_url(app_id: str, country: str = "ie") -> str:
    """The canonical detail page URL, also used as the record source."""
    return f"https://apps.apple.com/{country}/app/id{app_id}"


def detail_url(app_id: str, country: str = "ie") -> str:
    """The detail page URL anchored at the privacy section."""
    return f"{plain_url(app_id, country)}#privacy"


class Session(Protocol):
    """The subset of :class:`~fiosfon.browser.session.BrowserSession` used here."""

    async def launch(self) -> None: ...

    async def navigate_to(
        self, url: str, wait_until: WaitUntil = ..., timeout: int = ...
    ) -> browser.NavigationResult: ...

    async def scroll_to_fraction(self, fraction: float) -> None: ...

    async def click_all_matching(self, pattern: str) -> int: ...

    async def wait_for_headings(self, labels: list[str], timeout: int) -> bool: ...

    async def wait_for_timeout(self, ms: int) -> None: ...

    async def get_page_content(self) -> str: ...

    async def close(self) -> None: ...


SessionFactory = Callable[[], Session]


def _default_session_factory(settings: Settings) -> SessionFactory:
    from fiosfon.browser.session import BrowserSession

    return lambda: BrowserSession(user_agent=settings.user_agent, locale=f"en-{settings.country.upper()}")


class PageExtractor:
    """Extracts privacy records from App Store detail pages.

    Args:
        settings: Wait budgets, country and user agent.
        session_factory: Builds a fresh browser session per attempt.
        clock: Returns "now"; the record's ``as_of``.
    """

    def __init__(
        self,
        settings: Settings,
        session_factory: SessionFactory | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.settings = settings
        self._session_factory = session_factory or _default_session_factory(settings)
        self._clock = clock or (lambda: datetime.now(UTC))

    @property
    def overall_timeout_s(self) -> float:
        """Upper bound for one attempt: both navigations plus both waits."""
        s = self.settings
        return (3 * s.scrape_wait_ms + s.heading_wait_ms) / 1000 + 10

    async def extract(self, identity: AppIdentity) -> PrivacyRecord:
        """Extract the privacy record for *identity*.

        Raises:
            ExtractionError: If the page cannot be loaded, no privacy
                heading appears after the retry, or the attempt runs
                past the overall timeout.
        """
        if not identity.app_id:
            raise ExtractionError(identity.name or "?", "no numeric App Store ID")
        app_id = identity.app_id

        log.start_timer(f"extract-{app_id}")
        session = self._session_factory()
        try:
            html = await asyncio.wait_for(self._load(session, app_id), timeout=self.overall_timeout_s)
        except TimeoutError as exc:
            raise ExtractionError(app_id, f"timed out after {self.overall_timeout_s:.0f}s") from exc
        except async_api.Error as exc:
            raise ExtractionError(app_id, f"browser error: {exc}") from exc
        finally:
            await session.close()
            log.end_timer(f"extract-{app_id}", "Page session finished")

        return self.parse(html, identity)

    def parse(self, html: str, identity: AppIdentity) -> PrivacyRecord:
        """Turn a rendered snapshot into a record (no browser needed)."""
        app_id = identity.app_id or ""
        url = plain_url(app_id, self.settings.country)
        try:
            page = dom.read_snapshot(html, base_url=url, developer=identity.developer or None)
        except (ValueError, TypeError, AttributeError) as exc:
            raise ExtractionError(app_id, f"unparseable snapshot: {exc}") from exc
        if not page.headings_found:
            raise ExtractionError(app_id, "privacy headings missing from snapshot")

        source = SourceLink(label=f"App Store ({self.settings.country.upper()})", url=url)
        record = build_record(page, source=source, as_of=self._clock())
        log.success(
            "Privacy extracted",
            {
                "appId": app_id,
                "notCollected": page.not_collected,
                "categories": sum(len(v) for v in record.buckets.values()),
                "hasPolicy": record.policy_url is not None,
            },
        )
        return record

    # ==========================================================================
    # Steps
    # ==========================================================================

    async def _load(self, session: Session, app_id: str) -> str:
        """Run the browser steps and return the rendered HTML."""
        s = self.settings
        await session.launch()

        await self.navigate(session, detail_url(app_id, s.country), app_id, "domcontentloaded")
        await self.settle(session, SETTLE_MS)
        await self.expand_details(session)

        if not await self.await_headings(session, s.heading_wait_ms):
            log.info("Headings not found, retrying without anchor", {"appId": app_id})
            await self.navigate(session, plain_url(app_id, s.country), app_id, "networkidle")
            await self.settle(session, RETRY_SETTLE_MS)
            await self.expand_details(session)
            if not await self.await_headings(session, s.scrape_wait_ms):
                raise ExtractionError(app_id, "no privacy headings after retry")

        return await session.get_page_content()

    async def navigate(self, session: Session, url: str, app_id: str, wait_until: WaitUntil) -> None:
        result = await session.navigate_to(url, wait_until=wait_until, timeout=self.settings.scrape_wait_ms)
        if not result.success:
            raise ExtractionError(app_id, f"navigation failed: {result.error_message or 'unknown error'}")

    async def settle(self, session: Session, pause_ms: int) -> None:
        await session.scroll_to_fraction(0.6)
        await session.wait_for_timeout(pause_ms)

    async def expand_details(self, session: Session) -> int:
        """Open every "See Details" panel; failures are not fatal."""
        try:
            clicked = await session.click_all_matching(SEE_DETAILS_PATTERN)
        except async_api.Error as exc:
            log.debug("Could not expand details", {"error": str(exc)[:80]})
            return 0
        if clicked:
            await session.wait_for_timeout(300)
        return clicked

    async def await_headings(self, session: Session, timeout_ms: int) -> bool:
        return await session.wait_for_headings(HEADING_LABELS, timeout_ms)
