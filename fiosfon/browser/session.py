"""
Headless browser session for App Store detail pages.
Each BrowserSession owns one Playwright Chromium instance, so
concurrent extractions never share page state.
"""

from __future__ import annotations

import asyncio
import re
from typing import Literal

from playwright import async_api

from fiosfon.models import browser
from fiosfon.utils import logger

log = logger.create_logger("BrowserSession")

# Heavy assets are irrelevant to the privacy text; CSS stays for layout.
BLOCKED_RESOURCE_TYPES = frozenset({"image", "font", "media"})

_LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--lang=en-IE,en",
]

# Evaluated in the page: true once any of the given headings is rendered.
_HEADINGS_PRESENT_JS = """(labels) => {
    const wanted = labels.map((l) => l.toLowerCase());
    const txt = (el) => (el.textContent || "").replace(/\\s+/g, " ").trim().toLowerCase();
    return Array.from(document.querySelectorAll("h1,h2,h3,h4,div,span,p,strong"))
        .some((el) => wanted.includes(txt(el)));
}"""


class BrowserSession:
    """
    Manages an isolated browser for a single app's extraction.
    """

    def __init__(self, user_agent: str, locale: str = "en-IE") -> None:
        """Initialise a new, not yet launched, browser session."""
        self._user_agent = user_agent
        self._locale = locale
        self._playwright: async_api.Playwright | None = None
        self._browser: async_api.Browser | None = None
        self._context: async_api.BrowserContext | None = None
        self._page: async_api.Page | None = None

    # ==========================================================================
    # Browser Lifecycle
    # ==========================================================================

    async def launch(self) -> None:
        """Launch headless Chromium with a Safari UA and asset blocking."""
        if self._page is not None:
            return

        log.debug("Launching browser", {"locale": self._locale})
        self._playwright = await async_api.async_playwright().start()
        self._browser = await self._playwright.chromium.launch(headless=True, args=_LAUNCH_ARGS)
        self._context = await self._browser.new_context(
            user_agent=self._user_agent,
            locale=self._locale,
            viewport={"width": 1280, "height": 1000},
            device_scale_factor=1,
            extra_http_headers={"accept-language": f"{self._locale},en;q=0.9"},
        )
        await self._context.route("**/*", self._on_route)
        self._page = await self._context.new_page()

    async def _on_route(self, route: async_api.Route) -> None:
        """Abort requests for blocked resource types."""
        if route.request.resource_type in BLOCKED_RESOURCE_TYPES:
            await route.abort()
        else:
            await route.continue_()

    def _require_page(self) -> async_api.Page:
        if self._page is None:
            raise RuntimeError("No browser session active")
        return self._page

    # ==========================================================================
    # Navigation
    # ==========================================================================

    async def navigate_to(
        self,
        url: str,
        wait_until: Literal["commit", "domcontentloaded", "load", "networkidle"] = "domcontentloaded",
        timeout: int = 45000,
    ) -> browser.NavigationResult:
        """Navigate the page to *url* and report whether it loaded."""
        page = self._require_page()
        log.debug("Navigating", {"url": url, "waitUntil": wait_until, "timeout": timeout})
        try:
            response = await page.goto(url, wait_until=wait_until, timeout=timeout)
        except async_api.Error as error:
            log.warn("Navigation error", {"url": url, "error": str(error)})
            return browser.NavigationResult(success=False, error_message=str(error))

        status_code = response.status if response else None
        if status_code is not None and status_code >= 400:
            return browser.NavigationResult(
                success=False,
                status_code=status_code,
                final_url=page.url,
                error_message=f"HTTP {status_code}",
            )
        return browser.NavigationResult(success=True, status_code=status_code, final_url=page.url)

    # ==========================================================================
    # Page Interaction Helpers
    # ==========================================================================

    async def scroll_to_fraction(self, fraction: float) -> None:
        """Scroll to *fraction* of the document height to trigger lazy loads."""
        page = self._require_page()
        await page.evaluate("(f) => window.scrollTo(0, document.body.scrollHeight * f)", fraction)

    async def click_all_matching(self, pattern: str) -> int:
        """Click every visible button/link whose text matches *pattern*.

        Returns the number of elements clicked.  Click failures on
        individual elements (detached, covered) are skipped.
        """
        page = self._require_page()
        locator = page.locator("button, a").filter(has_text=re.compile(pattern, re.I))
        clicked = 0
        for index in range(await locator.count()):
            try:
                await locator.nth(index).click(timeout=2000)
                clicked += 1
            except async_api.Error as error:
                log.debug("Click skipped", {"pattern": pattern, "index": index, "error": str(error)[:80]})
        return clicked

    async def wait_for_headings(self, labels: list[str], timeout: int) -> bool:
        """Wait until any of *labels* appears as an element's full text."""
        page = self._require_page()
        try:
            await page.wait_for_function(_HEADINGS_PRESENT_JS, arg=labels, timeout=timeout)
            return True
        except async_api.Error:
            log.debug("Headings not found in time", {"timeoutMs": timeout})
            return False

    async def wait_for_timeout(self, ms: int) -> None:
        """Sleep for *ms* milliseconds to let dynamic content settle."""
        await asyncio.sleep(ms / 1000)

    async def get_page_content(self) -> str:
        """Get the full rendered HTML of the current page."""
        return await self._require_page().content()

    # ==========================================================================
    # Cleanup
    # ==========================================================================

    async def close(self) -> None:
        """Close the browser and clean up all resources."""
        self._page = None

        if self._context:
            try:
                await self._context.close()
            except async_api.Error as exc:
                log.debug("Context close error (non-fatal)", {"error": str(exc)})
            self._context = None

        if self._browser:
            try:
                await self._browser.close()
            except async_api.Error as exc:
                log.debug("Browser close error (non-fatal)", {"error": str(exc)})
            self._browser = None

        if self._playwright:
            try:
                await self._playwright.stop()
            except async_api.Error as exc:
                log.debug("Playwright stop error (non-fatal)", {"error": str(exc)})
            self._playwright = None
