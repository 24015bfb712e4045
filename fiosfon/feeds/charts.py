"""
HTTP client for the iTunes chart feeds and the Lookup API.

One ``aiohttp.ClientSession`` is shared per client so connections are
reused across boards and lookups.  Transient failures (429, 5xx,
connection errors) are retried via ``with_retry``; anything else
surfaces as :class:`~fiosfon.utils.errors.FetchError`.
"""

from __future__ import annotations

import asyncio
import dataclasses
from typing import Any

import aiohttp

from fiosfon.feeds.parsing import parse_feed_entries
from fiosfon.models.charts import ChartEntry
from fiosfon.utils import logger
from fiosfon.utils.errors import FetchError
from fiosfon.utils.retry import with_retry

log = logger.create_logger("Charts")

ITUNES_BASE_URL = "https://itunes.apple.com"

GENRE_GAMES = 6014

_FETCH_TIMEOUT = aiohttp.ClientTimeout(total=20)


@dataclasses.dataclass(frozen=True)
class Board:
    """One chart list: a feed kind, optionally narrowed to a genre."""

    key: str
    kind: str
    genre: int | None = None


BOARDS: tuple[Board, ...] = (
    Board("free", "topfreeapplications"),
    Board("paid", "toppaidapplications"),
    Board("games", "topfreeapplications", GENRE_GAMES),
)


def chart_url(board: Board, *, country: str, limit: int, base_url: str = ITUNES_BASE_URL) -> str:
    genre = f"/genre={board.genre}" if board.genre else ""
    return f"{base_url}/{country}/rss/{board.kind}/limit={limit}{genre}/json"


def lookup_url(app_id: str, *, country: str, base_url: str = ITUNES_BASE_URL) -> str:
    return f"{base_url}/lookup?id={app_id}&country={country}"


class ChartClient:
    """Fetches chart boards and Lookup API records.

    Use as an async context manager, or pass an existing session.
    """

    def __init__(
        self,
        *,
        country: str = "ie",
        limit: int = 50,
        user_agent: str | None = None,
        session: aiohttp.ClientSession | None = None,
        max_retries: int = 3,
        retry_delay_ms: int = 1000,
        base_url: str = ITUNES_BASE_URL,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.country = country
        self.limit = limit
        self.max_retries = max_retries
        self.retry_delay_ms = retry_delay_ms
        self._headers = {"User-Agent": user_agent} if user_agent else {}
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> ChartClient:
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=_FETCH_TIMEOUT, headers=self._headers)
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    async def _get_json_once(self, url: str) -> Any:
        if self._session is None:
            raise RuntimeError("ChartClient used outside its context")
        try:
            async with self._session.get(url) as response:
                if response.status >= 400:
                    raise FetchError(url, f"HTTP {response.status}", status=response.status)
                # The feed is served as text/javascript.
                return await response.json(content_type=None)
        except aiohttp.ContentTypeError as exc:
            raise FetchError(url, "response was not JSON") from exc
        except (aiohttp.ClientConnectionError, asyncio.TimeoutError) as exc:
            raise FetchError(url, f"connection failed: {exc.__class__.__name__}") from exc
        except ValueError as exc:
            raise FetchError(url, "response was not JSON") from exc

    async def get_json(self, url: str, context: str) -> Any:
        return await with_retry(
            lambda: self._get_json_once(url),
            max_retries=self.max_retries,
            initial_delay_ms=self.retry_delay_ms,
            context=context,
        )

    async def fetch_chart(self, board: Board) -> list[ChartEntry]:
        """Fetch and parse one board.

        Raises:
            FetchError: After retries are exhausted, on a non-retryable
                failure, or when the document has no ``feed`` object.
        """
        url = chart_url(board, country=self.country, limit=self.limit, base_url=self.base_url)
        log.start_timer(f"chart-{board.key}")
        payload = await self.get_json(url, context=f"chart:{board.key}")
        if not isinstance(payload, dict) or not isinstance(payload.get("feed"), dict):
            raise FetchError(url, "malformed feed")
        entries = parse_feed_entries(payload)
        log.end_timer(f"chart-{board.key}", f"Fetched {board.key} chart ({len(entries)} apps)")
        return entries

    async def lookup_developer_site(self, app_id: str) -> str | None:
        """``sellerUrl`` from the Lookup API, or ``None`` when absent."""
        url = lookup_url(app_id, country=self.country, base_url=self.base_url)
        payload = await self.get_json(url, context=f"lookup:{app_id}")
        results = payload.get("results") if isinstance(payload, dict) else None
        if not isinstance(results, list) or not results or not isinstance(results[0], dict):
            return None
        seller_url = results[0].get("sellerUrl")
        return seller_url if isinstance(seller_url, str) and seller_url else None
