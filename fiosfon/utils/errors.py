"""
Error types raised by the refresh pipeline, plus a helper for
consistent error message extraction.

Each failure class has a fixed recovery point:

- ``FetchError``: chart/lookup HTTP failures; the caller of that one
  fetch decides (a board falls back to the previous artifact).
- ``ExtractionError``: the detail page could not be scraped; the
  record builder falls back to the last cached record.
- ``MalformedDataError``: cached or persisted JSON is unreadable;
  treated as a cache miss.
"""

from __future__ import annotations


class FiosFonError(Exception):
    """Base class for all pipeline errors."""


class FetchError(FiosFonError):
    """A feed or lookup API call failed or returned a non-success status."""

    def __init__(self, url: str, message: str, status: int | None = None) -> None:
        super().__init__(f"{message} ({url})")
        self.url = url
        # ``status`` is read by the retry helper to spot 429/5xx.
        self.status = status


class ExtractionError(FiosFonError):
    """The App Store page could not be loaded or had no privacy headings."""

    def __init__(self, app_id: str, reason: str) -> None:
        super().__init__(f"Privacy extraction failed for {app_id}: {reason}")
        self.app_id = app_id
        self.reason = reason


class MalformedDataError(FiosFonError):
    """Persisted JSON content could not be parsed into the expected shape."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Malformed data in {path}: {reason}")
        self.path = path
        self.reason = reason


def get_error_message(error: BaseException | object) -> str:
    """
    Safely extract an error message from an unknown error type.
    """
    if isinstance(error, Exception):
        return str(error) or type(error).__name__
    return "Unknown error"
