"""
Text clean-up helpers shared by the normaliser, the DOM steps and
identity keys.
"""

from __future__ import annotations

import re

# NBSP and narrow NBSP become spaces; zero-width characters and the BOM vanish.
_NBSP_RE = re.compile(r"[\u00a0\u202f]")
_ZERO_WIDTH_RE = re.compile(r"[\u200b\u200c\u200d\ufeff]")
_WHITESPACE_RE = re.compile(r"\s+")


def clean_text(value: str | None) -> str:
    """Strip invisible characters and collapse whitespace.

    Args:
        value: Raw text as scraped from the page.

    Returns:
        Trimmed text with single spaces, or ``""`` for ``None``.
    """
    if not value:
        return ""
    value = _ZERO_WIDTH_RE.sub("", _NBSP_RE.sub(" ", value))
    return _WHITESPACE_RE.sub(" ", value).strip()


def normalise_name(value: str | None) -> str:
    """Lower-case and whitespace-collapse an app or developer name."""
    return clean_text(value).lower()
