"""
Free-text label → canonical category normalisation.

Pure functions: no I/O, no state.  Unknown text is dropped rather
than passed through, so only taxonomy members ever reach a record.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from fiosfon.labels.taxonomy import CATEGORY_RULES, MAX_TOKEN_LENGTH, NOISE_TOKENS, PURPOSE_RULES
from fiosfon.utils.text import clean_text, normalise_name


def _first_match(token: str, rules: list[tuple[re.Pattern[str], str]]) -> str | None:
    for pattern, canonical in rules:
        if pattern.search(token):
            return canonical
    return None


def is_noise(token: str, *, developer: str | None = None) -> bool:
    """True for UI chrome and the bare developer name."""
    lowered = token.lower()
    if lowered in NOISE_TOKENS:
        return True
    return bool(developer) and lowered == normalise_name(developer)


def normalize(raw_token: str | None, *, developer: str | None = None) -> str | None:
    """Map one disclosure token onto the closed category taxonomy.

    Args:
        raw_token: Text as harvested from the page.
        developer: The app's developer name, treated as noise.

    Returns:
        The canonical category, or ``None`` when the token is empty,
        too long, UI noise, or matches no rule.
    """
    token = clean_text(raw_token)
    if not token or len(token) > MAX_TOKEN_LENGTH:
        return None
    if is_noise(token, developer=developer):
        return None
    return _first_match(token, CATEGORY_RULES)


def normalize_all(raw_tokens: Iterable[str], *, developer: str | None = None) -> list[str]:
    """Normalise many tokens, dropping rejects and duplicates (first wins)."""
    seen: set[str] = set()
    out: list[str] = []
    for raw in raw_tokens:
        category = normalize(raw, developer=developer)
        if category and category not in seen:
            seen.add(category)
            out.append(category)
    return out


def normalize_purpose(raw_token: str | None) -> str | None:
    """Map an App Store purpose heading onto the canonical purpose names."""
    token = clean_text(raw_token)
    if not token or len(token) > MAX_TOKEN_LENGTH:
        return None
    return _first_match(token, PURPOSE_RULES)
