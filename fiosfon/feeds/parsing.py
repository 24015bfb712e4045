"""
Pure parsing of iTunes RSS chart feeds (the ``/json`` variant).

The feed's JSON is loosely shaped: ``link`` may be a single object or
a list of them, and a one-entry feed returns ``entry`` as an object
rather than a list.  Every field is optional.
"""

from __future__ import annotations

import re
from typing import Any

from fiosfon.models.charts import ChartEntry
from fiosfon.models.privacy import SourceLink
from fiosfon.utils import logger

log = logger.create_logger("FeedParser")

RSS_SOURCE_LABEL = "App Store (RSS)"

_APP_ID_RE = re.compile(r"/id(\d+)(?:[/?#]|$)")


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _label(value: Any) -> str:
    if isinstance(value, dict):
        label = value.get("label")
        return label.strip() if isinstance(label, str) else ""
    return ""


def entry_link(entry: dict[str, Any]) -> str | None:
    """The store URL of an entry, from ``link`` or, failing that, ``id``."""
    link = entry.get("link")
    links = link if isinstance(link, list) else [link]
    for item in links:
        if isinstance(item, dict):
            href = _as_dict(item.get("attributes")).get("href")
            if isinstance(href, str) and href:
                return href
    return _label(entry.get("id")) or None


def entry_app_id(entry: dict[str, Any], link: str | None) -> str | None:
    """Numeric store ID from the link, else from ``id.attributes['im:id']``."""
    if link:
        match = _APP_ID_RE.search(link)
        if match:
            return match.group(1)
    attributes = _as_dict(_as_dict(entry.get("id")).get("attributes"))
    im_id = str(attributes.get("im:id", ""))
    return im_id if im_id.isdigit() else None


def entry_icon(entry: dict[str, Any]) -> str | None:
    """The largest artwork, which the feed lists last."""
    images = entry.get("im:image") or []
    if isinstance(images, dict):
        images = [images]
    if not isinstance(images, list) or not images:
        return None
    return _label(images[-1]) or None


def parse_feed_entries(payload: Any) -> list[ChartEntry]:
    """Parse a chart feed document into ranked entries.

    Ranks follow feed order starting at 1.  Entries without a name
    are skipped but still consume their rank.
    """
    feed = payload.get("feed") if isinstance(payload, dict) else None
    if not isinstance(feed, dict):
        return []
    entries = feed.get("entry") or []
    if isinstance(entries, dict):
        entries = [entries]
    if not isinstance(entries, list):
        return []

    out: list[ChartEntry] = []
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            continue
        name = _label(entry.get("im:name"))
        if not name:
            log.debug("Skipping nameless feed entry", {"rank": index + 1})
            continue
        link = entry_link(entry)
        out.append(
            ChartEntry(
                rank=index + 1,
                name=name,
                developer=_label(entry.get("im:artist")),
                icon=entry_icon(entry),
                app_id=entry_app_id(entry, link),
                sources=(SourceLink(label=RSS_SOURCE_LABEL, url=link),) if link else (),
            )
        )
    return out
