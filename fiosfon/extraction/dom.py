"""
Pure DOM steps for App Store privacy extraction.

Operates on a rendered HTML snapshot parsed with BeautifulSoup, so
every step runs (and is tested) against a captured document without
a browser.  The steps, in pipeline order:

1. ``find_heading_elements``: innermost elements whose whole text is
   a bucket heading (case-insensitive).
2. ``candidate_regions`` / ``locate_bucket_regions``: the container
   for each heading occurrence; the smallest one holding more than
   ``MIN_SUB_ELEMENTS`` elements wins for the summary chips.
3. ``harvest_tokens``: short, simple leaf strings inside a region.
4. ``parse_details``: purpose → category → subtype breakdown from
   regions that mention at least one purpose (the details panel).
5. ``pick_links``: privacy policy and developer website anchors.

``read_snapshot`` runs them all and returns a :class:`PageData`.
"""

from __future__ import annotations

import dataclasses
import re
from urllib import parse

import bs4

from fiosfon.labels.normalizer import normalize, normalize_all, normalize_purpose
from fiosfon.labels.taxonomy import MAX_TOKEN_LENGTH
from fiosfon.models.privacy import BUCKET_NAMES
from fiosfon.utils import logger
from fiosfon.utils.text import clean_text

log = logger.create_logger("DOM")

# A container with more elements than this is "big enough" to hold a
# bucket's chips; smaller ones keep climbing towards the root.
MIN_SUB_ELEMENTS = 6

# Never climb further than this from the heading element.
MAX_CLIMB = 6

NOT_COLLECTED_HEADING = "Data Not Collected"

_ROOT_TAGS = frozenset({"body", "html", "[document]"})
_SKIPPED_PARENTS = frozenset({"script", "style", "noscript", "template", "title"})
_SIMPLE_TOKEN_RE = re.compile(r"^[\w\s/()&'’-]+$")
_APPLE_HOST_RE = re.compile(r"(^|\.)(apple\.com|apple\.co|mzstatic\.com|itunes\.com)$", re.I)


@dataclasses.dataclass
class DetailDraft:
    """Mutable per-category accumulator used while parsing details."""

    purposes: set[str] = dataclasses.field(default_factory=set)
    subtypes: set[str] = dataclasses.field(default_factory=set)


@dataclasses.dataclass
class PageData:
    """Everything read from one page snapshot, already normalised."""

    buckets: dict[str, list[str]]
    details: dict[str, dict[str, DetailDraft]]
    policy_url: str | None = None
    developer_site_url: str | None = None
    headings_found: bool = False
    not_collected: bool = False


# ============================================================================
# Text helpers
# ============================================================================


def parse_html(html: str) -> bs4.BeautifulSoup:
    """Parse a page snapshot with the stdlib-backed parser."""
    return bs4.BeautifulSoup(html, "html.parser")


def _text(tag: bs4.Tag) -> str:
    return clean_text(tag.get_text(" "))


def _leaf_strings(region: bs4.Tag) -> list[str]:
    """Cleaned, non-empty text nodes of *region* in document order."""
    out: list[str] = []
    for string in region.find_all(string=True):
        if type(string) is not bs4.NavigableString:
            continue
        if string.parent is not None and string.parent.name in _SKIPPED_PARENTS:
            continue
        text = clean_text(str(string))
        if text:
            out.append(text)
    return out


def _element_count(tag: bs4.Tag) -> int:
    return len(tag.find_all(True))


# ============================================================================
# Step 1: headings
# ============================================================================


def find_heading_elements(soup: bs4.BeautifulSoup, label: str) -> list[bs4.Tag]:
    """Return the innermost elements whose full text equals *label*.

    Matching ignores case and whitespace differences.  Nested wrappers
    around the same text (``<div><h3>Label</h3></div>``) yield only
    the innermost element.
    """
    wanted = label.lower()
    matches = [tag for tag in soup.find_all(True) if tag.name not in _ROOT_TAGS and _text(tag).lower() == wanted]
    matched_ids = {id(tag) for tag in matches}
    return [tag for tag in matches if not any(id(child) in matched_ids for child in tag.find_all(True))]


def headings_present(soup: bs4.BeautifulSoup) -> bool:
    """True when any bucket heading (or "Data Not Collected") is on the page."""
    return any(find_heading_elements(soup, label) for label in (*BUCKET_NAMES, NOT_COLLECTED_HEADING))


# ============================================================================
# Step 2: regions
# ============================================================================


def _contains_other_heading(tag: bs4.Tag, label: str) -> bool:
    text = _text(tag).lower()
    return any(other.lower() in text for other in BUCKET_NAMES if other != label)


def _region_for(heading: bs4.Tag, label: str) -> bs4.Tag:
    """Climb from *heading* to a container that holds its bucket's content.

    Stops once the container is big enough, or before it would swallow
    another bucket's heading, or at the document body.
    """
    node = heading
    for _ in range(MAX_CLIMB):
        if _element_count(node) > MIN_SUB_ELEMENTS:
            break
        parent = node.parent
        if parent is None or parent.name in _ROOT_TAGS:
            break
        if _contains_other_heading(parent, label):
            break
        node = parent
    return node


def candidate_regions(soup: bs4.BeautifulSoup, label: str) -> list[bs4.Tag]:
    """One container per occurrence of the *label* heading."""
    return [_region_for(heading, label) for heading in find_heading_elements(soup, label)]


def select_region(candidates: list[bs4.Tag]) -> bs4.Tag | None:
    """Prefer the smallest candidate above the size floor.

    When none clears the floor, the largest of the small ones is used.
    """
    if not candidates:
        return None
    sized = [(_element_count(tag), index, tag) for index, tag in enumerate(candidates)]
    big_enough = [item for item in sized if item[0] > MIN_SUB_ELEMENTS]
    if big_enough:
        return min(big_enough, key=lambda item: (item[0], item[1]))[2]
    return max(sized, key=lambda item: (item[0], -item[1]))[2]


def locate_bucket_regions(soup: bs4.BeautifulSoup) -> dict[str, bs4.Tag | None]:
    """Map each bucket name to its chosen region (``None`` when absent)."""
    return {label: select_region(candidate_regions(soup, label)) for label in BUCKET_NAMES}


# ============================================================================
# Step 3: tokens
# ============================================================================


def harvest_tokens(region: bs4.Tag | None, heading: str = "") -> list[str]:
    """Collect short, label-like leaf strings from *region*.

    Sentences, URLs and punctuation-heavy text are excluded; the
    heading itself is skipped.  Duplicates (case-insensitive) are
    dropped, first occurrence wins.
    """
    if region is None:
        return []
    skip = heading.lower()
    seen: set[str] = set()
    tokens: list[str] = []
    for text in _leaf_strings(region):
        if len(text) > MAX_TOKEN_LENGTH or not _SIMPLE_TOKEN_RE.match(text):
            continue
        key = text.lower()
        if key == skip or key in seen:
            continue
        seen.add(key)
        tokens.append(text)
    return tokens


# ============================================================================
# Step 4: details
# ============================================================================


def _parse_detail_region(region: bs4.Tag, developer: str | None) -> dict[str, DetailDraft]:
    """Walk a details region: purpose headings scope the categories below them."""
    drafts: dict[str, DetailDraft] = {}
    purpose: str | None = None
    for text in _leaf_strings(region):
        canonical_purpose = normalize_purpose(text)
        if canonical_purpose:
            purpose = canonical_purpose
            continue
        category = normalize(text, developer=developer)
        if category is None:
            continue
        draft = drafts.setdefault(category, DetailDraft())
        if purpose:
            draft.purposes.add(purpose)
        if text.lower() != category.lower():
            draft.subtypes.add(text)
    return drafts


def _mentions_purpose(region: bs4.Tag) -> bool:
    return any(normalize_purpose(text) for text in _leaf_strings(region))


def parse_details(soup: bs4.BeautifulSoup, developer: str | None = None) -> dict[str, dict[str, DetailDraft]]:
    """Parse the per-category breakdown where the details panel is present.

    Returns:
        ``{bucket: {category: DetailDraft}}``; buckets without a
        details section are omitted.
    """
    result: dict[str, dict[str, DetailDraft]] = {}
    for label in BUCKET_NAMES:
        merged: dict[str, DetailDraft] = {}
        regions = candidate_regions(soup, label)
        for region in regions:
            if not _mentions_purpose(region):
                continue
            for category, draft in _parse_detail_region(region, developer).items():
                target = merged.setdefault(category, DetailDraft())
                target.purposes |= draft.purposes
                target.subtypes |= draft.subtypes
        if len(regions) > 1 and not any(draft.purposes for draft in merged.values()):
            # Later occurrences are the details panel.
            log.debug("Details panel yielded no purposes", {"bucket": label, "regions": len(regions)})
        if merged:
            result[label] = merged
    return result


# ============================================================================
# Step 5: links
# ============================================================================


def _is_external(url: str) -> bool:
    parsed = parse.urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        return False
    return not _APPLE_HOST_RE.search(parsed.hostname)


def _external_anchors(soup: bs4.BeautifulSoup, base_url: str) -> list[tuple[str, str]]:
    """Absolute non-Apple ``(href, lower text)`` pairs; unparseable hrefs are skipped."""
    anchors: list[tuple[str, str]] = []
    for a in soup.find_all("a", href=True):
        try:
            href = parse.urljoin(base_url, a["href"])
            if not _is_external(href):
                continue
        except ValueError as exc:
            log.debug("Skipping malformed link", {"href": str(a["href"])[:80], "error": str(exc)})
            continue
        anchors.append((href, _text(a).lower()))
    return anchors


def pick_links(soup: bs4.BeautifulSoup, base_url: str) -> tuple[str | None, str | None]:
    """Find the developer's privacy policy and website links.

    Best effort: anchor text is the primary signal; a non-Apple link
    whose URL mentions "privacy" is the policy fallback.

    Returns:
        ``(policy_url, developer_site_url)``, either may be ``None``.
    """
    external = _external_anchors(soup, base_url)

    policy = next((href for href, text in external if "privacy policy" in text), None)
    if policy is None:
        policy = next((href for href, _ in external if "privacy" in href.lower()), None)

    developer_site = next((href for href, text in external if "developer website" in text), None)
    return policy, developer_site


# ============================================================================
# All steps
# ============================================================================


def read_snapshot(html: str, *, base_url: str, developer: str | None = None) -> PageData:
    """Run every DOM step over one rendered page snapshot."""
    soup = parse_html(html)
    found = headings_present(soup)
    regions = locate_bucket_regions(soup)

    buckets = {
        label: normalize_all(harvest_tokens(region, label), developer=developer)
        for label, region in regions.items()
    }
    details = parse_details(soup, developer)
    policy_url, developer_site_url = pick_links(soup, base_url)

    log.debug(
        "Snapshot parsed",
        {
            "headingsFound": found,
            "tracked": len(buckets[BUCKET_NAMES[0]]),
            "linked": len(buckets[BUCKET_NAMES[1]]),
            "notLinked": len(buckets[BUCKET_NAMES[2]]),
            "detailBuckets": len(details),
        },
    )

    return PageData(
        buckets=buckets,
        details=details,
        policy_url=policy_url,
        developer_site_url=developer_site_url,
        headings_found=found,
        not_collected=bool(find_heading_elements(soup, NOT_COLLECTED_HEADING)),
    )
