"""Assemble normalised :class:`PrivacyRecord` objects from page data.

Bucket membership is the source of truth for the per-category
``tracked`` / ``linked`` / ``notLinked`` flags, so a built record can
never contradict itself.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime

from fiosfon.extraction.dom import DetailDraft, PageData
from fiosfon.models.privacy import (
    BUCKET_LINKED,
    BUCKET_NAMES,
    BUCKET_NOT_LINKED,
    BUCKET_TRACKED,
    CategoryDetail,
    PrivacyRecord,
    SourceLink,
)


def merge_detail_categories(
    buckets: Mapping[str, list[str]],
    details: Mapping[str, Mapping[str, DetailDraft]],
) -> dict[str, list[str]]:
    """Add categories seen only in the details panel to their bucket."""
    merged = {label: list(buckets.get(label, [])) for label in BUCKET_NAMES}
    for label, drafts in details.items():
        if label not in merged:
            continue
        for category in drafts:
            if category not in merged[label]:
                merged[label].append(category)
    return merged


def build_details(
    buckets: Mapping[str, list[str]],
    details: Mapping[str, Mapping[str, DetailDraft]],
) -> dict[str, CategoryDetail]:
    """One :class:`CategoryDetail` per category present in any bucket."""
    categories: list[str] = []
    for label in BUCKET_NAMES:
        for category in buckets.get(label, []):
            if category not in categories:
                categories.append(category)

    out: dict[str, CategoryDetail] = {}
    for category in categories:
        purposes: set[str] = set()
        subtypes: set[str] = set()
        for drafts in details.values():
            draft = drafts.get(category)
            if draft is not None:
                purposes |= draft.purposes
                subtypes |= draft.subtypes
        out[category] = CategoryDetail(
            tracked=category in buckets.get(BUCKET_TRACKED, []),
            linked=category in buckets.get(BUCKET_LINKED, []),
            not_linked=category in buckets.get(BUCKET_NOT_LINKED, []),
            purposes=purposes,
            subtypes=subtypes,
        )
    return out


def build_record(page: PageData, *, source: SourceLink, as_of: datetime) -> PrivacyRecord:
    """Build a record from one parsed page snapshot."""
    buckets = merge_detail_categories(page.buckets, page.details)
    return PrivacyRecord(
        as_of=as_of,
        buckets=buckets,
        details=build_details(buckets, page.details),
        policy_url=page.policy_url,
        developer_site_url=page.developer_site_url,
        sources=(source,),
    )


def empty_record(*, source: SourceLink | None, as_of: datetime) -> PrivacyRecord:
    """A record with all three buckets empty."""
    return PrivacyRecord(as_of=as_of, sources=(source,) if source else ())
