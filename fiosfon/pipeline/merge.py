"""
Chart/Record Merger.

Joins chart entries to privacy records by identity.  Lookup order is
numeric ID, then normalised ``name|developer``, then name alone; the
first record registered under a key wins.  The merge builds new
entries and never mutates its inputs.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from fiosfon.models.charts import AppIdentity, ChartEntry, EnrichedEntry
from fiosfon.models.privacy import BUCKET_LINKED, BUCKET_TRACKED, PrivacyRecord, dedupe_sources

TRACKING_YES = "Some data may be used to track you across apps and websites."
TRACKING_NO = "No tracking categories disclosed."
LINKED_YES = "Some data may be collected and linked to your identity."
LINKED_NO = "No linked data categories disclosed."


class RecordIndex:
    """Three-tier lookup over records keyed by identity."""

    def __init__(self, records: Mapping[AppIdentity, PrivacyRecord]) -> None:
        self.by_id: dict[str, PrivacyRecord] = {}
        self.by_name_developer: dict[str, PrivacyRecord] = {}
        self.by_name: dict[str, PrivacyRecord] = {}
        for identity, record in records.items():
            if identity.app_id:
                self.by_id.setdefault(identity.app_id, record)
            if identity.name_key:
                self.by_name_developer.setdefault(identity.name_developer_key, record)
                self.by_name.setdefault(identity.name_key, record)

    def find(self, identity: AppIdentity) -> PrivacyRecord | None:
        if identity.app_id and identity.app_id in self.by_id:
            return self.by_id[identity.app_id]
        if not identity.name_key:
            return None
        found = self.by_name_developer.get(identity.name_developer_key)
        if found is not None:
            return found
        return self.by_name.get(identity.name_key)


def tracking_summary(record: PrivacyRecord) -> tuple[str, str]:
    """Two plain-language sentences about tracking and linked data."""
    return (
        TRACKING_YES if record.buckets[BUCKET_TRACKED] else TRACKING_NO,
        LINKED_YES if record.buckets[BUCKET_LINKED] else LINKED_NO,
    )


def enrich(entry: ChartEntry, record: PrivacyRecord | None) -> EnrichedEntry:
    """Attach *record*'s privacy fields to a copy of *entry*."""
    base = {name: getattr(entry, name) for name in ChartEntry.model_fields if name != "sources"}
    if record is None:
        return EnrichedEntry(**base, sources=entry.sources)
    return EnrichedEntry(
        **base,
        sources=dedupe_sources([*entry.sources, *record.sources]),
        privacy_labels=record.buckets,
        privacy_details=record.details,
        privacy_policy_url=record.policy_url,
        developer_website_url=record.developer_site_url,
        tracking_summary=tracking_summary(record),
    )


def merge(
    chart_entries: Iterable[ChartEntry],
    records: Mapping[AppIdentity, PrivacyRecord],
) -> list[EnrichedEntry]:
    """Enrich every chart entry, preserving order and ranks.

    Entries with no matching record come back without privacy fields.
    """
    index = RecordIndex(records)
    return [enrich(entry, index.find(entry.identity)) for entry in chart_entries]


def dedupe_by_identity(entries: Iterable[ChartEntry]) -> list[ChartEntry]:
    """Keep the first entry per identity key, in input order."""
    seen: set[str] = set()
    out: list[ChartEntry] = []
    for entry in entries:
        key = entry.identity.key
        if key not in seen:
            seen.add(key)
            out.append(entry)
    return out
