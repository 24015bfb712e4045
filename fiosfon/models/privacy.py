"""Pydantic models for normalised App Store privacy records.

Field names are Pythonic; the persisted JSON keys (aliases) match the
``privacy_cache/<id>.json`` and ``apps.json`` documents consumed by
the dashboard.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime

import pydantic

BUCKET_TRACKED = "Data Used to Track You"
BUCKET_LINKED = "Data Linked to You"
BUCKET_NOT_LINKED = "Data Not Linked to You"

BUCKET_NAMES: tuple[str, str, str] = (BUCKET_TRACKED, BUCKET_LINKED, BUCKET_NOT_LINKED)

Buckets = dict[str, tuple[str, ...]]


def sorted_unique(values: Iterable[object] | None) -> tuple[str, ...]:
    """Return the non-empty, stripped, de-duplicated values in sorted order."""
    if values is None:
        return ()
    if isinstance(values, str):
        raise ValueError("expected a list of strings, got a string")
    return tuple(sorted({str(v).strip() for v in values if str(v).strip()}))


def empty_buckets() -> Buckets:
    """All three buckets, each with no categories."""
    return {name: () for name in BUCKET_NAMES}


def coerce_buckets(value: object) -> Buckets:
    """Validate a raw bucket mapping into exactly the three fixed buckets.

    Missing buckets become empty; unknown bucket names are rejected.
    """
    if value is None:
        return empty_buckets()
    if not isinstance(value, dict):
        raise ValueError("privacy_labels must be an object")
    unknown = set(value) - set(BUCKET_NAMES)
    if unknown:
        raise ValueError(f"unknown privacy buckets: {sorted(unknown)}")
    return {name: sorted_unique(value.get(name)) for name in BUCKET_NAMES}


class SourceLink(pydantic.BaseModel):
    """A labelled link to where the data came from."""

    model_config = pydantic.ConfigDict(frozen=True)

    label: str
    url: str


def dedupe_sources(sources: Iterable[SourceLink]) -> tuple[SourceLink, ...]:
    """Keep the first source per URL, preserving order."""
    seen: set[str] = set()
    out: list[SourceLink] = []
    for source in sources:
        if source.url and source.url not in seen:
            seen.add(source.url)
            out.append(source)
    return tuple(out)


class CategoryDetail(pydantic.BaseModel):
    """Per-category breakdown: which buckets, which purposes, which subtypes."""

    model_config = pydantic.ConfigDict(frozen=True, populate_by_name=True)

    tracked: bool = False
    linked: bool = False
    not_linked: bool = pydantic.Field(default=False, alias="notLinked")
    purposes: tuple[str, ...] = ()
    subtypes: tuple[str, ...] = ()

    @pydantic.field_validator("purposes", "subtypes", mode="before")
    @classmethod
    def _sorted_unique(cls, value: object) -> tuple[str, ...]:
        return sorted_unique(value)  # type: ignore[arg-type]


class PrivacyRecord(pydantic.BaseModel):
    """A normalised privacy disclosure for one app.

    Buckets always hold exactly the three fixed disclosure groups.
    A category in the tracking bucket that has a details entry must
    be flagged ``tracked`` there; a record contradicting that is
    rejected at validation time.
    """

    model_config = pydantic.ConfigDict(frozen=True, populate_by_name=True)

    as_of: datetime
    buckets: Buckets = pydantic.Field(default_factory=empty_buckets, alias="privacy_labels")
    details: dict[str, CategoryDetail] = pydantic.Field(default_factory=dict, alias="privacy_details")
    policy_url: str | None = pydantic.Field(default=None, alias="privacy_policy_url")
    developer_site_url: str | None = pydantic.Field(default=None, alias="developer_website_url")
    sources: tuple[SourceLink, ...] = ()

    @pydantic.field_validator("as_of")
    @classmethod
    def _ensure_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    @pydantic.field_validator("buckets", mode="before")
    @classmethod
    def _coerce_buckets(cls, value: object) -> Buckets:
        return coerce_buckets(value)

    @pydantic.field_validator("sources")
    @classmethod
    def _dedupe_sources(cls, value: tuple[SourceLink, ...]) -> tuple[SourceLink, ...]:
        return dedupe_sources(value)

    @pydantic.model_validator(mode="after")
    def _flags_agree_with_buckets(self) -> PrivacyRecord:
        for category in self.buckets[BUCKET_TRACKED]:
            detail = self.details.get(category)
            if detail is not None and not detail.tracked:
                raise ValueError(f"{category!r} is in the tracking bucket but not flagged as tracked")
        return self

    @property
    def is_empty(self) -> bool:
        """True when no bucket lists any category."""
        return not any(self.buckets.values())

    def age_days(self, now: datetime) -> float:
        """Age of the record in days relative to *now*."""
        return (now - self.as_of).total_seconds() / 86400

    def to_json(self) -> str:
        """Serialise with the persisted key names."""
        return self.model_dump_json(by_alias=True, indent=2) + "\n"
