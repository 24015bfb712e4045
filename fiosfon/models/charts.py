"""Pydantic models for chart entries, identities and the apps artifact."""

from __future__ import annotations

from typing import Any

import pydantic

from fiosfon.models.privacy import Buckets, CategoryDetail, SourceLink, coerce_buckets, dedupe_sources
from fiosfon.utils.text import normalise_name


def parse_app_id(value: object) -> str | None:
    """Return the numeric store ID as a string, or ``None`` if not numeric."""
    if value is None:
        return None
    text = str(value).strip()
    return text if text.isdigit() else None


class AppIdentity(pydantic.BaseModel):
    """Stable identity for one app.

    The numeric store ID is authoritative: two identities with the
    same ID are equal whatever their name/developer text.  Without an
    ID, the normalised ``name|developer`` pair is the identity.
    """

    model_config = pydantic.ConfigDict(frozen=True)

    app_id: str | None = None
    name: str = ""
    developer: str = ""

    @pydantic.field_validator("app_id", mode="before")
    @classmethod
    def _digits_only(cls, value: object) -> str | None:
        return parse_app_id(value)

    @property
    def name_key(self) -> str:
        return normalise_name(self.name)

    @property
    def name_developer_key(self) -> str:
        return f"{normalise_name(self.name)}|{normalise_name(self.developer)}"

    @property
    def key(self) -> str:
        """``id:<digits>`` when an ID is known, else ``nk:<name>|<developer>``."""
        if self.app_id:
            return f"id:{self.app_id}"
        return f"nk:{self.name_developer_key}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AppIdentity):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)


class ChartEntry(pydantic.BaseModel):
    """One ranked position in a chart board."""

    model_config = pydantic.ConfigDict(frozen=True)

    rank: int = pydantic.Field(ge=1)
    name: str
    developer: str = ""
    icon: str | None = None
    app_id: str | None = None
    platform: str = "iOS"
    sources: tuple[SourceLink, ...] = ()

    @pydantic.field_validator("app_id", mode="before")
    @classmethod
    def _digits_only(cls, value: object) -> str | None:
        return parse_app_id(value)

    @pydantic.field_validator("sources")
    @classmethod
    def _dedupe_sources(cls, value: tuple[SourceLink, ...]) -> tuple[SourceLink, ...]:
        return dedupe_sources(value)

    @property
    def identity(self) -> AppIdentity:
        return AppIdentity(app_id=self.app_id, name=self.name, developer=self.developer)


class EnrichedEntry(ChartEntry):
    """A chart entry with privacy fields attached (when known).

    Built fresh on every merge pass; never patched.
    """

    privacy_labels: Buckets | None = None
    privacy_details: dict[str, CategoryDetail] | None = None
    privacy_policy_url: str | None = None
    developer_website_url: str | None = None
    tracking_summary: tuple[str, ...] | None = None

    @pydantic.field_validator("privacy_labels", mode="before")
    @classmethod
    def _coerce_buckets(cls, value: object) -> Buckets | None:
        return None if value is None else coerce_buckets(value)

    @property
    def has_privacy(self) -> bool:
        return self.privacy_labels is not None

    def to_json_dict(self) -> dict[str, Any]:
        """Dump for ``apps.json``; absent privacy data leaves no keys behind."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class BoardDocument(pydantic.BaseModel):
    """One chart board as written to the artifact."""

    as_of: str = ""
    apps: list[EnrichedEntry] = pydantic.Field(default_factory=list)


class AppsDocument(pydantic.BaseModel):
    """The aggregate ``apps.json`` artifact read by the dashboard."""

    as_of: str
    boards: dict[str, BoardDocument] = pydantic.Field(default_factory=dict)
    apps: list[EnrichedEntry] = pydantic.Field(default_factory=list)

    def to_json_dict(self) -> dict[str, Any]:
        return {
            "as_of": self.as_of,
            "boards": {
                key: {"as_of": board.as_of, "apps": [app.to_json_dict() for app in board.apps]}
                for key, board in self.boards.items()
            },
            "apps": [app.to_json_dict() for app in self.apps],
        }
