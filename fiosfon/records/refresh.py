"""
Cache-first refresh policy for privacy records.

``get_or_refresh`` never raises for extraction problems: a stale
record beats no record, and no record is an acceptable outcome that
the merge and scoring stages render as "privacy unavailable".
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Protocol

from fiosfon.models.charts import AppIdentity
from fiosfon.models.privacy import PrivacyRecord
from fiosfon.records.store import RecordStore
from fiosfon.utils import logger
from fiosfon.utils.errors import ExtractionError, FetchError, MalformedDataError

log = logger.create_logger("Refresh")


class Extractor(Protocol):
    async def extract(self, identity: AppIdentity) -> PrivacyRecord: ...


DeveloperSiteLookup = Callable[[str], Awaitable[str | None]]


class LookupEnrichingExtractor:
    """Fill a missing developer website from the Lookup API.

    Runs before the record is persisted so cached records are
    complete and later runs within the TTL make no network calls.
    """

    def __init__(self, inner: Extractor, lookup: DeveloperSiteLookup) -> None:
        self.inner = inner
        self.lookup = lookup

    async def extract(self, identity: AppIdentity) -> PrivacyRecord:
        record = await self.inner.extract(identity)
        if record.developer_site_url or not identity.app_id:
            return record
        try:
            site = await self.lookup(identity.app_id)
        except FetchError as exc:
            log.warn("Developer website lookup failed", {"appId": identity.app_id, "error": str(exc)})
            return record
        if not site:
            return record
        return record.model_copy(update={"developer_site_url": site})


def _cached(cache: RecordStore, app_id: str) -> PrivacyRecord | None:
    try:
        return cache.get(app_id)
    except MalformedDataError as exc:
        log.warn("Ignoring unreadable cached record", {"appId": app_id, "error": exc.reason})
        return None


async def get_or_refresh(
    identity: AppIdentity,
    cache: RecordStore,
    extractor: Extractor,
    *,
    now: datetime | None = None,
) -> PrivacyRecord | None:
    """Return a fresh record for *identity*, extracting only when needed.

    Args:
        identity: The app; only identities with a numeric ID are looked up.
        cache: Where records are read from and persisted to.
        extractor: Used when the cached record is missing or stale.
        now: Reference time for the TTL check (defaults to UTC now).

    Returns:
        The fresh cached record, a newly extracted one, the stale
        cached record when extraction fails, or ``None`` when there is
        nothing to return.
    """
    if not identity.app_id:
        log.debug("No numeric ID, skipping privacy lookup", {"name": identity.name})
        return None

    app_id = identity.app_id
    now = now or datetime.now(UTC)
    existing = _cached(cache, app_id)

    if existing is not None and cache.is_fresh(existing, now):
        log.debug("Cache hit", {"appId": app_id, "ageDays": round(existing.age_days(now), 1)})
        return existing

    try:
        record = await extractor.extract(identity)
    except ExtractionError as exc:
        if existing is not None:
            log.warn(
                "Extraction failed, keeping stale record",
                {"appId": app_id, "ageDays": round(existing.age_days(now), 1), "reason": exc.reason},
            )
            return existing
        log.warn("Extraction failed, no cached record", {"appId": app_id, "reason": exc.reason})
        return None

    cache.set(app_id, record)
    return record
