"""Per-app privacy record cache.

Records are keyed by the numeric App Store ID.  The file-backed
store keeps one JSON document per app under
``<data_dir>/privacy_cache/<id>.json``; the in-memory store backs
tests and dry runs.  Both apply the same TTL freshness rule.

A cached file that cannot be parsed raises
:class:`~fiosfon.utils.errors.MalformedDataError`; the refresh
policy treats that as a cache miss.  The file is left in place and
overwritten by the next successful extraction.
"""

from __future__ import annotations

import abc
import pathlib
from datetime import datetime, timedelta

import pydantic

from fiosfon.models.privacy import PrivacyRecord
from fiosfon.utils import files, logger
from fiosfon.utils.errors import MalformedDataError

log = logger.create_logger("RecordStore")

DEFAULT_TTL = timedelta(days=14)


class RecordStore(abc.ABC):
    """Cache abstraction: get/set/has by app ID, with a TTL."""

    def __init__(self, ttl: timedelta = DEFAULT_TTL) -> None:
        self.ttl = ttl

    @abc.abstractmethod
    def get(self, app_id: str) -> PrivacyRecord | None:
        """Return the cached record, ``None`` on a miss."""

    @abc.abstractmethod
    def set(self, app_id: str, record: PrivacyRecord) -> None:
        """Store *record*, replacing any previous one (last write wins)."""

    @abc.abstractmethod
    def has(self, app_id: str) -> bool:
        """True when a record (readable or not) exists for *app_id*."""

    def is_fresh(self, record: PrivacyRecord, now: datetime) -> bool:
        """True while the record is younger than the TTL."""
        return now - record.as_of < self.ttl


class MemoryRecordStore(RecordStore):
    """Dict-backed store."""

    def __init__(self, ttl: timedelta = DEFAULT_TTL, records: dict[str, PrivacyRecord] | None = None) -> None:
        super().__init__(ttl)
        self._records: dict[str, PrivacyRecord] = dict(records or {})

    def get(self, app_id: str) -> PrivacyRecord | None:
        return self._records.get(app_id)

    def set(self, app_id: str, record: PrivacyRecord) -> None:
        self._records[app_id] = record

    def has(self, app_id: str) -> bool:
        return app_id in self._records


class FileRecordStore(RecordStore):
    """One JSON file per app ID."""

    def __init__(self, directory: pathlib.Path, ttl: timedelta = DEFAULT_TTL) -> None:
        super().__init__(ttl)
        self.directory = directory

    def path_for(self, app_id: str) -> pathlib.Path:
        if not app_id.isdigit():
            raise ValueError(f"App ID must be numeric, got {app_id!r}")
        return self.directory / f"{app_id}.json"

    def get(self, app_id: str) -> PrivacyRecord | None:
        path = self.path_for(app_id)
        data = files.read_json(path)
        if data is None:
            log.debug("No cached record", {"appId": app_id})
            return None
        try:
            return PrivacyRecord.model_validate(data)
        except pydantic.ValidationError as exc:
            raise MalformedDataError(str(path), f"{exc.error_count()} validation error(s)") from exc

    def set(self, app_id: str, record: PrivacyRecord) -> None:
        path = self.path_for(app_id)
        files.write_text_atomic(path, record.to_json())
        log.debug("Record cached", {"appId": app_id, "path": path.name})

    def has(self, app_id: str) -> bool:
        return self.path_for(app_id).exists()
