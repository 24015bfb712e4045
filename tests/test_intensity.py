"""Tests for the data collection intensity score.

Covers totality, the band thresholds, monotonicity in categories and
purposes, the tracked-elsewhere bonus and the upper bound.
"""

from __future__ import annotations

import pytest

from fiosfon.labels.taxonomy import PURPOSES, TAXONOMY
from fiosfon.models.charts import EnrichedEntry
from fiosfon.models.privacy import (
    BUCKET_LINKED,
    BUCKET_NAMES,
    BUCKET_NOT_LINKED,
    BUCKET_TRACKED,
    CategoryDetail,
    PrivacyRecord,
)
from fiosfon.scoring import band_for, score, score_entry, score_labels
from fiosfon.scoring.intensity import curve


# ── Bands ───────────────────────────────────────────────────────


class TestBands:
    """Tests for band_for."""

    @pytest.mark.parametrize(
        ("value", "band"),
        [(0, "Low"), (32, "Low"), (33, "Medium"), (65, "Medium"), (66, "High"), (100, "High")],
    )
    def test_thresholds(self, value: int, band: str) -> None:
        assert band_for(value) == band


# ── Score ───────────────────────────────────────────────────────


class TestScore:
    """Tests for score and score_labels."""

    def test_no_record(self) -> None:
        result = score(None)
        assert (result.score, result.band) == (0, "Low")

    def test_empty_record(self, now) -> None:
        result = score(PrivacyRecord(as_of=now))
        assert (result.score, result.band) == (0, "Low")

    def test_tracking_identifiers_and_location(self, tracking_record: PrivacyRecord) -> None:
        result = score(tracking_record)
        assert result.score == 26
        assert result.band == "Low"
        assert result.parts["linked"] == 0
        assert result.parts["notLinked"] == 0

    def test_detailed_record(self, detailed_record: PrivacyRecord) -> None:
        result = score(detailed_record)
        assert result.score == 58
        assert result.band == "Medium"

    def test_upper_bound(self) -> None:
        everything = {bucket: list(TAXONOMY) for bucket in BUCKET_NAMES}
        details = {
            category: CategoryDetail(tracked=True, linked=True, not_linked=True, purposes=PURPOSES)
            for category in TAXONOMY
        }
        result = score_labels(everything, details)
        assert result.parts == {"tracked": 70, "linked": 50, "notLinked": 20}
        assert result.score == 92
        assert result.band == "High"

    def test_unknown_categories_weigh_nothing(self) -> None:
        assert score_labels({BUCKET_TRACKED: ["Not A Category"]}).score == 0

    def test_curve_bounds(self) -> None:
        assert curve(0) == 0
        assert curve(-5) == 0
        assert 0 < curve(1) < curve(70) < curve(140) <= 100
        assert curve(1000) == curve(140)


# ── Monotonicity ────────────────────────────────────────────────


class TestMonotonicity:
    """Adding categories or purposes never lowers the score."""

    def test_adding_categories(self) -> None:
        buckets: dict[str, list[str]] = {name: [] for name in BUCKET_NAMES}
        previous = score_labels(buckets).score
        for bucket in (BUCKET_NOT_LINKED, BUCKET_LINKED, BUCKET_TRACKED):
            for category in TAXONOMY:
                buckets[bucket].append(category)
                current = score_labels(buckets).score
                assert current >= previous
                previous = current

    def test_adding_purposes(self) -> None:
        buckets = {BUCKET_LINKED: ["Location"]}
        purposes: list[str] = []
        previous = score_labels(buckets, {"Location": CategoryDetail(linked=True)}).score
        for purpose in PURPOSES:
            purposes.append(purpose)
            current = score_labels(buckets, {"Location": CategoryDetail(linked=True, purposes=purposes)}).score
            assert current >= previous
            previous = current

    def test_tracked_elsewhere_bonus(self) -> None:
        buckets = {BUCKET_LINKED: ["Identifiers"]}
        plain = score_labels(buckets, {"Identifiers": CategoryDetail(linked=True)})
        tracked = score_labels(buckets, {"Identifiers": CategoryDetail(tracked=True, linked=True)})
        assert tracked.parts["linked"] > plain.parts["linked"]

    def test_duplicate_categories_count_once(self) -> None:
        once = score_labels({BUCKET_TRACKED: ["Location"]})
        twice = score_labels({BUCKET_TRACKED: ["Location", "Location"]})
        assert once == twice


# ── Entries ─────────────────────────────────────────────────────


class TestScoreEntry:
    """Tests for score_entry."""

    def test_entry_without_privacy(self) -> None:
        entry = EnrichedEntry(rank=2, name="Beta", app_id="222")
        assert (score_entry(entry).score, score_entry(entry).band) == (0, "Low")

    def test_entry_matches_record(self, detailed_record: PrivacyRecord) -> None:
        entry = EnrichedEntry(
            rank=1,
            name="Acme",
            app_id="111",
            privacy_labels=detailed_record.buckets,
            privacy_details=detailed_record.details,
        )
        assert score_entry(entry) == score(detailed_record)
