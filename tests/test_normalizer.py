"""Tests for free-text label normalisation.

Covers synonym and subtype mapping, noise rejection, idempotence on
the taxonomy, and purpose heading normalisation.
"""

from __future__ import annotations

import pytest

from fiosfon.labels import normalize, normalize_all, normalize_purpose
from fiosfon.labels.taxonomy import PURPOSES, TAXONOMY


# ── Categories ──────────────────────────────────────────────────


class TestNormalize:
    """Tests for normalize."""

    def test_precise_location(self) -> None:
        assert normalize("Precise Location") == "Location"

    def test_unknown_token_dropped(self) -> None:
        assert normalize("xyz-unknown-field") is None

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("Coarse Location", "Location"),
            ("Email Address", "Contact Info"),
            ("Phone Number", "Contact Info"),
            ("Device ID", "Identifiers"),
            ("User ID", "Identifiers"),
            ("Crash Data", "Diagnostics"),
            ("Performance Data", "Diagnostics"),
            ("Product Interaction", "Usage Data"),
            ("Advertising Data", "Usage Data"),
            ("Emails or Text Messages", "Messages"),
            ("Payment Info", "Financial Info"),
            ("Search History", "Browsing/Search History"),
            ("Gameplay Content", "User Content"),
            ("Purchase History", "Purchases"),
            ("Other Data", "Other Data Types"),
        ],
    )
    def test_subtypes_map_to_category(self, raw: str, expected: str) -> None:
        assert normalize(raw) == expected

    def test_idempotent_on_taxonomy(self) -> None:
        for category in TAXONOMY:
            assert normalize(category) == category
            assert normalize(normalize(category)) == category

    def test_strips_invisible_characters(self) -> None:
        assert normalize("\u200bPrecise\u00a0 Location ") == "Location"

    def test_case_insensitive(self) -> None:
        assert normalize("PRECISE LOCATION") == "Location"

    def test_empty_and_none(self) -> None:
        assert normalize("") is None
        assert normalize("   ") is None
        assert normalize(None) is None

    def test_rejects_long_tokens(self) -> None:
        assert normalize("Location " + "x" * 60) is None


# ── Noise ───────────────────────────────────────────────────────


class TestNoise:
    """UI chrome and developer names never become categories."""

    @pytest.mark.parametrize(
        "token",
        ["See Details", "Learn More", "Privacy Policy", "Developer Website", "Data Not Collected", "Data Used to Track You"],
    )
    def test_ui_noise(self, token: str) -> None:
        assert normalize(token) is None

    def test_developer_name_rejected(self) -> None:
        assert normalize("Location Labs", developer="Location Labs") is None

    def test_developer_only_rejected_when_exact(self) -> None:
        assert normalize("Location", developer="Location Labs") == "Location"


# ── Batches ─────────────────────────────────────────────────────


class TestNormalizeAll:
    """Tests for normalize_all."""

    def test_dedupes_preserving_order(self) -> None:
        tokens = ["Precise Location", "Device ID", "Coarse Location", "See Details", "junk"]
        assert normalize_all(tokens) == ["Location", "Identifiers"]

    def test_empty(self) -> None:
        assert normalize_all([]) == []


# ── Purposes ────────────────────────────────────────────────────


class TestNormalizePurpose:
    """Tests for normalize_purpose."""

    def test_third_party_advertising(self) -> None:
        assert normalize_purpose("Third-Party Advertising") == "Advertising"

    def test_developers_advertising(self) -> None:
        assert normalize_purpose("Developer’s Advertising or Marketing") == "Developer's Advertising"

    def test_canonical_names_are_stable(self) -> None:
        for purpose in PURPOSES:
            assert normalize_purpose(purpose) == purpose

    def test_categories_are_not_purposes(self) -> None:
        assert normalize_purpose("Location") is None
        assert normalize_purpose("Advertising Data") is None
