"""Tests for environment-driven settings."""

from __future__ import annotations

import pathlib

import pydantic
import pytest

from fiosfon.config import Settings


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in ("COUNTRY", "PRIVACY_TTL_DAYS", "SCRAPE_CONCURRENCY", "DATA_DIR", "TEST_N"):
            monkeypatch.delenv(name, raising=False)
        settings = Settings()
        assert settings.country == "ie"
        assert settings.privacy_ttl_days == 14
        assert settings.scrape_concurrency == 3
        assert settings.test_n is None
        assert settings.apps_path == pathlib.Path("data") / "apps.json"
        assert settings.cache_dir == pathlib.Path("data") / "privacy_cache"

    def test_environment_overrides(self, monkeypatch: pytest.MonkeyPatch, tmp_path: pathlib.Path) -> None:
        monkeypatch.setenv("TEST_N", "5")
        monkeypatch.setenv("DATA_DIR", str(tmp_path))
        monkeypatch.setenv("PRIVACY_TTL_DAYS", "7")
        settings = Settings()
        assert settings.test_n == 5
        assert settings.privacy_ttl_days == 7
        assert settings.cache_dir == tmp_path / "privacy_cache"

    def test_delay_range_validated(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            Settings(SCRAPE_DELAY_MIN_MS=900, SCRAPE_DELAY_MAX_MS=500)

    def test_production_flag(self) -> None:
        assert Settings(ENVIRONMENT="production").is_production
        assert not Settings(ENVIRONMENT="development").is_production
