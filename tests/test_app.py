"""Tests for the read-only HTTP API."""

from __future__ import annotations

from collections.abc import Iterator
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from fiosfon import app as app_module
from fiosfon.config import Settings
from fiosfon.models.charts import AppIdentity, AppsDocument, BoardDocument, ChartEntry
from fiosfon.models.privacy import PrivacyRecord
from fiosfon.pipeline.merge import merge
from fiosfon.pipeline.update import render_artifact
from fiosfon.utils import files


@pytest.fixture()
def client(settings: Settings) -> Iterator[TestClient]:
    with patch.object(app_module, "get_settings", return_value=settings):
        with TestClient(app_module.app) as test_client:
            yield test_client


@pytest.fixture()
def artifact(settings: Settings, chart_entries: list[ChartEntry], tracking_record: PrivacyRecord) -> AppsDocument:
    apps = merge(chart_entries, {AppIdentity(app_id="111"): tracking_record})
    document = AppsDocument(
        as_of="2026-03-15",
        boards={"free": BoardDocument(as_of="2026-03-15", apps=apps)},
        apps=apps,
    )
    files.write_text_atomic(settings.apps_path, render_artifact(document))
    return document


class TestListApps:
    """Tests for GET /api/apps."""

    def test_no_artifact(self, client: TestClient) -> None:
        response = client.get("/api/apps")
        assert response.status_code == 503

    def test_scored_apps(self, client: TestClient, artifact: AppsDocument) -> None:
        response = client.get("/api/apps")
        assert response.status_code == 200
        body = response.json()
        assert body["as_of"] == "2026-03-15"

        acme, beta = body["apps"]
        assert acme["privacy_available"] is True
        assert acme["intensity"] == {"score": 26, "band": "Low"}
        assert beta["privacy_available"] is False
        assert beta["intensity"] == {"score": 0, "band": "Low"}
        assert "privacy_labels" not in beta

        assert body["boards"]["free"]["apps"][0]["intensity"]["score"] == 26


class TestGetApp:
    """Tests for GET /api/apps/{app_id}."""

    def test_found(self, client: TestClient, artifact: AppsDocument) -> None:
        response = client.get("/api/apps/111")
        assert response.status_code == 200
        assert response.json()["name"] == "Acme"

    def test_not_found(self, client: TestClient, artifact: AppsDocument) -> None:
        assert client.get("/api/apps/999").status_code == 404
