"""
Server entry point: a read-only JSON API over the apps.json artifact.
Each app is decorated with its intensity score and a
``privacy_available`` flag; production builds also serve the
dashboard's static files.
"""

from __future__ import annotations

import contextlib
import pathlib
from collections.abc import AsyncGenerator
from typing import Any

import fastapi
import uvicorn
from fastapi import staticfiles
from fastapi.middleware import cors

from fiosfon.config import get_settings
from fiosfon.models.charts import AppsDocument, EnrichedEntry
from fiosfon.pipeline.update import load_previous
from fiosfon.scoring.intensity import score_entry
from fiosfon.utils import logger

log = logger.create_logger("Server")


@contextlib.asynccontextmanager
async def lifespan(_app: fastapi.FastAPI) -> AsyncGenerator[None, None]:
    """Log server start on startup."""
    settings = get_settings()
    log.section("FiosFon Server Started")
    log.info("Environment", {"env": settings.environment, "dataDir": str(settings.data_dir)})
    yield


app = fastapi.FastAPI(title="FiosFon Privacy API", lifespan=lifespan)

# ============================================================================
# Middleware
# ============================================================================

app.add_middleware(
    cors.CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET"],
    allow_headers=["*"],
)

# ============================================================================
# Helpers
# ============================================================================


def _load_document() -> AppsDocument:
    document = load_previous(get_settings().apps_path)
    if document is None:
        raise fastapi.HTTPException(status_code=503, detail="No apps data available yet")
    return document


def present(entry: EnrichedEntry) -> dict[str, Any]:
    """Artifact fields plus the derived score; never persisted."""
    intensity = score_entry(entry)
    data = entry.to_json_dict()
    data["privacy_available"] = entry.has_privacy
    data["intensity"] = {"score": intensity.score, "band": intensity.band}
    return data


# ============================================================================
# API Routes
# ============================================================================


@app.get("/api/apps")
async def list_apps() -> dict[str, Any]:
    """The whole artifact with every app scored."""
    document = _load_document()
    return {
        "as_of": document.as_of,
        "boards": {
            key: {"as_of": board.as_of, "apps": [present(app) for app in board.apps]}
            for key, board in document.boards.items()
        },
        "apps": [present(app) for app in document.apps],
    }


@app.get("/api/apps/{app_id}")
async def get_app(app_id: str) -> dict[str, Any]:
    """One app by numeric store ID."""
    document = _load_document()
    for entry in document.apps:
        if entry.app_id == app_id:
            return present(entry)
    raise fastapi.HTTPException(status_code=404, detail=f"App {app_id} not found")


# ============================================================================
# Static File Serving (Production)
# ============================================================================

_static_dir = pathlib.Path.cwd() / "public"

if get_settings().is_production and _static_dir.exists():
    log.info("Serving static files", {"path": str(_static_dir)})
    app.mount("/", staticfiles.StaticFiles(directory=str(_static_dir), html=True), name="static")


# ============================================================================
# Start Server
# ============================================================================


def main() -> None:
    """Entry point for running the server."""
    settings = get_settings()
    log.success(f"Server listening on {settings.host}:{settings.port}")
    uvicorn.run(
        "fiosfon.app:app",
        host=settings.host,
        port=settings.port,
        reload=not settings.is_production,
    )


if __name__ == "__main__":
    main()
