"""
Runtime configuration for the refresh pipeline and the API server.

Uses ``pydantic_settings.BaseSettings`` for environment variable
binding, type coercion and validation.  A ``.env`` file in the
working directory is loaded first via ``python-dotenv``.
"""

from __future__ import annotations

import functools
import pathlib

import dotenv
import pydantic
import pydantic_settings

dotenv.load_dotenv()

_SAFARI_UA = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 13_5) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/16.5 Safari/605.1.15"
)


class Settings(pydantic_settings.BaseSettings):
    """Pipeline and server settings.

    Attributes:
        country: Two-letter App Store storefront.
        chart_limit: Entries requested per chart board.
        test_n: Optional cap on unique apps processed (quick runs).
        privacy_ttl_days: Age after which a cached record is stale.
        scrape_concurrency: Maximum simultaneous page extractions.
        scrape_wait_ms: Long bounded wait for page load and headings.
        heading_wait_ms: Short wait before retrying without the anchor.
        scrape_delay_min_ms: Lower bound of the post-extraction pause.
        scrape_delay_max_ms: Upper bound of the post-extraction pause.
        user_agent: UA string sent by the headless browser.
        data_dir: Root for ``apps.json`` and ``privacy_cache/``.
    """

    country: str = pydantic.Field(default="ie", validation_alias="COUNTRY")
    chart_limit: int = pydantic.Field(default=50, ge=1, le=200, validation_alias="CHART_LIMIT")
    test_n: int | None = pydantic.Field(default=None, ge=0, validation_alias="TEST_N")
    privacy_ttl_days: float = pydantic.Field(default=14, gt=0, validation_alias="PRIVACY_TTL_DAYS")
    scrape_concurrency: int = pydantic.Field(default=3, ge=1, validation_alias="SCRAPE_CONCURRENCY")
    scrape_wait_ms: int = pydantic.Field(default=45000, ge=1000, validation_alias="SCRAPE_WAIT_MS")
    heading_wait_ms: int = pydantic.Field(default=6000, ge=0, validation_alias="HEADING_WAIT_MS")
    scrape_delay_min_ms: int = pydantic.Field(default=500, ge=0, validation_alias="SCRAPE_DELAY_MIN_MS")
    scrape_delay_max_ms: int = pydantic.Field(default=900, ge=0, validation_alias="SCRAPE_DELAY_MAX_MS")
    user_agent: str = pydantic.Field(default=_SAFARI_UA, validation_alias="USER_AGENT")
    data_dir: pathlib.Path = pydantic.Field(default=pathlib.Path("data"), validation_alias="DATA_DIR")

    host: str = pydantic.Field(default="0.0.0.0", validation_alias="UVICORN_HOST")
    port: int = pydantic.Field(default=3001, validation_alias="UVICORN_PORT")
    environment: str = pydantic.Field(default="development", validation_alias="ENVIRONMENT")

    @pydantic.model_validator(mode="after")
    def _check_delay_range(self) -> Settings:
        if self.scrape_delay_max_ms < self.scrape_delay_min_ms:
            raise ValueError("SCRAPE_DELAY_MAX_MS must be >= SCRAPE_DELAY_MIN_MS")
        return self

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def apps_path(self) -> pathlib.Path:
        return self.data_dir / "apps.json"

    @property
    def cache_dir(self) -> pathlib.Path:
        return self.data_dir / "privacy_cache"


@functools.lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings (read once from the environment)."""
    return Settings()
