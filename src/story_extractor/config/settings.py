"""Application settings loaded from environment variables.

Uses Pydantic Settings v2 for validated, type-safe configuration.
API keys and deployment paths are accessed exclusively through this module;
never call ``os.getenv`` directly elsewhere in the codebase.

Usage::

    from story_extractor.config.settings import get_settings

    settings = get_settings()
    timeout = settings.fetch_timeout
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application-wide configuration backed by environment variables and an optional .env file.

    Every field has a default so the service starts with no configuration at
    all; the AI producer, document generation and PDF screenshot links are
    switched on by supplying their API keys.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Application
    # ------------------------------------------------------------------

    app_name: str = "Story Extractor"
    """Human-readable application name shown in the OpenAPI docs."""

    debug: bool = False
    """Enable FastAPI debug mode.  Never enable in production."""

    log_level: str = "INFO"
    """Logging verbosity: DEBUG, INFO, WARNING, ERROR, or CRITICAL."""

    base_url: str = "http://localhost:8000"
    """Public base URL used when building links to rendered story pages."""

    allowed_origins: list[str] = ["*"]
    """CORS allowed origins."""

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    database_url: str = "sqlite+aiosqlite:///./data/stories.db"
    """Async SQLAlchemy DSN for the story and batch tables."""

    storage_path: str = "./stories"
    """Directory holding rendered story pages and batch dashboards."""

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    fetch_timeout: float = Field(default=30.0, gt=0)
    """Per-attempt fetch timeout in seconds."""

    max_retries: int = Field(default=3, ge=1, le=10)
    """Number of fetch attempts before a URL is reported as failed."""

    use_browser: bool = False
    """Render pages in headless Chromium before falling back to plain HTTP."""

    # ------------------------------------------------------------------
    # Batch processing
    # ------------------------------------------------------------------

    max_concurrent_workers: int = Field(default=5, ge=1)
    """Window size for batch processing: URLs fetched concurrently."""

    # ------------------------------------------------------------------
    # AI agents (Anthropic Messages API)
    # ------------------------------------------------------------------

    anthropic_api_key: str = ""
    """Anthropic API key.  When set, the agent pipeline replaces the
    heuristic extraction engine."""

    anthropic_model: str = "claude-sonnet-4-20250514"
    """Model identifier passed to the Messages API."""

    anthropic_base_url: str = "https://api.anthropic.com"
    """Base URL of the Messages API."""

    # ------------------------------------------------------------------
    # Document generation (Gamma)
    # ------------------------------------------------------------------

    gamma_api_key: str = ""
    """Gamma API key.  Document generation is disabled when empty."""

    gamma_base_url: str = "https://public-api.gamma.app/v1.0"
    """Gamma public API base URL."""

    gamma_default_theme_id: str | None = None
    """Theme applied to generated documents when the request names none."""

    # ------------------------------------------------------------------
    # URLBox screenshot links
    # ------------------------------------------------------------------

    urlbox_api_key: str = ""
    """URLBox API key.  Screenshot links are omitted when empty."""

    urlbox_screenshot_width: int = 1280
    """Viewport width of the URLBox PDF render."""

    urlbox_screenshot_height: int = 1024
    """Viewport height of the URLBox PDF render."""

    # ------------------------------------------------------------------
    # API surface
    # ------------------------------------------------------------------

    rate_limit_per_minute: int = 100
    """Requests per minute allowed per client IP on the API routes."""

    metrics_enabled: bool = True
    """Expose Prometheus metrics at ``/metrics``."""

    @property
    def ai_enabled(self) -> bool:
        """``True`` when an Anthropic API key is configured."""
        return bool(self.anthropic_api_key)

    @property
    def gamma_enabled(self) -> bool:
        """``True`` when a Gamma API key is configured."""
        return bool(self.gamma_api_key)


@lru_cache
def get_settings() -> Settings:
    """Return the cached application settings singleton.

    Uses ``functools.lru_cache`` so that Pydantic Settings reads the environment
    and .env file exactly once per process lifetime.  In tests, call
    ``get_settings.cache_clear()`` after patching environment variables.

    Returns:
        The application :class:`Settings` instance.
    """
    return Settings()
