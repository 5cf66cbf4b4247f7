"""VMetrics — Central Configuration via Pydantic Settings."""

import os
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # ── RedTrack API ──
    redtrack_api_key: Optional[str] = None
    redtrack_base_url: str = "https://api.redtrack.io"
    request_timeout: float = 30.0
    max_retries: int = 3
    retry_base_delay: float = 2.0  # seconds, doubled per attempt

    # ── Database ──
    database_url: str = ""

    # ── App ──
    log_level: str = "INFO"
    scheduler_enabled: bool = True
    refresh_interval_minutes: int = 5

    # ── Display ──
    display_currency: str = "USD"  # Fallback; overridden by /me/settings
    display_locale: str = "pt_BR"
    default_period: str = "today"

    # ── Persisted preferences ──
    columns_storage_key: str = "columns-storage"
    metrics_storage_key: str = "metrics-storage"
    api_key_storage_key: str = "redtrack-api-key"

    @property
    def effective_database_url(self) -> str:
        """Return PostgreSQL URL if set, otherwise fall back to SQLite."""
        if self.database_url:
            return self.database_url
        # Vercel has a read-only filesystem; use /tmp for SQLite
        if os.environ.get("VERCEL"):
            return "sqlite:////tmp/vmetrics.db"
        return "sqlite:///./vmetrics.db"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
