# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application configuration settings using Pydantic Settings.

Settings are loaded from environment variables (and an optional .env
file) with sensible defaults. The Settings class aggregates all
subsettings; a cached instance is provided via get_settings().

Example:
    >>> from src.core.config.settings import get_settings
    >>> settings = get_settings()
    >>> settings.adaptive.branch_timeout_seconds
    2.0
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AdaptiveSettings(BaseSettings):
    """Adaptive feedback engine configuration.

    Attributes:
        branch_timeout_seconds: Per-branch timeout for the concurrent
            store reads behind comprehensive feedback.
        trend_window_days: Default trailing window for trend analysis.
        event_query_limit: Maximum interaction events read per request.
        history_days: Lookback window for concept mastery queries.
        max_save_retries: Attempts before a progress write gives up on
            version conflicts.
        rules_file: Optional YAML file overriding the difficulty band.
    """

    model_config = SettingsConfigDict(
        env_prefix="ADAPTIVE_",
        extra="ignore",
    )

    branch_timeout_seconds: float = Field(default=2.0, gt=0)
    trend_window_days: int = Field(default=7, ge=1, le=365)
    event_query_limit: int = Field(default=500, ge=1)
    history_days: int = Field(default=90, ge=1)
    max_save_retries: int = Field(default=3, ge=1)
    rules_file: Path | None = None


class APISettings(BaseSettings):
    """API server configuration.

    Attributes:
        title: OpenAPI title.
        version: API version string.
        host: Host to bind to.
        port: Port to listen on.
        workers: Number of worker processes. The in-memory stores live
            in one process, so the server runs a single worker.
        reload: Whether to enable auto-reload.
    """

    model_config = SettingsConfigDict(
        env_prefix="API_",
        extra="ignore",
    )

    title: str = "Adaptive Feedback Engine"
    version: str = "1.0.0"
    host: str = "0.0.0.0"
    port: int = 34000
    workers: int = 1
    reload: bool = False


class CORSSettings(BaseSettings):
    """CORS configuration for API.

    Attributes:
        origins: Comma-separated list of allowed origins.
        allow_credentials: Whether to allow credentials.
        allow_methods: Allowed HTTP methods.
        allow_headers: Allowed HTTP headers.
    """

    model_config = SettingsConfigDict(
        env_prefix="CORS_",
        extra="ignore",
    )

    origins: str = "http://localhost:3000,http://localhost:5173"
    allow_credentials: bool = True
    allow_methods: list[str] = ["*"]
    allow_headers: list[str] = ["*"]

    @property
    def origins_list(self) -> list[str]:
        """Parse origins string into a list."""
        return [origin.strip() for origin in self.origins.split(",") if origin.strip()]


class Settings(BaseSettings):
    """Main application settings.

    Attributes:
        environment: Deployment environment.
        debug: Enable debug mode.
        log_level: Logging level.
        adaptive: Adaptive engine settings.
        api: API server settings.
        cors: CORS settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    environment: Literal["development", "staging", "production", "test"] = "development"
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "DEBUG"

    adaptive: AdaptiveSettings = Field(default_factory=AdaptiveSettings)
    api: APISettings = Field(default_factory=APISettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call clear_settings_cache() if you need to reload settings.

    Returns:
        Cached Settings instance.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Call this if you need to reload settings from environment.
    Useful for testing or dynamic configuration updates.
    """
    get_settings.cache_clear()
