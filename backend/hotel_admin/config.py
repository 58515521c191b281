"""Application configuration using pydantic-settings."""

from typing import Literal

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    app_name: str = "Hotel Admin Dashboard"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: str = "development"  # development, staging, production

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Local record store (one JSON document per collection)
    database_url: str = "sqlite+aiosqlite:///./hotel_admin.db"

    # Analytics
    default_total_rooms: int = 27
    currency_label: str = "FCFA"

    # Cache (seconds)
    cache_default_ttl_seconds: float = 300.0
    analytics_cache_ttl_seconds: float = 900.0

    # Background offload
    offload_enabled: bool = True
    offload_mode: Literal["process", "thread"] = "process"
    offload_max_workers: int = 2
    offload_timeout_seconds: float = 30.0

    # Frontend
    frontend_url: str = "http://localhost:3000"
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:8000",
    ]

    @model_validator(mode="after")
    def _ensure_frontend_in_cors(self) -> "Settings":
        """Ensure the configured frontend_url is always in cors_origins."""
        if self.frontend_url and self.frontend_url not in self.cors_origins:
            self.cors_origins.append(self.frontend_url)
        return self

    @model_validator(mode="after")
    def _validate_limits(self) -> "Settings":
        """Reject negative room totals and unusable offload settings."""
        if self.default_total_rooms < 0:
            raise ValueError("DEFAULT_TOTAL_ROOMS must not be negative")
        if self.offload_max_workers < 1:
            raise ValueError("OFFLOAD_MAX_WORKERS must be at least 1")
        if self.offload_timeout_seconds <= 0:
            raise ValueError("OFFLOAD_TIMEOUT_SECONDS must be positive")
        return self

    @property
    def async_database_url(self) -> str:
        """Ensure the database URL uses an async driver."""
        url = self.database_url
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        elif url.startswith("sqlite:///"):
            url = url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
        return url


settings = Settings()
