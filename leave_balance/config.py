from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "Leave Balance Reconciler"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: Literal["development", "staging", "production"] = "development"
    database_url: str = "postgresql+asyncpg://leave_balance:leave_balance@db:5432/leave_balance"
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:8000"]
    log_level: str = "INFO"

    # Leave policy
    annual_entitlement: int = 45
    effective_year: int = 2025

    # Reconciliation
    overlap_policy: Literal["join", "reject"] = "join"
    aggregation_concurrency: int = 8
    persistence_retry_backoff_seconds: float = 0.5

    # Scheduler
    scheduler_enabled: bool = True
    scheduler_timezone: str | None = None  # IANA name; None uses the host's local zone


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
