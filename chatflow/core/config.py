"""Application configuration using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="CHATFLOW_",
    )

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False
    log_level: Literal["debug", "info", "warning", "error"] = "info"

    # Application settings
    app_name: str = "Chatflow Engine"
    app_version: str = "0.1.0"
    debug: bool = False

    # CORS settings
    cors_origins: list[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    # Persistence
    database_url: str = "sqlite+aiosqlite:///./chatflow.db"
    storage_backend: Literal["database", "memory"] = "database"

    # Execution settings
    loop_guard_max_steps: int = 100
    wait_reply_default_timeout_seconds: int = 300
    timeout_tick_seconds: float = 1.0
    event_queue_size: int = 1000

    # Node defaults
    http_default_timeout_ms: int = 30000
    scrape_default_timeout_ms: int = 30000
    code_timeout_seconds: float = 5.0
    code_cpu_seconds: int = 2
    code_memory_limit_mb: int = 256

    # Headless browser for HTTP_SCRAPE (needs `playwright install chromium`)
    browser_enabled: bool = False
    browser_headless: bool = True

    # Messaging channel gateway
    channel_gateway_url: str | None = None
    channel_gateway_token: str | None = None

    # Schedule triggers
    schedule_enabled: bool = True
    schedule_tick_seconds: float = 30.0
    default_session_id: str | None = None


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
