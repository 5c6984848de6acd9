from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    app_name: str = "WA Automation"
    app_version: str = "1.0.0"
    debug: bool = False

    # Database
    database_url: str = ""  # Loaded from environment, validated in model_validator
    database_echo: bool = False
    database_auto_create: bool = False  # create missing tables on startup

    # Tenant
    tenant_header_name: str = "X-Tenant-ID"

    # WhatsApp session gateway (WAHA-compatible HTTP API)
    whatsapp_base_url: str = "http://localhost:3000"
    whatsapp_api_key: str | None = None
    whatsapp_session_id: str = "default"
    whatsapp_timeout_seconds: float = 30.0

    # Language model (OpenAI-compatible chat completions)
    llm_base_url: str = "https://api.openai.com/v1"
    llm_api_key: str | None = None
    llm_model: str = "gpt-4o-mini"
    llm_temperature: float = 0.7
    llm_max_tokens: int = 1000
    llm_timeout_seconds: float = 60.0

    # Workflow actions
    call_api_timeout_seconds: float = 30.0

    # Background jobs
    jobs_enabled: bool = True
    jobs_default_concurrency: int = 5
    jobs_poll_interval_seconds: float = 1.0
    jobs_timeout_seconds: float = 300.0  # 5 minutes
    jobs_retention_days: int = 7

    # Cron scheduler
    scheduler_enabled: bool = True
    scheduler_timezone: str = "UTC"

    @model_validator(mode="after")
    def validate_config(self) -> "Settings":
        """Validate required and numeric configuration"""
        if not self.database_url:
            raise ValueError("DATABASE_URL is required. Set in environment or .env file.")
        if self.jobs_default_concurrency < 1:
            raise ValueError("JOBS_DEFAULT_CONCURRENCY must be at least 1")
        if self.jobs_poll_interval_seconds <= 0:
            raise ValueError("JOBS_POLL_INTERVAL_SECONDS must be positive")
        if self.jobs_timeout_seconds <= 0:
            raise ValueError("JOBS_TIMEOUT_SECONDS must be positive")
        return self

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="allow", case_sensitive=False
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
