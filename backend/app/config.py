"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: works out-of-the-box with docker-compose
    - Email disabled by default: local runs never hit the outbound API
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://linkup:linkup@db:5432/linkup"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted providers hand out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Auth: session/cookie issuance lives upstream, only the resolved id is read here
    actor_header: str = "X-Account-Id"

    # Email (HTTP send API)
    email_enabled: bool = False
    email_api_url: str = "https://send.api.mailtrap.io/api/send"
    email_api_token: str = "mt-placeholder"
    email_sender_address: str = "no-reply@linkup.local"
    email_sender_name: str = "Linkup"
    email_max_retries: int = 3
    email_base_delay_ms: int = 500
    email_max_delay_ms: int = 10_000
    email_timeout_seconds: int = 15

    # Links rendered into emails
    frontend_url: str = "http://localhost:5173"

    # Connection graph repair pass
    reconcile_on_startup: bool = False

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
