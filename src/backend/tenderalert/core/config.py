"""
Runtime settings for TenderAlert Pro.

Everything comes from the environment (or a local ``.env``). Only
``DATABASE_URL`` is required; the Paystack, Firecrawl and LLM keys are
optional and the features that need them report themselves unconfigured
when they are missing.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_ASYNC_DRIVER_PREFIXES = {
    "postgres://": "postgresql+asyncpg://",
    "postgresql://": "postgresql+asyncpg://",
}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "TenderAlert Pro"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    api_prefix: str = "/api/v1"
    allowed_origins: str = "http://localhost:3000,http://localhost:5173"

    database_url: str = Field(..., description="postgresql:// or sqlite+aiosqlite:// URL")
    database_echo: bool = False
    database_ssl: bool = False
    database_pool_size: int = Field(default=5, ge=1, le=100)
    database_max_overflow: int = Field(default=10, ge=0, le=100)
    database_pool_timeout: int = Field(default=30, ge=5, le=120)

    # sk_live_... or sk_test_...
    paystack_secret_key: str | None = None
    paystack_base_url: str = "https://api.paystack.co"
    paystack_timeout: int = Field(default=30, ge=5, le=120)

    firecrawl_api_key: str | None = None
    firecrawl_base_url: str = "https://api.firecrawl.dev/v1"
    scraper_timeout: int = Field(default=60, ge=10, le=300)
    scraper_user_agent: str = "TenderAlertPro-Bot/1.0"

    # Any OpenAI-compatible gateway; no base URL means api.openai.com
    llm_api_key: str | None = None
    llm_base_url: str | None = None
    llm_model: str = "gpt-4o-mini"

    early_user_limit: int = Field(default=100, ge=1)
    early_user_free_months: int = Field(default=12, ge=1)

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "json"

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    @property
    def llm_enabled(self) -> bool:
        return bool(self.llm_api_key)

    @field_validator("database_url", mode="before")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Force the asyncpg driver onto plain PostgreSQL URLs."""
        for prefix, replacement in _ASYNC_DRIVER_PREFIXES.items():
            if v and v.startswith(prefix):
                return replacement + v[len(prefix):]
        return v


@lru_cache
def get_settings() -> Settings:
    return Settings()
