"""Typed settings configuration - single source of truth."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database (in-memory trip store when unset)
    database_url: str | None = None

    # Cost estimation
    default_commission_pct: int = 15
    min_commission_pct: int = 10
    max_commission_pct: int = 15
    currency: str = "USD"
    cost_disclaimer: str = "final quote by travel professional"

    # Conditional write retries per mutating operation
    max_write_attempts: int = 3

    # Handoff
    handoff_contact_method_default: str = "email"
    handoff_agency_default: str | None = None


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
