"""Environment configuration and validation.

This module defines strongly-typed application settings loaded from environment variables
(optionally via a local `.env` file).

The DB session timezone is locked to UTC so that lease expiry ("today") is the same calendar day in
SQL and in Python.
"""

from __future__ import annotations

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.burials.expiration import DEFAULT_LEASE_YEARS, MAX_RENEWAL_YEARS
from src.intent.llm_parser import DEFAULT_API_BASE, DEFAULT_MODEL, LLMConfig


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    The LLM search parser is enabled simply by providing `OPENAI_API_KEY`; without it every search
    uses the rules-based parser.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database_url: str = Field(alias="DATABASE_URL")
    db_timezone: str = Field(default="UTC", alias="DB_TIMEZONE")
    db_pool_max_size: int = Field(default=10, gt=0, alias="DB_POOL_MAX_SIZE")

    llm_api_key: str | None = Field(default=None, alias="OPENAI_API_KEY")
    llm_model: str = Field(default=DEFAULT_MODEL, alias="LLM_MODEL")
    llm_api_base: str = Field(default=DEFAULT_API_BASE, alias="LLM_API_BASE")
    llm_timeout_s: float = Field(default=30.0, gt=0, alias="LLM_TIMEOUT_S")

    default_lease_years: int = Field(
        default=DEFAULT_LEASE_YEARS,
        gt=0,
        le=MAX_RENEWAL_YEARS,
        alias="DEFAULT_LEASE_YEARS",
    )
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @field_validator("db_timezone")
    @classmethod
    def validate_db_timezone_is_utc(cls, value: str) -> str:
        """Validate that the DB timezone is locked to UTC.

        Lease expiry compares dates against the DB's `CURRENT_DATE`. Any other timezone is rejected
        at startup.
        """

        if value.upper() != "UTC":
            raise ValueError("DB_TIMEZONE must be UTC")
        return "UTC"

    @field_validator("llm_api_key")
    @classmethod
    def blank_key_is_none(cls, value: str | None) -> str | None:
        """Treat an empty `OPENAI_API_KEY=` line as "not configured"."""

        if value is not None and not value.strip():
            return None
        return value

    def llm_config(self) -> LLMConfig | None:
        """LLM client configuration, or `None` when no API key is configured."""

        if not self.llm_api_key:
            return None
        return LLMConfig(
            api_key=self.llm_api_key,
            model=self.llm_model,
            api_base=self.llm_api_base,
            timeout_s=self.llm_timeout_s,
        )


def load_settings() -> Settings:
    """Load and validate settings from environment variables.

    Raises:
        RuntimeError: If the environment configuration is missing or invalid.
    """

    try:
        return Settings()
    except ValidationError as exc:
        # Raising here is fine: caller can decide how to handle startup errors.
        raise RuntimeError(f"Invalid environment configuration: {exc}") from exc
