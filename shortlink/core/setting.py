"""
Configuration Settings

This module defines application configuration using Pydantic Settings.
All configuration is loaded from environment variables or .env file.

Design Decisions:
- Uses pydantic-settings for type-safe configuration
- Allowlists (origins, destination hosts, API keys) are plain comma-separated
  environment variables; a missing list is an empty allowlist (deny-by-default)
- Defaults to SQLite (file-based) for easy local development
- Rate limiting window/threshold are tunables, not hard-coded business rules
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

__all__ = ["Settings", "settings"]

BASE_DIR = Path(__file__).resolve().parent.parent.parent

TURNSTILE_VERIFY_URL = "https://challenges.cloudflare.com/turnstile/v0/siteverify"


class EnvSettingsOptions(Enum):
    """Environment options for deployment."""
    production = "production"
    staging = "staging"
    development = "dev"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables or .env file.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Project Configuration
    ENV_SETTING: EnvSettingsOptions = Field(
        default=EnvSettingsOptions.development,
        description="Environment setting (production, staging, dev)"
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Root log level used when the app configures logging"
    )

    # Database Configuration
    # For SQLite: sqlite+aiosqlite:///./shortlinks.db (default)
    DATABASE_URL: str = Field(
        default="sqlite+aiosqlite:///./shortlinks.db",
        description="Async database connection string"
    )

    # Application Configuration
    BASE_URL: Optional[str] = Field(
        default=None,
        description="Base URL for short URLs; falls back to https://<Host header>"
    )

    # Admission allowlists
    TRUSTED_ORIGINS: Annotated[list[str], NoDecode] = Field(
        default_factory=list,
        description="Origins allowed to call the create endpoint (exact match)"
    )
    ALLOWED_DOMAINS: Annotated[list[str], NoDecode] = Field(
        default_factory=list,
        description="Destination hostnames links may point to (exact match)"
    )
    API_KEYS: Annotated[list[str], NoDecode] = Field(
        default_factory=list,
        description="Shared-secret API keys accepted by the create endpoint"
    )

    # CAPTCHA Configuration
    CAPTCHA_SECRET_KEY: Optional[str] = Field(
        default=None,
        description="Secret used to verify CAPTCHA tokens with the provider"
    )
    CAPTCHA_VERIFY_URL: str = Field(
        default=TURNSTILE_VERIFY_URL,
        description="Provider verification endpoint"
    )
    CAPTCHA_TIMEOUT_SECONDS: float = Field(
        default=5.0,
        description="Timeout for the outbound verification call"
    )

    # Rate Limiting Configuration
    RATE_LIMIT_WINDOW_SECONDS: int = Field(
        default=60,
        description="Length of the trailing window for create requests"
    )
    RATE_LIMIT_MAX_REQUESTS: int = Field(
        default=10,
        description="Create requests admitted per client within the window"
    )
    RATE_LIMIT_STORAGE_URI: Optional[str] = Field(
        default=None,
        description="limits storage URI (e.g. redis://host:6379) for a shared limiter"
    )

    @field_validator("TRUSTED_ORIGINS", "ALLOWED_DOMAINS", "API_KEYS", mode="before")
    @classmethod
    def _split_csv(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = value.split(",")
        # Blank entries would otherwise match an empty request field
        return [item.strip() for item in value if item and item.strip()]


settings = Settings()
