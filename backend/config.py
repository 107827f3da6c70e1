"""Application configuration using Pydantic Settings."""

import logging
from pathlib import Path

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# Calculate project root: config.py is in backend/, so go up one level
_CONFIG_DIR = Path(__file__).resolve().parent
_PROJECT_ROOT = _CONFIG_DIR.parent

# Used only when SECRET_KEY is missing outside production.
INSECURE_SECRET_KEY = "insecure-dev-secret-do-not-use-in-production"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=str(_PROJECT_ROOT / "backend" / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    app_name: str = Field(default="Acquisitions API", description="Application name")
    app_env: str = Field(default="development", description="Application environment")
    log_level: str = Field(default="INFO", description="Root log level", alias="LOG_LEVEL")
    allowed_origins: str = Field(
        default="http://localhost:3000,http://127.0.0.1:3000",
        description="Comma-separated CORS origins",
        alias="ALLOWED_ORIGINS",
    )

    # Security
    secret_key: str | None = Field(
        default=None,
        description="Secret key for JWT tokens",
        alias="SECRET_KEY",
    )
    algorithm: str = Field(default="HS256", description="JWT algorithm")
    access_token_expire_minutes: int = Field(
        default=60 * 24, description="Access token expiration in minutes"
    )
    bcrypt_rounds: int = Field(
        default=10, ge=4, le=31, description="bcrypt cost factor", alias="BCRYPT_ROUNDS"
    )

    # Session cookie
    cookie_secure: bool | None = Field(
        default=None,
        description="Force the Secure cookie flag. Defaults to on in production",
        alias="COOKIE_SECURE",
    )
    cookie_samesite: str = Field(default="strict", description="SameSite cookie policy")

    # Database
    database_url: str = Field(
        ...,
        description="PostgreSQL database connection URL",
        alias="DATABASE_URL",
    )

    # Response hardening
    hsts_max_age: int = Field(
        default=60 * 60 * 24 * 365,
        ge=0,
        description="Strict-Transport-Security max-age, sent in production only",
        alias="HSTS_MAX_AGE",
    )

    # Request protection
    protection_enabled: bool = Field(
        default=True,
        description="Enable bot/shield/rate-limit checks on incoming requests",
        alias="PROTECTION_ENABLED",
    )
    rate_limit_guest: str = Field(default="100/minute", alias="RATE_LIMIT_GUEST")
    rate_limit_user: str = Field(default="500/minute", alias="RATE_LIMIT_USER")
    rate_limit_admin: str = Field(default="1000/minute", alias="RATE_LIMIT_ADMIN")

    @field_validator("database_url", mode="before")
    @classmethod
    def validate_database_url(cls, v: str | None) -> str:
        """Validate and normalize database URL."""
        if v is None or v == "":
            raise ValueError("DATABASE_URL is required")
        return v.strip()

    @field_validator("app_env", mode="before")
    @classmethod
    def normalize_app_env(cls, v: str) -> str:
        """Normalize app environment to lowercase."""
        if isinstance(v, str):
            return v.lower().strip()
        return v

    @field_validator("app_name", mode="before")
    @classmethod
    def normalize_app_name(cls, v: str) -> str:
        """Normalize app name by stripping whitespace."""
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("cookie_samesite", mode="before")
    @classmethod
    def validate_samesite(cls, v: str) -> str:
        value = v.lower().strip() if isinstance(v, str) else v
        if value not in ("strict", "lax", "none"):
            raise ValueError("cookie_samesite must be one of strict, lax, none")
        return value

    @model_validator(mode="after")
    def check_secret_key(self) -> "Settings":
        """Refuse to run production without a secret; fall back loudly elsewhere."""
        if self.secret_key:
            return self
        if self.is_production:
            raise ValueError("SECRET_KEY must be set when APP_ENV is production")
        logger.warning(
            "SECRET_KEY is not set; using an insecure placeholder. "
            "Tokens signed with it are forgeable. Never deploy like this."
        )
        self.secret_key = INSECURE_SECRET_KEY
        return self

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def cors_origins(self) -> list[str]:
        return [item.strip() for item in self.allowed_origins.split(",") if item.strip()]

    @property
    def uses_insecure_secret(self) -> bool:
        return self.secret_key == INSECURE_SECRET_KEY


def get_settings() -> Settings:
    """Get application settings instance.

    Returns:
        Settings: Application settings instance

    Example:
        ```python
        from backend.config import get_settings

        settings = get_settings()
        print(settings.database_url)
        ```
    """
    return Settings()


# Global settings instance
settings = get_settings()
