"""
Configuration and settings for the portfolio showcase service.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ALLOWED_ORIGINS = (
    "http://localhost:3000,http://127.0.0.1:5500,http://localhost:5500"
)


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")
    port: int = Field(default=3000)
    app_env: str = Field(
        default="development",
        validation_alias=AliasChoices("APP_ENV", "NODE_ENV", "app_env"),
    )

    # Entry store (any SQLAlchemy URL; Postgres in production)
    database_url: Optional[str] = Field(default=None)

    # S3-compatible blob storage for uploaded images
    s3_endpoint: Optional[str] = Field(default=None)
    s3_region: Optional[str] = Field(default=None)
    s3_bucket: Optional[str] = Field(default=None)
    aws_access_key_id: Optional[str] = Field(default=None)
    aws_secret_access_key: Optional[str] = Field(default=None)
    image_bucket: str = Field(default="portfolio_images")

    # Contact form relay (Gmail SMTP with an app password)
    gmail_user: Optional[str] = Field(default=None)
    gmail_app_password: Optional[str] = Field(default=None)
    smtp_host: str = Field(default="smtp.gmail.com")
    smtp_port: int = Field(default=587)
    mail_subject_prefix: str = Field(default="[Portfolio]")

    # Comma separated list of origins allowed by CORS
    allowed_origins: str = Field(default=DEFAULT_ALLOWED_ORIGINS)

    rate_limit_enabled: bool = Field(default=True)
    rate_limit_window_seconds: int = Field(default=15 * 60)
    rate_limit_max_requests: int = Field(default=100)

    max_image_bytes: int = Field(default=5 * 1024 * 1024)
    image_cache_seconds: int = Field(default=365 * 24 * 60 * 60)

    seed_default_data: bool = Field(default=True)

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False,
        validation_alias=AliasChoices(
            "SHOWCASE_USE_IN_MEMORY_BACKENDS", "use_in_memory_backends"
        ),
    )

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    @property
    def mail_configured(self) -> bool:
        return bool(self.gmail_user and self.gmail_app_password)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
