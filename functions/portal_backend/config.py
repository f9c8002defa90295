"""
Configuration and settings for the portal backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")
    log_level: str = Field(default="INFO")

    # Database (Postgres expected, any SQLAlchemy URL works)
    database_url: Optional[str] = Field(default=None)

    # S3-compatible object storage
    storage_endpoint: Optional[str] = Field(default=None)
    storage_region: Optional[str] = Field(default=None)
    storage_bucket: Optional[str] = Field(default=None)
    storage_public_base_url: Optional[str] = Field(default=None)
    aws_access_key_id: Optional[str] = Field(default=None)
    aws_secret_access_key: Optional[str] = Field(default=None)

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False, validation_alias="PORTAL_USE_IN_MEMORY_BACKENDS"
    )

    # Auth
    secret_key: str = Field(
        default="dev-secret-unsafe", validation_alias="PORTAL_SECRET_KEY"
    )
    access_token_expire_minutes: int = Field(default=60 * 24)
    bootstrap_admin_email: Optional[str] = Field(default=None)
    bootstrap_admin_password: Optional[str] = Field(default=None)

    # Forms and uploads
    max_attachment_bytes: int = Field(default=5 * 1024 * 1024)
    default_subcity: str = Field(default="አቃቂ ቃሊቲ")
    woreda_count: int = Field(default=14)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
