"""
Unified configuration for bucket-provider.

This module provides a single Settings class that consolidates all
environment variables used by the object-storage client and service.
The storage client is only built when STORAGE_BACKEND selects it.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Determine project root for .env file loading (allows running from any CWD)
PROJECT_ROOT = Path(__file__).resolve().parent.parent

S3_BACKEND = "s3"


class Settings(BaseSettings):
    """
    Unified settings for bucket-provider.

    Environment variables are loaded from .env file and can be overridden
    by actual environment variables.
    """

    # Service identification
    SERVICE_NAME: str = "bucket-provider"
    LOG_LEVEL: str = "INFO"

    # Backend selector; anything other than "s3" leaves the client unbuilt
    STORAGE_BACKEND: str = S3_BACKEND

    # Object storage
    BUCKET_ACCESS_KEY: str = ""
    BUCKET_SECRET_KEY: str = ""
    BUCKET_ENDPOINT: str = "http://localhost:9000"
    BUCKET_REGION: str | None = None
    BUCKET_NAME: str = "uploads"
    BUCKET_AUTO_CREATE: bool = False

    # Presigned GET links are short-lived unless the caller asks otherwise
    BUCKET_PRESIGN_EXPIRES_SECONDS: int = Field(default=10, ge=1, le=604800)

    # Multipart part size in bytes (S3 minimum is 5 MiB)
    BUCKET_UPLOAD_PART_SIZE: int = Field(default=10 * 1024 * 1024, ge=5 * 1024 * 1024)

    model_config = SettingsConfigDict(
        env_file=PROJECT_ROOT / ".env",
        extra="ignore"
    )

    @property
    def uses_object_storage(self) -> bool:
        """True when the selector picks the S3-compatible backend."""
        return self.STORAGE_BACKEND.strip().lower() == S3_BACKEND


# Global settings instance
settings = Settings()  # type: ignore
