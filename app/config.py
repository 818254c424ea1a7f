# =============================================================================
# app/config.py - Application Settings
# =============================================================================
# This module loads configuration from environment variables using pydantic-settings.
# It provides a single Settings class with all configuration values.
#
# Usage:
#   from app.config import settings
#   print(settings.UPLOAD_BUCKET)
#
# Environment variables are loaded from:
# 1. System environment variables
# 2. .env file in project root (if exists)
# =============================================================================

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.models.upload import UploadOptions


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses pydantic-settings to:
    - Automatically load from .env file
    - Validate types and constraints
    - Provide sensible defaults for development

    All settings are accessed via the global `settings` instance.
    """

    # -------------------------------------------------------------------------
    # Supabase Configuration
    # -------------------------------------------------------------------------
    # These are required - app won't start without them

    SUPABASE_URL: str = Field(
        ...,  # ... means required (no default)
        description="Supabase project URL (e.g., https://xxx.supabase.co)"
    )

    SUPABASE_SERVICE_KEY: str = Field(
        ...,
        description="Supabase service_role key (bypasses RLS)"
    )

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------

    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Current environment"
    )

    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode (verbose logging)"
    )

    # CORS origins (comma-separated string that gets parsed)
    CORS_ORIGINS: str = Field(
        default="http://localhost:3000",
        description="Allowed CORS origins (comma-separated)"
    )

    # -------------------------------------------------------------------------
    # File Upload Settings
    # -------------------------------------------------------------------------

    UPLOAD_BUCKET: str = Field(
        default="project-files",
        min_length=1,
        description="Supabase Storage bucket that receives uploads"
    )

    MAX_UPLOAD_SIZE_MB: int = Field(
        default=0,
        ge=0,
        description="Maximum size per file in MB (0 = unlimited)"
    )

    ALLOWED_MIME_TYPES: str = Field(
        default="",
        description="Allowed MIME types, comma-separated, wildcards like image/* allowed (empty = all)"
    )

    MAX_FILES: int = Field(
        default=1,
        ge=1,
        description="Maximum number of files in one upload batch"
    )

    CACHE_CONTROL_SECONDS: int = Field(
        default=3600,
        ge=0,
        description="Cache-Control max-age for uploaded objects"
    )

    UPLOAD_UPSERT: bool = Field(
        default=False,
        description="Overwrite objects that already exist under the same key"
    )

    UPLOAD_CONCURRENCY: int = Field(
        default=8,
        ge=1,
        le=64,
        description="Maximum number of files uploaded at the same time"
    )

    COMPENSATE_ORPHANED_BLOBS: bool = Field(
        default=False,
        description="Delete the stored object when its metadata row cannot be written"
    )

    # -------------------------------------------------------------------------
    # Pydantic Settings Configuration
    # -------------------------------------------------------------------------

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=True,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------

    @property
    def cors_origins_list(self) -> list[str]:
        """
        Parse CORS_ORIGINS string into a list.

        Example: "http://localhost:3000, https://myapp.com" -> ["http://localhost:3000", "https://myapp.com"]
        """
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def allowed_mime_types_list(self) -> list[str]:
        """
        Parse ALLOWED_MIME_TYPES string into a list.

        Example: "image/*, application/pdf" -> ["image/*", "application/pdf"]
        """
        return [t.strip().lower() for t in self.ALLOWED_MIME_TYPES.split(",") if t.strip()]

    @property
    def max_upload_size_bytes(self) -> int | None:
        """Convert MB to bytes, None when unlimited."""
        if self.MAX_UPLOAD_SIZE_MB == 0:
            return None
        return self.MAX_UPLOAD_SIZE_MB * 1024 * 1024

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"

    def upload_options(self, path: str | None = None) -> UploadOptions:
        """
        Build coordinator options from settings.

        Args:
            path: Folder inside the bucket; also the parent project ID for
                metadata rows. None uploads to the bucket root without rows.
        """
        return UploadOptions(
            bucket_name=self.UPLOAD_BUCKET,
            path=path,
            allowed_mime_types=self.allowed_mime_types_list,
            max_file_size=self.max_upload_size_bytes,
            max_files=self.MAX_FILES,
            cache_control=self.CACHE_CONTROL_SECONDS,
            upsert=self.UPLOAD_UPSERT,
            concurrency=self.UPLOAD_CONCURRENCY,
            compensate_orphans=self.COMPENSATE_ORPHANED_BLOBS,
        )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached Settings instance.

    Using lru_cache ensures we only parse .env and validate once.

    Returns:
        Settings: The application settings instance
    """
    return Settings()


# Global settings instance for easy importing
# Usage: from app.config import settings
settings = get_settings()
