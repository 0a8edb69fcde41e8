"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

from photoset_pipeline.services.validation import DEFAULT_ALLOWED_TYPES

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    storage_bucket: str = "photo-sets"
    admin_token: str
    maintenance_token: str
    worker_token: str | None = None
    allowed_content_types: str = ",".join(sorted(DEFAULT_ALLOWED_TYPES))
    max_file_size_bytes: int = 10 * 1024 * 1024
    max_image_dimension: int = 1920
    image_quality: int = 80
    auto_rotate_images: bool = True
    upload_timeout_seconds: float = 30.0
    max_files_per_submission: int = 10
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_content_types(raw: str | None) -> frozenset[str]:
    """Parse a comma-separated list of allowed media types."""
    if raw is None or not raw.strip():
        return DEFAULT_ALLOWED_TYPES
    types = {chunk.strip().lower() for chunk in raw.split(",") if chunk.strip()}
    return frozenset(types) or DEFAULT_ALLOWED_TYPES
