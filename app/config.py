"""
Application configuration loaded from environment variables.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings from environment."""

    # Upload limits
    max_upload_mb: int = 50
    allowed_extensions: str = ".dsx,.zip"

    # Comma-separated browser origins allowed by CORS
    cors_origins: str = "http://localhost:5173,http://localhost:3000"

    # Extraction
    include_token_count: bool = True
    chars_per_token: int = 4
    continue_on_error: bool = False

    # Export
    export_indent: int = 2
    export_archive_name: str = "datastage_jobs.zip"

    # App settings
    app_name: str = "DSX Extractor"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000

    class Config:
        env_file = ".env"
        extra = "ignore"

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    @property
    def origins(self) -> list:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def upload_extensions(self) -> set:
        """Lower-cased file suffixes accepted for upload."""
        return {ext.strip().lower() for ext in self.allowed_extensions.split(",") if ext.strip()}


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
