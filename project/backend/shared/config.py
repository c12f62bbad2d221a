"""
Configuration management.

Centralized environment variable management and validation.
"""

from typing import Literal, Optional
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from shared.errors import ConfigError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,  # Allow case-insensitive env var matching
        extra="ignore"
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_dir: str = "logs"
    log_to_file: bool = False

    # Composer configuration
    # COMPOSER_MOCK_MODE: write placeholder files instead of running FFmpeg (whole run, never per stage)
    composer_mock_mode: bool = False
    # COMPOSER_OUTPUT_DIR: final videos land in {output_dir}/{content_id}/final_video.mp4
    composer_output_dir: str = "./content"
    # COMPOSER_SCRATCH_DIR: parent of per-run scratch directories (system temp dir when unset)
    composer_scratch_dir: Optional[str] = None
    # COMPOSER_MAX_PARALLEL: segment renders allowed to run at once within one run
    composer_max_parallel: int = 4

    # Supabase Storage (only needed by the storage publisher)
    supabase_url: Optional[str] = None
    supabase_service_key: Optional[str] = None

    @field_validator("supabase_url")
    @classmethod
    def validate_supabase_url(cls, v: Optional[str]) -> Optional[str]:
        """Validate Supabase URL format."""
        if v is None:
            return v
        if not v.startswith(("http://", "https://")):
            raise ConfigError("SUPABASE_URL must be a valid HTTP/HTTPS URL")
        return v

    @field_validator("supabase_service_key")
    @classmethod
    def validate_supabase_service_key(cls, v: Optional[str]) -> Optional[str]:
        """Validate Supabase service key format."""
        if v is None:
            return v
        if len(v) < 50:  # Basic format check
            raise ConfigError("SUPABASE_SERVICE_KEY appears to be invalid")
        return v

    @field_validator("composer_max_parallel")
    @classmethod
    def validate_composer_max_parallel(cls, v: int) -> int:
        """Worker pool must hold at least one slot."""
        if v < 1:
            raise ConfigError("COMPOSER_MAX_PARALLEL must be at least 1")
        return v

    @property
    def storage_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_key)


# Singleton instance
try:
    settings = Settings()
except Exception as e:
    # Re-raise as ConfigError for consistency
    if isinstance(e, ConfigError):
        raise
    raise ConfigError(f"Failed to load configuration: {str(e)}") from e
