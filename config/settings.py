"""
Application settings loaded from environment variables.

Uses pydantic-settings for validation and type safety.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
from pathlib import Path
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings.

    All values loaded from .env file or environment variables.
    Validation happens automatically on startup.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),  # Check current dir, then parent
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra env vars
    )

    # ===================
    # SUPABASE
    # ===================
    supabase_url: str = Field(
        ...,
        description="Supabase project URL"
    )
    supabase_key: str = Field(
        ...,
        description="Supabase anon/public key"
    )
    supabase_service_key: Optional[str] = Field(
        None,
        description="Supabase service role key (for admin operations)"
    )
    places_table: str = Field(
        default="places",
        description="Table holding place records"
    )

    # ===================
    # IMPORT PIPELINE
    # ===================
    import_batch_size: int = Field(
        default=50,
        ge=1,
        le=1000,
        description="Rows per insert request during bulk import"
    )
    duplicate_threshold_degrees: float = Field(
        default=0.001,
        gt=0,
        le=1,
        description="Max lat/lng delta (degrees) for two places to be the same (~100m)"
    )
    dedup_page_size: int = Field(
        default=1000,
        ge=100,
        le=10000,
        description="Rows per page when loading the duplicate snapshot"
    )
    default_country: str = Field(
        default="USA",
        description="Country written when the source row has none"
    )
    preview_row_limit: int = Field(
        default=20,
        ge=1,
        le=500,
        description="Rows shown in the validation preview"
    )
    session_ttl_minutes: int = Field(
        default=60,
        ge=1,
        le=1440,
        description="Minutes an idle import session is kept in memory"
    )

    # ===================
    # MAPPING PRESETS
    # ===================
    preset_store_path: Path = Field(
        default=Path.home() / ".place_import" / "presets.json",
        description="Local file backing the mapping preset store"
    )
    preset_storage_key: str = Field(
        default="muvo_import_mapping_presets",
        description="Key under which presets are stored"
    )

    # ===================
    # APP SETTINGS
    # ===================
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production)$",
        description="Application environment"
    )
    debug: bool = Field(
        default=True,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Logging level"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API host"
    )
    api_port: int = Field(
        default=8000,
        ge=1000,
        le=65535,
        description="API port"
    )

    # ===================
    # COMPUTED PROPERTIES
    # ===================
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload.

    Returns:
        Settings: Application settings

    Raises:
        ValidationError: If required env vars are missing or invalid
    """
    return Settings()


# For convenient imports: from config.settings import settings
settings = get_settings()
