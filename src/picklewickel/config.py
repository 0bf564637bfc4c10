"""
Configuration management for PickleWickel.

Uses Pydantic Settings to load configuration from environment variables
with sensible defaults for development. The database URL should be set via
environment variables or a .env file in production.

Usage:
    from picklewickel.config import settings
    print(settings.database_url)
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment variables can be set directly or via a .env file
    in the project root directory.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # ==========================================================================
    # Database Configuration
    # ==========================================================================

    database_url: str = Field(
        default="sqlite:///picklewickel.db",
        description="SQLAlchemy URL of the database backing the key-value store",
    )
    db_pool_size: int = Field(
        default=5,
        description="Number of connections to keep in the pool",
    )
    db_max_overflow: int = Field(
        default=10,
        description="Max additional connections beyond pool_size",
    )

    # ==========================================================================
    # Collection Keys
    # ==========================================================================

    # One JSON document per logical collection
    matches_key: str = Field(
        default="picklewickel_matches_v1",
        description="Key of the manually entered / CSV imported matches document",
    )
    scraped_matches_key: str = Field(
        default="picklewickel_scraped_matches_v1",
        description="Key of the scraped matches document",
    )
    tournaments_key: str = Field(
        default="picklewickel_tournaments_v1",
        description="Key of the managed tournaments document",
    )
    scrape_targets_key: str = Field(
        default="picklewickel_scrape-targets_v1",
        description="Key of the scrape targets document",
    )
    scraper_health_key: str = Field(
        default="picklewickel_scraper_health_v1",
        description="Key of the scraper health log document",
    )

    # ==========================================================================
    # Ingestion Configuration
    # ==========================================================================

    ingestion_enabled: bool = Field(
        default=True,
        description=(
            "Kill-switch for every mutating operation. When False, writes are "
            "rejected with a 503 while reads keep working."
        ),
    )
    default_scrape_confidence: str = Field(
        default="medium",
        description="Confidence recorded on scraped matches that report none",
    )
    scraper_health_max_records: int = Field(
        default=1000,
        description="Number of scraper health records to retain",
    )

    # ==========================================================================
    # API Configuration
    # ==========================================================================

    api_host: str = Field(
        default="0.0.0.0",
        description="Host to bind the API server to",
    )
    api_port: int = Field(
        default=8000,
        description="Port for the API server",
    )
    api_reload: bool = Field(
        default=False,
        description="Enable auto-reload for development",
    )

    # ==========================================================================
    # Logging Configuration
    # ==========================================================================

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    log_format: str = Field(
        default="json",
        description="Log format: 'json' for production, 'console' for dev",
    )

    # ==========================================================================
    # Validators
    # ==========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return upper_v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        lowered = v.lower()
        if lowered not in {"json", "console"}:
            raise ValueError("log_format must be 'json' or 'console'")
        return lowered


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache ensures we only load settings once,
    which is important because loading from .env can be slow.
    """
    return Settings()


# Convenience alias for importing
settings = get_settings()
