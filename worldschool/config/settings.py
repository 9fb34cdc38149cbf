import os
from pathlib import Path

from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_database_url() -> str:
    """Get database URL, using an absolute path for the local SQLite fallback.

    SQLite is for local development only. Set DATABASE_URL to a PostgreSQL
    connection string in production.
    """
    db_url = os.getenv("DATABASE_URL", "")
    if db_url:
        return db_url

    db_path = Path(__file__).parent.parent.parent / "worldschool.db"
    db_url = f"sqlite:///{db_path.resolve()}"
    logger.warning(f"Using SQLite database (LOCAL DEV ONLY): {db_url}")
    return db_url


class Settings(BaseSettings):
    openai_api_key: str = Field(default="", validation_alias="OPENAI_API_KEY", validate_default=True)
    llm_provider: str = Field(default="openai", validation_alias="LLM_PROVIDER")
    llm_model: str = Field(default="gpt-4o-mini", validation_alias="LLM_MODEL")
    places_api_key: str = Field(default="", validation_alias="PLACES_API_KEY", validate_default=True)
    places_base_url: str = Field(
        default="https://places.googleapis.com/v1",
        validation_alias="PLACES_BASE_URL",
    )
    places_timeout_seconds: float = Field(default=10.0, validation_alias="PLACES_TIMEOUT_SECONDS")
    venue_search_radius_meters: int = Field(default=5000, validation_alias="VENUE_SEARCH_RADIUS_METERS")
    venue_max_results: int = Field(default=3, validation_alias="VENUE_MAX_RESULTS")
    database_url: str = Field(
        default_factory=get_database_url,
        validation_alias="DATABASE_URL",
    )
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: str = Field(default="", validation_alias="LOG_FILE")

    @field_validator("openai_api_key")
    @classmethod
    def warn_missing_openai_key(cls, v: str) -> str:
        if not v:
            logger.warning("OPENAI_API_KEY is not set. Pathway generation will fail until it is configured.")
        return v

    @field_validator("places_api_key")
    @classmethod
    def warn_missing_places_key(cls, v: str) -> str:
        if not v:
            logger.warning("PLACES_API_KEY is not set. Venue suggestions are disabled.")
        return v

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}:
            logger.warning(f"Unknown LOG_LEVEL {v!r}, falling back to INFO")
            return "INFO"
        return level

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()
