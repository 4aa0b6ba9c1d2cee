"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_env: str = "development"
    log_level: str = "INFO"

    # Database
    database_url: str = ""  # Required - no insecure default
    database_pool_size: int = 10
    database_echo: bool = False

    # Ingestion
    batch_size: int = 100
    clone_base_dir: str = "/tmp/gitextractor"
    extractor_class: str = ""  # dotted path, e.g. "mypkg.extractor:GitWalker"

    # Celery
    celery_broker_url: str = "redis://localhost:6379/1"
    celery_result_backend: str = "redis://localhost:6379/2"
    celery_task_time_limit: int = 3600

    @field_validator("database_url", mode="after")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Ensure database URL is set."""
        if not v:
            raise ValueError("database_url must be set via DATABASE_URL environment variable")
        return v

    @field_validator("batch_size", mode="after")
    @classmethod
    def validate_batch_size(cls, v: int) -> int:
        if v < 1:
            raise ValueError("batch_size must be at least 1")
        return v

    @field_validator("celery_task_time_limit", mode="after")
    @classmethod
    def validate_task_time_limit(cls, v: int) -> int:
        # The soft limit sits one minute below the hard limit
        if v <= 60:
            raise ValueError("celery_task_time_limit must be greater than 60 seconds")
        return v

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
