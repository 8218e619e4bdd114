"""
Client Configuration
Loads environment variables and provides typed configuration.
"""
from typing import Optional
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings loaded from environment variables (INPUTS_ prefix)."""

    model_config = SettingsConfigDict(
        env_prefix="INPUTS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # API
    api_endpoint: str = Field(default="https://api.clarifai.com")

    # Credentials (api_key wins over client credentials)
    api_key: Optional[str] = None
    client_id: Optional[str] = None
    client_secret: Optional[str] = None

    # Bulk create
    max_batch_size: int = Field(default=128, gt=0)

    # Transport
    request_timeout: float = 60.0
    transport_retries: int = Field(default=3, ge=1)
    retry_wait_min: float = 1.0
    retry_wait_max: float = 10.0

    # Deleting
    allow_implicit_delete_all: bool = True

    # Logging
    log_level: str = "INFO"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
