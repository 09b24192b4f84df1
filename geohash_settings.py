"""
Configuration Settings

Library defaults loaded from GEOHASH_* environment variables or a .env file.
"""
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="GEOHASH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Codec
    default_precision: int = Field(default=12, ge=1)

    # Prefix distance: return the table's last entry instead of 0 past its end
    clamp_prefix_distance: bool = False

    # Redis cell cache
    redis_url: str = "redis://localhost:6379/0"
    cell_cache_prefix: str = "geocell"
    cell_cache_precision: int = Field(default=6, ge=1)
    cell_cache_ttl: int = 600  # seconds

    # Logging
    log_level: str = "INFO"
    log_format: str = "console"  # console or json


settings = Settings()
