"""Configuration management using pydantic-settings."""
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Upstream catalog API
    catalog_api_url: str = "http://localhost:3000/api"
    catalog_api_key: Optional[str] = None
    upstream_timeout_seconds: float = 10.0

    # Cache settings
    cache_enabled: bool = True
    cache_backend: str = "memory"  # "memory" or "sqlite"
    cache_directory: Path = Path("./cache")
    cache_keep_newest: int = 50

    # How long a candidate pool from the catalog stays cached
    featured_pool_ttl_seconds: int = 1800
    hero_pool_ttl_seconds: int = 60

    # Rotation
    max_rotation_limit: int = 50
    rotation_timezone: str = "UTC"
    featured_weighted_shuffle: bool = False

    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
