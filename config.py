"""
Markstash v1 - Shared Configuration Module

This module provides centralized configuration management for all services.
It loads settings from environment variables and provides typed access.
"""

import logging
from datetime import timedelta
from pathlib import Path
from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class FaviconSettings(BaseSettings):
    """Favicon resolution timeouts and concurrency"""
    page_timeout: float = Field(default=30.0, alias="FAVICON_PAGE_TIMEOUT")
    probe_timeout: float = Field(default=10.0, alias="FAVICON_PROBE_TIMEOUT")
    download_timeout: float = Field(default=15.0, alias="FAVICON_DOWNLOAD_TIMEOUT")
    max_redirects: int = Field(default=10, alias="FAVICON_MAX_REDIRECTS")
    max_concurrent: int = Field(default=10, alias="FAVICON_MAX_CONCURRENT")
    resolve_deadline: Optional[float] = Field(default=None, alias="FAVICON_RESOLVE_DEADLINE")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


class CacheSettings(BaseSettings):
    """Favicon cache configuration"""
    redis_url: Optional[str] = Field(default=None, alias="REDIS_URL")
    ttl_days: int = Field(default=7, alias="FAVICON_CACHE_TTL_DAYS")
    key_prefix: str = Field(default="favicon_base64:", alias="FAVICON_CACHE_PREFIX")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def ttl(self) -> timedelta:
        return timedelta(days=self.ttl_days)


class AppSettings(BaseSettings):
    """General application settings"""
    env: str = Field(default="development", alias="APP_ENV")
    debug: bool = Field(default=False, alias="APP_DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


class Config:
    """Main configuration class that combines all settings"""

    def __init__(self):
        self.favicon = FaviconSettings()
        self.cache = CacheSettings()
        self.app = AppSettings()

    @property
    def is_development(self) -> bool:
        return self.app.env == "development"

    @property
    def is_production(self) -> bool:
        return self.app.env == "production"


# Global config instance
config = Config()


# Helper function to get config
def get_config() -> Config:
    """Get the global configuration instance"""
    return config


# Helper function to load environment from file
def load_env(env_file: str = ".env") -> None:
    """Load environment variables from file"""
    from dotenv import load_dotenv
    env_path = Path(env_file)
    if env_path.exists():
        load_dotenv(env_path)
    else:
        logging.getLogger(__name__).warning(f"{env_file} not found")


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging the same way for the service and the CLI"""
    logging.basicConfig(
        level=(level or config.app.log_level).upper(),
        format=LOG_FORMAT,
    )


# Example usage:
if __name__ == "__main__":
    load_env()
    cfg = get_config()

    print(f"Environment: {cfg.app.env}")
    print(f"Redis URL: {cfg.cache.redis_url or '(memory cache)'}")
    print(f"Cache TTL: {cfg.cache.ttl}")
    print(f"Max concurrent resolutions: {cfg.favicon.max_concurrent}")
