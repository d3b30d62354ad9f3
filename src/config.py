"""Application configuration via pydantic-settings.

Store credentials and connection strings are loaded from environment variables (.env file).
Settings are organized into logical groups and composed into a single Settings object.
"""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StoreSettings(BaseSettings):
    """WooCommerce REST API connection settings for the merchant's store."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    store_api_url: str = Field(
        default="http://localhost:8080/wp-json",
        description="Base URL of the store's WordPress REST API (ends in /wp-json)",
    )
    store_consumer_key: str = Field(default="", description="WooCommerce REST consumer key")
    store_consumer_secret: str = Field(default="", description="WooCommerce REST consumer secret")
    store_site_id: int = Field(default=0, description="Identifier used to key per-site settings")
    request_timeout: float = Field(default=20.0, description="Store API request timeout in seconds")
    connect_timeout: float = Field(default=5.0, description="Store API connect timeout in seconds")


class RedisSettings(BaseSettings):
    """Redis connection settings for persisted app settings."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection string",
    )
    settings_key_prefix: str = Field(
        default="payments",
        description="Namespace prepended to every persisted settings key",
    )


class Settings(BaseSettings):
    """Root settings composing all sub-settings.

    Usage:
        settings = Settings()
        settings.store.store_api_url
        settings.redis.redis_url
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Environment
    environment: str = Field(default="development")
    log_level: str = Field(default="DEBUG")

    # Composed settings (loaded from same .env)
    store: StoreSettings = Field(default_factory=StoreSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid:
            msg = f"Invalid log level: {v}. Must be one of {valid}"
            raise ValueError(msg)
        return upper


# Module-level singleton — import this wherever settings are needed.
settings = Settings()
