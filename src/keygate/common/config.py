"""Keygate configuration via pydantic-settings."""

import warnings
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

INSECURE_API_KEY = "insecure-admin-key-change-me"


class KeygateSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="KEYGATE_")

    environment: str = "development"
    api_key: str = INSECURE_API_KEY

    # Storage
    backend: Literal["redis", "sql"] = "redis"
    redis_url: str = "redis://localhost:6379/0"
    redis_prefix: str = "keygate:"
    db_url: str = "sqlite+aiosqlite:///./data/keygate.db"

    # API
    api_title: str = "Keygate"
    api_version: str = "0.1.0"
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: list[str] = ["*"]

    # Key generation
    key_length: int = 16
    key_max_attempts: int = 5

    # Pagination
    default_page_size: int = 10
    max_page_size: int = 100

    # Liveness log interval in seconds, 0 disables it
    keepalive_interval: int = 300
    log_level: str = "INFO"

    def validate_for_production(self) -> None:
        """Refuse the shipped admin key outside development."""
        if self.api_key != INSECURE_API_KEY:
            return
        if self.environment != "development":
            raise RuntimeError(
                f"The default admin key cannot be used in the '{self.environment}' "
                "environment, set KEYGATE_API_KEY"
            )
        warnings.warn(
            "Using the insecure default admin key, set KEYGATE_API_KEY for production",
            UserWarning,
            stacklevel=2,
        )


@lru_cache
def get_settings() -> KeygateSettings:
    settings = KeygateSettings()
    settings.validate_for_production()
    return settings
