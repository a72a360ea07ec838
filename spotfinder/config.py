from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client configuration (env-friendly).

    Every field can be overridden with a ``SPOTFINDER_`` prefixed environment
    variable or from a local .env file.
    """

    model_config = SettingsConfigDict(env_prefix="SPOTFINDER_", env_file=".env", env_file_encoding="utf-8")

    app_name: str = "spotfinder"
    version: str = "0.1.0"

    api_key: str = ""
    api_key_header: str = "X-Gowalla-API-Key"
    api_scheme: str = "http"
    api_host: str = "api.gowalla.com"
    api_port: int = 80

    http_timeout_s: float = 20.0

    # At least one request is always allowed through, see ConcurrentRequestLimiter.
    max_concurrent_requests: int = 4
    # None waits for a permit forever.
    rate_limit_timeout_s: Optional[float] = None

    log_level: str = "INFO"
    log_json: bool = False

    @property
    def user_agent(self) -> str:
        return f"{self.app_name} ({self.version})"


@lru_cache
def get_settings() -> Settings:
    return Settings()
