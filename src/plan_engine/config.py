"""Configuration for the plan execution engine."""

from __future__ import annotations

from functools import lru_cache
from typing import Set

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)

    service_name: str = Field(default="api-plan-engine")

    engine_http_timeout_seconds: float = Field(default=30)
    engine_http_max_attempts: int = Field(default=3)
    engine_http_backoff_seconds: float = Field(default=0.5)
    engine_http_backoff_multiplier: float = Field(default=2.0)
    engine_http_retry_statuses: str = Field(default="429,503")
    engine_http_verify_ssl: bool = Field(default=True)

    engine_log_level: str = Field(default="INFO")
    engine_prompt_template: str = Field(default="Please provide a value for '{name}': ")

    def retry_statuses(self) -> Set[int]:
        if not self.engine_http_retry_statuses:
            return set()
        return {
            int(item.strip())
            for item in self.engine_http_retry_statuses.split(",")
            if item.strip()
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
