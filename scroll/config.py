import os
from functools import lru_cache
from typing import Literal

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    storage_backend: Literal["memory", "neo4j"] = "memory"
    neo4j_uri: str | None = None
    neo4j_user: str | None = None
    neo4j_password: str | None = None
    neo4j_connection_timeout_seconds: float = 10.0
    http_timeout_seconds: float = 30.0
    http_max_retries: int = 2
    http_retry_backoff_seconds: float = 0.25
    default_source_type: Literal["catechism", "scripture", "patristic", "treatise", "generic"] = "generic"
    alias_cache_ttl_seconds: float = 5.0
    pattern_timeout_seconds: float = 0.05
    max_pattern_length: int = 500
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    @model_validator(mode="after")
    def validate_scroll(self) -> "Settings":
        if self.storage_backend == "neo4j" and not (self.neo4j_uri and self.neo4j_user and self.neo4j_password):
            raise ValueError("neo4j_settings_required_for_neo4j_backend")
        if self.alias_cache_ttl_seconds < 0:
            raise ValueError("alias_cache_ttl_seconds_must_not_be_negative")
        if self.pattern_timeout_seconds <= 0:
            raise ValueError("pattern_timeout_seconds_must_be_positive")
        if self.max_pattern_length <= 0:
            raise ValueError("max_pattern_length_must_be_positive")
        return self


@lru_cache
def get_settings() -> Settings:
    env_file = os.getenv("SCROLL_ENV_FILE") or os.getenv("APP_ENV_FILE", ".env")
    return Settings(_env_file=env_file)  # type: ignore[call-arg]
