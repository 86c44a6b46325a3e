"""Service configuration from environment (CURBTIME_* variables or .env)."""
from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_env_path = Path(__file__).resolve().parent / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CURBTIME_",
        env_file=str(_env_path),
        extra="ignore",
    )

    app_name: str = "CurbTime API"
    timezone: str = "America/Los_Angeles"

    dataset_domain: str = "data.sfgov.org"
    dataset_id: str = "hi6h-neyh"
    geometry_field: str = "shape"
    app_token: str = ""

    @field_validator("app_token", "dataset_domain", "dataset_id", mode="before")
    @classmethod
    def strip_value(cls, v: str) -> str:
        return (v or "").strip()

    request_timeout_seconds: float = 5.0
    feed_cache_ttl_seconds: int = 60
    feed_cache_max_entries: int = 128
    default_feature_limit: int = 2000


@lru_cache
def get_settings() -> Settings:
    return Settings()
