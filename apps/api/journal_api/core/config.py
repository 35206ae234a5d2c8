"""Application configuration."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables."""

    auth_provider: Literal["mock", "basic", "firebase"] = "basic"
    firebase_project_id: str | None = None
    firebase_audience: str | None = None
    firebase_username_claim: str = "uid"

    password_hash_rounds: int = Field(default=12, ge=4, le=31)
    store_transactions: bool = True
    write_conflict_retries: int = Field(default=2, ge=0)
    conceal_forbidden: bool = False
    integrity_scan_on_startup: bool = True
    bootstrap_admin_username: str | None = None
    bootstrap_admin_password: str | None = None

    weather_api_key: str | None = None
    weather_base_url: str = "https://api.openweathermap.org/data/2.5/weather"
    weather_timeout_seconds: float = Field(default=5.0, gt=0)

    model_config = SettingsConfigDict(env_prefix="JOURNAL_", extra="ignore")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
