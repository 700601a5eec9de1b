"""Application settings using Pydantic BaseSettings."""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from TODO_API_* environment variables (+ optional .env)."""

    model_config = SettingsConfigDict(
        env_prefix="TODO_API_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "Todo API"
    log_level: str = "INFO"
    log_dir: Optional[Path] = None

    host: str = "127.0.0.1"
    port: int = 8000


@lru_cache
def get_settings() -> Settings:
    return Settings()
