"""Application settings and logging setup."""

import sys
from functools import lru_cache
from typing import Optional

from loguru import logger
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_FORMAT = "{time:HH:mm:ss} | {level:<7} | {message}"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="BUBU_", env_file=".env", env_file_encoding="utf-8")

    db_path: Optional[str] = None
    database_url: Optional[str] = None
    openai_api_key: str = ""
    openai_base_url: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    openai_vision_model: str = "gpt-4o-mini"
    timezone: str = "America/Mexico_City"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000
    receipt_confidence_threshold: int = 70


@lru_cache
def get_settings() -> Settings:
    return Settings()


def configure_logging(level: str = "INFO") -> None:
    """Send loguru output to stderr at the given level."""
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format=LOG_FORMAT)
