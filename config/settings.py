"""Application settings and configuration management."""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or defaults."""

    DB_PATH: str = Field(default="data/interviews.db")
    APP_CONFIG_PATH: str = Field(default="app_config.json")
    DB_TIMEOUT_S: float = 30.0

    # Finalize can wait on the completion service for tens of seconds.
    LOCK_WAIT_S: float = 120.0

    DEFAULT_QUESTION_LIMIT: int = 10
    MIN_QUESTION_LIMIT: int = 1
    MAX_QUESTION_LIMIT: int = 50
    TITLE_MAX_CHARS: int = 80

    SHARE_PATH_PREFIX: str = "/interview/"

    # Sessions whose completion services stay cached between requests.
    COMPLETION_CACHE_SIZE: int = Field(default=1024, ge=1)

    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = True
    LOG_FILE: str = "logs/interview.log"
    LOG_MAX_BYTES: int = 5 * 1024 * 1024
    LOG_BACKUP_COUNT: int = 5

    model_config = SettingsConfigDict(env_file=".env", validate_assignment=True)


settings = Settings()
