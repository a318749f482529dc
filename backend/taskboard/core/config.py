"""Application settings and environment configuration loading."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Self

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BACKEND_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_ENV_FILE = BACKEND_ROOT / ".env"
LOG_FORMATS = frozenset({"text", "json"})


class TaskStoreBackend(str, Enum):
    """Supported task store implementations."""

    SQL = "sql"
    MEMORY = "memory"


class Settings(BaseSettings):
    """Typed runtime configuration sourced from environment variables."""

    model_config = SettingsConfigDict(
        # Load `backend/.env` regardless of current working directory.
        env_file=[DEFAULT_ENV_FILE, ".env"],
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: str = "dev"
    database_url: str = "sqlite+aiosqlite:///./taskboard.db"

    # Storage
    task_store_backend: TaskStoreBackend = TaskStoreBackend.SQL
    db_auto_migrate: bool = False

    # Task rules
    reject_past_deadlines: bool = True

    cors_origins: str = ""

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"
    log_use_utc: bool = False
    request_log_slow_ms: int = Field(default=1000, ge=0)
    request_log_include_health: bool = False

    @model_validator(mode="after")
    def _defaults(self) -> Self:
        self.log_format = self.log_format.strip().lower()
        if self.log_format not in LOG_FORMATS:
            raise ValueError(
                f"LOG_FORMAT must be one of: {', '.join(sorted(LOG_FORMATS))}.",
            )
        # In dev, default to applying Alembic migrations at startup to avoid
        # schema drift against a persistent database file.
        if "db_auto_migrate" not in self.model_fields_set and self.environment == "dev":
            self.db_auto_migrate = True
        return self


settings = Settings()
