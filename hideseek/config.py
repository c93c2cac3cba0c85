"""
Configuration - Settings read from the environment.

Variables:
    HIDESEEK_ENV                   development | production
    HIDESEEK_LOG_LEVEL             logging level name (INFO)
    ALLOWED_ORIGINS                comma-separated CORS origins (*)
    HIDESEEK_DATA_DIR              persist games as JSON here (in-memory if unset)
    HIDESEEK_UPLOAD_DIR            store answer photos here (in-memory if unset)
    HIDESEEK_UPLOAD_BASE_URL       URL prefix for stored photos
    HIDESEEK_REVEAL_TYPES          question types that reveal the hider (radar)
    HIDESEEK_REVEAL_SECONDS        how long the reveal lasts (10)
    HIDESEEK_MAX_CONFLICT_RETRIES  re-reads after a store conflict (3)
    HIDESEEK_CODE_ATTEMPTS         join code draws before giving up (20)
"""

from __future__ import annotations
import os
from functools import lru_cache


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, str(default)).split("#")[0].strip()
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"Invalid {name} value: {raw!r}. Must be a number.") from e


def _list_env(name: str, default: str) -> list[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


class Settings:
    """
    Application settings loaded from environment variables.

    All settings have defaults suitable for local development.
    """

    def __init__(self):
        self.environment: str = os.getenv("HIDESEEK_ENV", "development")
        self.log_level: str = os.getenv("HIDESEEK_LOG_LEVEL", "INFO")
        self.allowed_origins: list[str] = _list_env("ALLOWED_ORIGINS", "*")

        # Collaborators
        self.data_dir: str | None = os.getenv("HIDESEEK_DATA_DIR") or None
        self.upload_dir: str | None = os.getenv("HIDESEEK_UPLOAD_DIR") or None
        self.upload_base_url: str = os.getenv("HIDESEEK_UPLOAD_BASE_URL", "/uploads")

        # Game rules
        self.reveal_types: frozenset[str] = frozenset(
            t.lower() for t in _list_env("HIDESEEK_REVEAL_TYPES", "radar")
        )
        self.reveal_seconds: int = _int_env("HIDESEEK_REVEAL_SECONDS", 10)

        # Concurrency
        self.max_conflict_retries: int = _int_env("HIDESEEK_MAX_CONFLICT_RETRIES", 3)
        self.code_attempts: int = _int_env("HIDESEEK_CODE_ATTEMPTS", 20)

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


@lru_cache()
def get_settings() -> Settings:
    """Settings for this process, read once."""
    return Settings()
