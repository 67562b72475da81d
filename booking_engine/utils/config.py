"""Environment-driven application settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
    app_name: str
    app_version: str
    log_level: str
    host: str
    port: int
    business_window_start: str
    business_window_end: str
    recurrence_max_occurrences: int


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Read settings from environment variables once per process."""
    return Settings(
        app_name=os.getenv("APP_NAME", "Office Booking Engine"),
        app_version=os.getenv("APP_VERSION", "0.1.0"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        host=os.getenv("HOST", "127.0.0.1"),
        port=_env_int("PORT", 8000),
        business_window_start=os.getenv("BUSINESS_WINDOW_START", "07:00"),
        business_window_end=os.getenv("BUSINESS_WINDOW_END", "18:00"),
        recurrence_max_occurrences=_env_int("RECURRENCE_MAX_OCCURRENCES", 200),
    )
