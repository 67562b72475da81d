"""Domain-level validation rules for engine configuration."""

from __future__ import annotations

import math
from dataclasses import dataclass

from booking_engine.utils.time_format import to_minutes


@dataclass(frozen=True)
class EngineConfig:
    business_window_start: str
    business_window_end: str
    recurrence_max_occurrences: int


def validate_engine_config(config: EngineConfig) -> None:
    start = to_minutes(config.business_window_start)
    end = to_minutes(config.business_window_end)
    if math.isnan(start):
        raise ValueError("business_window_start must follow HH:MM format")
    if math.isnan(end):
        raise ValueError("business_window_end must follow HH:MM format")
    if end <= start:
        raise ValueError("business_window_end must be after business_window_start")
    if config.recurrence_max_occurrences < 1:
        raise ValueError("recurrence_max_occurrences must be >= 1")
