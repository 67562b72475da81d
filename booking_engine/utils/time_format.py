"""Clock-time and timestamp parsing shared by the domain and service layers."""

from __future__ import annotations

import math
import re
from datetime import datetime
from typing import Optional


HHMM_PATTERN = re.compile(r"^(\d{2}):(\d{2})$")


def to_minutes(value: str) -> float:
    """Convert ``HH:MM`` to minutes since midnight, ``nan`` when invalid."""
    if not isinstance(value, str):
        return math.nan
    match = HHMM_PATTERN.match(value)
    if match is None:
        return math.nan
    hour = int(match.group(1))
    minute = int(match.group(2))
    if not 0 <= hour <= 23 or not 0 <= minute <= 59:
        return math.nan
    return hour * 60 + minute


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp into naive wall-clock time.

    Bare ``HH:MM`` values are clock times, not timestamps, and yield None.
    An offset, when present, is dropped so the wall-clock reading is kept.
    """
    if not isinstance(value, str) or not value or HHMM_PATTERN.match(value):
        return None
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return parsed.replace(tzinfo=None)
