"""Minute-interval primitives: overlap tests, merging, inversion and ring segments.

All functions are pure. Intervals are half-open ``[start, end)`` minutes since
local midnight. Overlap detection treats touching intervals as disjoint so that
back-to-back bookings never conflict, while merging folds touching intervals
into one busy block for occupancy display.
"""

from __future__ import annotations

import math
from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional

from booking_engine.domain.models import (
    MINUTES_PER_DAY,
    MinuteInterval,
    OccupancyMetrics,
    RingSegment,
    TimeWindow,
)
from booking_engine.utils.time_format import parse_timestamp, to_minutes


BUSINESS_START = "07:00"
BUSINESS_END = "18:00"


def overlaps_half_open_intervals(
    left_start: float,
    left_end: float,
    right_start: float,
    right_end: float,
) -> bool:
    """Return True when two non-empty half-open intervals intersect."""
    if left_end <= left_start or right_end <= right_start:
        return False
    return left_start < right_end and right_start < left_end


def windows_overlap(left: TimeWindow, right: TimeWindow) -> bool:
    return overlaps_half_open_intervals(
        left.start_minute,
        left.end_minute,
        right.start_minute,
        right.end_minute,
    )


def format_minutes(minutes: float) -> str:
    """Format minutes as ``HH:MM``; non-finite input formats to an empty string."""
    if not math.isfinite(minutes):
        return ""
    clamped = max(0, min(MINUTES_PER_DAY, math.floor(minutes)))
    return f"{clamped // 60:02d}:{clamped % 60:02d}"


def _is_valid(interval: MinuteInterval) -> bool:
    return (
        math.isfinite(interval.start_min)
        and math.isfinite(interval.end_min)
        and interval.end_min > interval.start_min
    )


def clamp_interval(
    interval: MinuteInterval,
    window_start: float,
    window_end: float,
) -> Optional[MinuteInterval]:
    if not math.isfinite(interval.start_min) or not math.isfinite(interval.end_min):
        return None
    start_min = max(window_start, min(window_end, interval.start_min))
    end_min = max(window_start, min(window_end, interval.end_min))
    if end_min <= start_min:
        return None
    return MinuteInterval(start_min=start_min, end_min=end_min)


def merge_intervals(intervals: Iterable[MinuteInterval]) -> list[MinuteInterval]:
    """Sort by start and fold overlapping or touching intervals together.

    Non-finite and empty intervals are dropped before merging.
    """
    ordered = sorted(
        (interval for interval in intervals if _is_valid(interval)),
        key=lambda interval: interval.start_min,
    )
    if not ordered:
        return []

    merged: list[MinuteInterval] = [ordered[0]]
    for candidate in ordered[1:]:
        current = merged[-1]
        if candidate.start_min <= current.end_min:
            merged[-1] = MinuteInterval(
                start_min=current.start_min,
                end_min=max(current.end_min, candidate.end_min),
            )
            continue
        merged.append(candidate)
    return merged


def invert_intervals(
    window_start: float,
    window_end: float,
    merged_intervals: Iterable[MinuteInterval],
) -> list[MinuteInterval]:
    """Return the free gaps of ``[window_start, window_end]`` around busy intervals."""
    free: list[MinuteInterval] = []
    cursor = window_start

    for interval in merged_intervals:
        if cursor >= window_end:
            break
        gap_end = min(window_end, interval.start_min)
        if gap_end > cursor:
            free.append(MinuteInterval(start_min=cursor, end_min=gap_end))
        cursor = max(cursor, interval.end_min)

    if cursor < window_end:
        free.append(MinuteInterval(start_min=cursor, end_min=window_end))
    return free


def intervals_to_segments(
    window_start: float,
    window_end: float,
    merged_intervals: Iterable[MinuteInterval],
) -> list[RingSegment]:
    """Map intervals linearly onto ``[0, 1]`` fractions of the window."""
    total = window_end - window_start
    if not math.isfinite(total) or total <= 0:
        return []

    segments: list[RingSegment] = []
    for interval in merged_intervals:
        p0 = (interval.start_min - window_start) / total
        p1 = (interval.end_min - window_start) / total
        if not p1 > p0:
            continue
        segments.append(
            RingSegment(
                p0=max(0.0, min(1.0, p0)),
                p1=max(0.0, min(1.0, p1)),
            )
        )
    return segments


def interval_from_times(start_time: str, end_time: str) -> Optional[MinuteInterval]:
    """Build an interval from two ``HH:MM`` strings, ``None`` when unusable."""
    interval = MinuteInterval(start_min=to_minutes(start_time), end_min=to_minutes(end_time))
    if not _is_valid(interval):
        return None
    return interval


def _minute_of_day(moment: datetime) -> int:
    return moment.hour * 60 + moment.minute


def booking_interval_on_day(
    start_time: Optional[str],
    end_time: Optional[str],
    day: Optional[date] = None,
    booking_date: Optional[str] = None,
) -> Optional[MinuteInterval]:
    """Minutes a booking occupies on ``day``, ``None`` when it does not touch it.

    ``HH:MM`` pairs are clock times on the booking's own date; with a ``day``
    they only count when ``booking_date`` is missing or falls on that day.
    Timestamp pairs may span several days and are clipped to ``[0, 1440]`` of
    ``day`` (or of the start's date when no day is given).
    """
    if math.isfinite(to_minutes(start_time)) and math.isfinite(to_minutes(end_time)):
        if day is not None and booking_date and booking_date[:10] != day.isoformat():
            return None
        return interval_from_times(start_time, end_time)

    starts_at = parse_timestamp(start_time)
    ends_at = parse_timestamp(end_time)
    if starts_at is None or ends_at is None or ends_at <= starts_at:
        return None

    day_start = datetime.combine(day or starts_at.date(), time.min)
    day_end = day_start + timedelta(days=1)
    if ends_at <= day_start or starts_at >= day_end:
        return None
    start_min = 0 if starts_at <= day_start else _minute_of_day(starts_at)
    end_min = MINUTES_PER_DAY if ends_at >= day_end else _minute_of_day(ends_at)
    if end_min <= start_min:
        return None
    return MinuteInterval(start_min=start_min, end_min=end_min)


def compute_occupancy(
    intervals: Iterable[MinuteInterval],
    window_start: str = BUSINESS_START,
    window_end: str = BUSINESS_END,
) -> OccupancyMetrics:
    """Clamp, merge and measure busy intervals inside a business window."""
    win_start = to_minutes(window_start)
    win_end = to_minutes(window_end)
    if math.isnan(win_start) or math.isnan(win_end) or win_end <= win_start:
        return OccupancyMetrics(
            intervals=[],
            free_intervals=[],
            segments=[],
            occupied_minutes=0,
            window_minutes=0,
            occupied_ratio=0.0,
        )

    clamped = [
        bounded
        for bounded in (clamp_interval(interval, win_start, win_end) for interval in intervals)
        if bounded is not None
    ]
    merged = merge_intervals(clamped)
    window_minutes = win_end - win_start
    occupied_minutes = sum(interval.end_min - interval.start_min for interval in merged)
    return OccupancyMetrics(
        intervals=merged,
        free_intervals=invert_intervals(win_start, win_end, merged),
        segments=intervals_to_segments(win_start, win_end, merged),
        occupied_minutes=occupied_minutes,
        window_minutes=window_minutes,
        occupied_ratio=min(1.0, max(0.0, occupied_minutes / window_minutes)),
    )
