"""Recurrence expansion for recurring bookings.

Dates are plain calendar dates (no timezone), so expanding a series can never
drift across a day boundary. Expansion is capped to keep unbounded ranges cheap.
"""

from __future__ import annotations

import calendar
import re
from datetime import date, timedelta
from typing import Iterator, Optional

from booking_engine.domain.models import PatternType, RecurrenceDefinition, RecurrenceExpansion
from booking_engine.utils.logger import get_logger


logger = get_logger(__name__)

MAX_RECURRING_OCCURRENCES = 200

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_iso_date(value: str) -> Optional[date]:
    if not isinstance(value, str) or _DATE_PATTERN.match(value) is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def _days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def _week_start(day: date) -> date:
    return day - timedelta(days=day.isoweekday() - 1)


def _weeks_between(start: date, current: date) -> int:
    """Whole Monday-anchored weeks from ``start``'s week to ``current``'s week."""
    return (_week_start(current) - _week_start(start)).days // 7


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_recurrence_definition(definition: RecurrenceDefinition) -> Optional[str]:
    """Return the first problem with a recurrence request, or None when valid."""
    start = parse_iso_date(definition.start_date)
    end = parse_iso_date(definition.end_date)
    if start is None or end is None:
        return "start_date/end_date must use YYYY-MM-DD"
    if end < start:
        return "end_date must be on or after start_date"
    if not _is_int(definition.interval) or definition.interval < 1:
        return "interval must be >= 1"

    if definition.pattern_type == PatternType.WEEKLY:
        if not definition.by_weekday:
            return "WEEKLY requires by_weekday"
        if any(not _is_int(value) or not 1 <= value <= 7 for value in definition.by_weekday):
            return "by_weekday must contain values in 1..7"

    if definition.pattern_type == PatternType.MONTHLY:
        if not _is_int(definition.by_monthday) or not 1 <= definition.by_monthday <= 31:
            return "MONTHLY requires by_monthday in 1..31"

    if definition.pattern_type == PatternType.YEARLY:
        if not _is_int(definition.by_month) or not 1 <= definition.by_month <= 12:
            return "YEARLY requires by_month in 1..12"
        if not _is_int(definition.by_monthday) or not 1 <= definition.by_monthday <= 31:
            return "YEARLY requires by_monthday in 1..31"

    return None


def _daily(definition: RecurrenceDefinition, start: date, end: date) -> Iterator[date]:
    for offset in range(0, (end - start).days + 1, definition.interval):
        yield start + timedelta(days=offset)


def _weekly(definition: RecurrenceDefinition, start: date, end: date) -> Iterator[date]:
    weekdays = set(definition.by_weekday or ())
    for offset in range((end - start).days + 1):
        cursor = start + timedelta(days=offset)
        if (
            _weeks_between(start, cursor) % definition.interval == 0
            and cursor.isoweekday() in weekdays
        ):
            yield cursor


def _monthly(definition: RecurrenceDefinition, start: date, end: date) -> Iterator[date]:
    target_day = start.day if definition.by_monthday is None else definition.by_monthday
    year, month_index = start.year, start.month - 1
    while year <= end.year:
        month = month_index + 1
        if target_day <= _days_in_month(year, month):
            occurrence = date(year, month, target_day)
            if occurrence > end:
                return
            if occurrence >= start:
                yield occurrence
        if date(year, month, 1) > end:
            return
        month_index += definition.interval
        year += month_index // 12
        month_index %= 12


def _yearly(definition: RecurrenceDefinition, start: date, end: date) -> Iterator[date]:
    month = start.month if definition.by_month is None else definition.by_month
    day = start.day if definition.by_monthday is None else definition.by_monthday
    for year in range(start.year, end.year + 1, definition.interval):
        if day > _days_in_month(year, month):
            continue
        occurrence = date(year, month, day)
        if start <= occurrence <= end:
            yield occurrence


_EXPANDERS = {
    PatternType.DAILY: _daily,
    PatternType.WEEKLY: _weekly,
    PatternType.MONTHLY: _monthly,
    PatternType.YEARLY: _yearly,
}


def _in_range(value: Optional[int], low: int, high: int) -> bool:
    return value is None or (_is_int(value) and low <= value <= high)


def _occurrences(definition: RecurrenceDefinition) -> Iterator[date]:
    """Lazily walk a series in date order; malformed definitions walk nothing."""
    start = parse_iso_date(definition.start_date)
    end = parse_iso_date(definition.end_date)
    if start is None or end is None or end < start:
        return iter(())
    if not _is_int(definition.interval) or definition.interval < 1:
        return iter(())
    if not _in_range(definition.by_month, 1, 12) or not _in_range(definition.by_monthday, 1, 31):
        return iter(())

    try:
        expander = _EXPANDERS[PatternType(definition.pattern_type)]
    except ValueError:
        return iter(())
    return expander(definition, start, end)


def expand_recurrence_with_truncation(
    definition: RecurrenceDefinition,
    cap: int = MAX_RECURRING_OCCURRENCES,
) -> RecurrenceExpansion:
    """Expand a series and report whether the cap stopped it."""
    if cap < 1:
        return RecurrenceExpansion(dates=[], truncated=False)

    dates: list[str] = []
    for occurrence in _occurrences(definition):
        dates.append(occurrence.isoformat())
        if len(dates) >= cap:
            logger.debug(
                "Recurrence expansion capped | pattern=%s | cap=%s",
                definition.pattern_type,
                cap,
            )
            return RecurrenceExpansion(dates=dates, truncated=True)
    return RecurrenceExpansion(dates=dates, truncated=False)


def expand_recurrence(
    definition: RecurrenceDefinition,
    cap: int = MAX_RECURRING_OCCURRENCES,
) -> list[str]:
    """Expand a recurrence definition into at most ``cap`` ISO dates in order."""
    return expand_recurrence_with_truncation(definition, cap).dates


def filter_recurrence_dates_to_range(
    definition: RecurrenceDefinition,
    range_start: date,
    range_end: date,
) -> list[str]:
    """Uncapped occurrences of a series that fall inside ``[range_start, range_end]``.

    The walk still begins at the series start so interval anchoring is kept,
    but it stops at the first occurrence past ``range_end``.
    """
    if range_start > range_end:
        return []
    dates: list[str] = []
    for occurrence in _occurrences(definition):
        if occurrence > range_end:
            break
        if occurrence >= range_start:
            dates.append(occurrence.isoformat())
    return dates
