"""Domain models for interval reasoning, recurrence, day slots and resource assignment."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union


MINUTES_PER_DAY = 24 * 60


class NoAssignmentReason(str, Enum):
    NO_PARKING = "NO_PARKING"
    NO_CHARGER_WINDOW = "NO_CHARGER_WINDOW"
    NO_SPLIT_AND_NO_FALLBACK = "NO_SPLIT_AND_NO_FALLBACK"


class PatternType(str, Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


class DaySlot(str, Enum):
    AM = "AM"
    PM = "PM"
    FULL = "FULL"


@dataclass(frozen=True)
class TimeWindow:
    """Half-open window ``[start_minute, end_minute)`` in minutes since midnight."""

    start_minute: int
    end_minute: int

    @property
    def is_meaningful(self) -> bool:
        return self.end_minute > self.start_minute


@dataclass(frozen=True)
class Resource:
    id: str
    has_charger: bool = False


@dataclass(frozen=True)
class Booking:
    """Existing commitment of a resource for part of the day."""

    resource_id: str
    start_minute: int
    end_minute: int


@dataclass(frozen=True)
class ProposedBooking:
    resource_id: str
    start_minute: int
    end_minute: int
    has_charger: bool


@dataclass(frozen=True)
class NoAssignment:
    reason: NoAssignmentReason
    type: str = field(default="none", init=False)


@dataclass(frozen=True)
class SingleAssignment:
    bookings: list[ProposedBooking]
    used_fallback_charger_full_window: bool = False
    type: str = field(default="single", init=False)


@dataclass(frozen=True)
class SplitAssignment:
    """Two or three time-contiguous bookings covering one attendance window."""

    bookings: list[ProposedBooking]
    used_fallback_charger_full_window: bool = False
    type: str = field(default="split", init=False)


AssignmentProposal = Union[NoAssignment, SingleAssignment, SplitAssignment]


@dataclass(frozen=True)
class RecurrenceDefinition:
    start_date: str
    end_date: str
    pattern_type: PatternType
    interval: int = 1
    by_weekday: Optional[frozenset[int]] = None
    by_monthday: Optional[int] = None
    by_month: Optional[int] = None


@dataclass(frozen=True)
class RecurrenceExpansion:
    dates: list[str]
    truncated: bool


@dataclass(frozen=True)
class DaySlotBooking:
    """Booking record as seen by the occupancy path.

    ``day_slot`` carries the AM/PM/FULL classification, ``slot`` the legacy
    FULL_DAY/MORNING/AFTERNOON/CUSTOM value. Either may be missing.
    """

    id: Optional[str] = None
    resource_id: Optional[str] = None
    date: Optional[str] = None
    employee_id: Optional[str] = None
    user_email: Optional[str] = None
    booked_for: Optional[str] = None
    created_by_employee_id: Optional[str] = None
    guest_name: Optional[str] = None
    day_slot: Optional[str] = None
    slot: Optional[str] = None


@dataclass(frozen=True)
class NormalizedDaySlotBooking(DaySlotBooking):
    source_booking_ids: tuple[str, ...] = ()
    is_virtual_merged: bool = False


@dataclass(frozen=True)
class OccupancyBooking:
    """Busy period from a booking: ``HH:MM`` clock times or ISO timestamps."""

    start_time: Optional[str]
    end_time: Optional[str]
    date: Optional[str] = None


@dataclass(frozen=True)
class MinuteInterval:
    start_min: float
    end_min: float


@dataclass(frozen=True)
class RingSegment:
    p0: float
    p1: float


@dataclass(frozen=True)
class OccupancyMetrics:
    intervals: list[MinuteInterval]
    free_intervals: list[MinuteInterval]
    segments: list[RingSegment]
    occupied_minutes: float
    window_minutes: float
    occupied_ratio: float
