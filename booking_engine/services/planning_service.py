"""Booking-service seam over the pure allocation engine."""

from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from booking_engine.domain.constraints import EngineConfig, validate_engine_config
from booking_engine.domain.models import (
    AssignmentProposal,
    Booking,
    DaySlotBooking,
    MinuteInterval,
    NoAssignment,
    NormalizedDaySlotBooking,
    OccupancyBooking,
    OccupancyMetrics,
    RecurrenceDefinition,
    RecurrenceExpansion,
    Resource,
)
from booking_engine.services.assignment_service import build_assignment_proposal
from booking_engine.services.day_slot_service import (
    normalize_day_slot_bookings,
    normalize_day_slot_bookings_per_entry,
)
from booking_engine.services.interval_service import booking_interval_on_day, compute_occupancy
from booking_engine.services.recurrence_service import (
    expand_recurrence_with_truncation,
    validate_recurrence_definition,
)
from booking_engine.utils.config import Settings, get_settings
from booking_engine.utils.logger import get_logger


logger = get_logger(__name__)


class PlanningValidationError(Exception):
    """Raised when a planning request carries malformed inputs."""


class RecurrenceValidationError(PlanningValidationError):
    """Raised when a recurrence definition is rejected."""


class ResourcePlanningService:
    """Resolves defaults from settings and logs decisions around the engine.

    The engine functions stay total; this layer is where a request that cannot
    be meaningfully answered is rejected with a typed error.
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._config = EngineConfig(
            business_window_start=self._settings.business_window_start,
            business_window_end=self._settings.business_window_end,
            recurrence_max_occurrences=self._settings.recurrence_max_occurrences,
        )
        validate_engine_config(self._config)

    @property
    def config(self) -> EngineConfig:
        return self._config

    def propose_assignment(
        self,
        *,
        start_minute: int,
        attendance_minutes: int,
        charging_minutes: int,
        spots: Sequence[Resource],
        bookings: Sequence[Booking],
    ) -> AssignmentProposal:
        spot_ids = [spot.id for spot in spots]
        if len(set(spot_ids)) != len(spot_ids):
            raise PlanningValidationError("spot ids must be unique")

        proposal = build_assignment_proposal(
            start_minute=start_minute,
            attendance_minutes=attendance_minutes,
            charging_minutes=charging_minutes,
            spots=spots,
            bookings=bookings,
        )
        if isinstance(proposal, NoAssignment):
            logger.info(
                "No assignment possible | start_minute=%s | attendance_minutes=%s | "
                "charging_minutes=%s | reason=%s",
                start_minute,
                attendance_minutes,
                charging_minutes,
                proposal.reason.value,
            )
        else:
            logger.info(
                "Assignment proposed | type=%s | resources=%s | fallback=%s",
                proposal.type,
                [item.resource_id for item in proposal.bookings],
                proposal.used_fallback_charger_full_window,
            )
        return proposal

    def expand_series(
        self,
        definition: RecurrenceDefinition,
        cap: Optional[int] = None,
    ) -> RecurrenceExpansion:
        error = validate_recurrence_definition(definition)
        if error is not None:
            logger.warning("Recurrence rejected | reason=%s", error)
            raise RecurrenceValidationError(error)

        resolved_cap = cap if cap is not None else self._config.recurrence_max_occurrences
        if resolved_cap < 1:
            raise RecurrenceValidationError("cap must be >= 1")

        expansion = expand_recurrence_with_truncation(definition, resolved_cap)
        logger.info(
            "Recurrence expanded | pattern=%s | occurrences=%s | truncated=%s",
            definition.pattern_type,
            len(expansion.dates),
            expansion.truncated,
        )
        return expansion

    def occupancy(
        self,
        bookings: Sequence[OccupancyBooking],
        day: Optional[date] = None,
        window_start: Optional[str] = None,
        window_end: Optional[str] = None,
    ) -> OccupancyMetrics:
        """Occupancy of bookings on ``day`` inside a business window.

        Bookings that do not touch the day or carry unusable times are skipped.
        """
        resolved = EngineConfig(
            business_window_start=window_start or self._config.business_window_start,
            business_window_end=window_end or self._config.business_window_end,
            recurrence_max_occurrences=self._config.recurrence_max_occurrences,
        )
        try:
            validate_engine_config(resolved)
        except ValueError as exc:
            raise PlanningValidationError(str(exc)) from exc

        intervals: list[MinuteInterval] = []
        for booking in bookings:
            interval = booking_interval_on_day(
                booking.start_time,
                booking.end_time,
                day,
                booking_date=booking.date,
            )
            if interval is None:
                logger.debug(
                    "Skipping booking outside day | start=%s | end=%s | day=%s",
                    booking.start_time,
                    booking.end_time,
                    day,
                )
                continue
            intervals.append(interval)

        return compute_occupancy(
            intervals,
            window_start=resolved.business_window_start,
            window_end=resolved.business_window_end,
        )

    def normalize_day_slots(
        self,
        bookings: Sequence[DaySlotBooking],
        per_entry: bool = False,
    ) -> list[NormalizedDaySlotBooking]:
        if per_entry:
            return normalize_day_slot_bookings_per_entry(bookings)
        normalized = normalize_day_slot_bookings(bookings)
        merged = sum(1 for booking in normalized if booking.is_virtual_merged)
        if merged:
            logger.debug("Half-day bookings merged | merged=%s", merged)
        return normalized
