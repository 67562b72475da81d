"""Resource assignment planning for parking spots with and without chargers.

Given an attendance window, an optional charging requirement and the current
bookings, decide which spot (or which sequence of spots) to propose. The
planner never raises; every infeasible request maps to a ``NoAssignment``
reason the caller can surface.
"""

from __future__ import annotations

from typing import Callable, Iterable, Optional, Sequence

from booking_engine.domain.models import (
    MINUTES_PER_DAY,
    AssignmentProposal,
    Booking,
    NoAssignment,
    NoAssignmentReason,
    ProposedBooking,
    Resource,
    SingleAssignment,
    SplitAssignment,
    TimeWindow,
)
from booking_engine.services.interval_service import windows_overlap
from booking_engine.utils.logger import get_logger


logger = get_logger(__name__)

SpotPredicate = Callable[[Resource], bool]


def _has_charger(spot: Resource) -> bool:
    return spot.has_charger


def _is_regular(spot: Resource) -> bool:
    return not spot.has_charger


def is_resource_free(resource_id: str, window: TimeWindow, bookings: Iterable[Booking]) -> bool:
    """True when no booking on ``resource_id`` overlaps ``window``."""
    return not any(
        windows_overlap(window, TimeWindow(booking.start_minute, booking.end_minute))
        for booking in bookings
        if booking.resource_id == resource_id
    )


def find_free_resource(
    spots: Sequence[Resource],
    bookings: Sequence[Booking],
    window: TimeWindow,
    predicate: SpotPredicate,
) -> Optional[Resource]:
    """First spot in input order matching ``predicate`` and free for ``window``."""
    for spot in spots:
        if predicate(spot) and is_resource_free(spot.id, window, bookings):
            return spot
    return None


def _proposed(spot: Resource, window: TimeWindow) -> ProposedBooking:
    return ProposedBooking(
        resource_id=spot.id,
        start_minute=window.start_minute,
        end_minute=window.end_minute,
        has_charger=spot.has_charger,
    )


def charging_window_candidates(
    attendance: TimeWindow,
    charging_minutes: int,
) -> list[TimeWindow]:
    """Ordered, de-duplicated charging sub-windows to try.

    Priority: anchored at the start of attendance, anchored at the end, then
    every whole-hour start that still fits inside attendance.
    """
    start, end = attendance.start_minute, attendance.end_minute
    ordered = [
        TimeWindow(start, start + charging_minutes),
        TimeWindow(end - charging_minutes, end),
    ]
    latest_start = end - charging_minutes
    first_whole_hour = -(-start // 60) * 60
    for hour_start in range(first_whole_hour, latest_start + 1, 60):
        ordered.append(TimeWindow(hour_start, hour_start + charging_minutes))

    candidates: list[TimeWindow] = []
    for candidate in ordered:
        if not candidate.is_meaningful:
            continue
        if candidate.start_minute < start or candidate.end_minute > end:
            continue
        if candidate in candidates:
            continue
        candidates.append(candidate)
    return candidates


def _assign_without_charging(
    attendance: TimeWindow,
    spots: Sequence[Resource],
    bookings: Sequence[Booking],
) -> AssignmentProposal:
    spot = find_free_resource(spots, bookings, attendance, _is_regular)
    if spot is None:
        spot = find_free_resource(spots, bookings, attendance, _has_charger)
    if spot is None:
        return NoAssignment(reason=NoAssignmentReason.NO_PARKING)
    return SingleAssignment(bookings=[_proposed(spot, attendance)])


def _split_around_charger(
    attendance: TimeWindow,
    charge_window: TimeWindow,
    charger: Resource,
    spots: Sequence[Resource],
    bookings: Sequence[Booking],
) -> Optional[SplitAssignment]:
    """Complete a charging window with regular spots for the remainder, if possible."""
    before = TimeWindow(attendance.start_minute, charge_window.start_minute)
    after = TimeWindow(charge_window.end_minute, attendance.end_minute)
    charger_booking = _proposed(charger, charge_window)

    parts: list[ProposedBooking] = []
    if before.is_meaningful:
        regular = find_free_resource(spots, bookings, before, _is_regular)
        if regular is None:
            return None
        parts.append(_proposed(regular, before))
    parts.append(charger_booking)
    if after.is_meaningful:
        regular = find_free_resource(spots, bookings, after, _is_regular)
        if regular is None:
            return None
        parts.append(_proposed(regular, after))

    return SplitAssignment(bookings=parts)


def _assign_with_charging(
    attendance: TimeWindow,
    charging_minutes: int,
    spots: Sequence[Resource],
    bookings: Sequence[Booking],
) -> AssignmentProposal:
    charger_window_found = False

    for charge_window in charging_window_candidates(attendance, charging_minutes):
        charger = find_free_resource(spots, bookings, charge_window, _has_charger)
        if charger is None:
            continue
        charger_window_found = True

        if charge_window == attendance:
            return SingleAssignment(bookings=[_proposed(charger, attendance)])

        split = _split_around_charger(attendance, charge_window, charger, spots, bookings)
        if split is not None:
            logger.debug(
                "Charging split found | charger=%s | window=%s-%s | parts=%s",
                charger.id,
                charge_window.start_minute,
                charge_window.end_minute,
                len(split.bookings),
            )
            return split

    fallback = find_free_resource(spots, bookings, attendance, _has_charger)
    if fallback is not None:
        logger.debug("Charger fallback for full window | charger=%s", fallback.id)
        return SingleAssignment(
            bookings=[_proposed(fallback, attendance)],
            used_fallback_charger_full_window=True,
        )

    if charger_window_found:
        return NoAssignment(reason=NoAssignmentReason.NO_SPLIT_AND_NO_FALLBACK)
    return NoAssignment(reason=NoAssignmentReason.NO_CHARGER_WINDOW)


def build_assignment_proposal(
    *,
    start_minute: int,
    attendance_minutes: int,
    charging_minutes: int,
    spots: Sequence[Resource],
    bookings: Sequence[Booking],
) -> AssignmentProposal:
    """Propose one spot, or a 2-3 part split, covering the attendance window.

    Without charging, a regular spot is preferred over a charger spot. With
    charging, the charger is booked only for the charging sub-window when a
    regular spot can cover the rest; otherwise a charger spot is proposed for
    the whole window as a fallback.
    """
    end_minute = start_minute + attendance_minutes
    if attendance_minutes <= 0 or end_minute > MINUTES_PER_DAY:
        return NoAssignment(reason=NoAssignmentReason.NO_PARKING)

    attendance = TimeWindow(start_minute, end_minute)
    if charging_minutes <= 0:
        return _assign_without_charging(attendance, spots, bookings)

    resolved_charging_minutes = min(attendance_minutes, max(0, charging_minutes))
    return _assign_with_charging(attendance, resolved_charging_minutes, spots, bookings)
