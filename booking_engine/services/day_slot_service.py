"""Day-slot normalization for the occupancy path.

Half-day (AM/PM) bookings held by the same person are collapsed into one
synthetic FULL entry so a day view shows a single booking. Identity never looks
at the resource; callers pass one resource's bookings for one day at a time.
"""

from __future__ import annotations

from dataclasses import fields
from typing import Callable, Optional, Sequence

from booking_engine.domain.models import DaySlot, DaySlotBooking, NormalizedDaySlotBooking


IdentityExtractor = Callable[[DaySlotBooking], Optional[str]]

_LEGACY_SLOTS = {
    "FULL_DAY": DaySlot.FULL,
    "MORNING": DaySlot.AM,
    "AFTERNOON": DaySlot.PM,
}


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def resolve_day_slot(booking: DaySlotBooking) -> Optional[DaySlot]:
    """Resolve AM/PM/FULL from the day-slot field, then the legacy slot field."""
    for slot in (DaySlot.FULL, DaySlot.AM, DaySlot.PM):
        if booking.day_slot == slot.value:
            return slot
        if booking.slot is not None and _LEGACY_SLOTS.get(booking.slot) == slot:
            return slot
    return None


def _guest_creator(booking: DaySlotBooking) -> Optional[str]:
    if booking.booked_for != "GUEST":
        return None
    creator = _clean(booking.created_by_employee_id)
    return f"guest-creator:{creator}" if creator else None


def _guest_name(booking: DaySlotBooking) -> Optional[str]:
    if booking.booked_for != "GUEST":
        return None
    name = _clean(booking.guest_name)
    return f"guest-name:{name.lower()}" if name else None


def _holder_id(booking: DaySlotBooking) -> Optional[str]:
    employee_id = _clean(booking.employee_id)
    return f"self-employee:{employee_id}" if employee_id else None


def _holder_email(booking: DaySlotBooking) -> Optional[str]:
    email = _clean(booking.user_email)
    return f"self-email:{email.lower()}" if email else None


IDENTITY_EXTRACTORS: tuple[IdentityExtractor, ...] = (
    _guest_creator,
    _guest_name,
    _holder_id,
    _holder_email,
)


def booking_identity(booking: DaySlotBooking, fallback_index: int) -> str:
    """Return the first identity key any extractor yields, else a positional one."""
    for extractor in IDENTITY_EXTRACTORS:
        identity = extractor(booking)
        if identity is not None:
            return identity
    return f"fallback:{booking.id if booking.id is not None else fallback_index}"


def _normalized(booking: DaySlotBooking, day_slot: DaySlot, **extra) -> NormalizedDaySlotBooking:
    values = {item.name: getattr(booking, item.name) for item in fields(DaySlotBooking)}
    values["day_slot"] = day_slot.value
    values.update(extra)
    return NormalizedDaySlotBooking(**values)


def normalize_day_slot_bookings_per_entry(
    bookings: Sequence[DaySlotBooking],
) -> list[NormalizedDaySlotBooking]:
    """Tag each booking with its own slot; bookings without slot data count as FULL."""
    return [
        _normalized(booking, resolve_day_slot(booking) or DaySlot.FULL)
        for booking in bookings
    ]


def normalize_day_slot_bookings(
    bookings: Sequence[DaySlotBooking],
) -> list[NormalizedDaySlotBooking]:
    """Collapse matching AM + PM bookings of one identity into a virtual FULL entry.

    FULL bookings are emitted once per identity and suppress that identity's
    half-day bookings. Bookings without slot data pass through as FULL.
    """
    if len(bookings) <= 1:
        return normalize_day_slot_bookings_per_entry(bookings)

    full_bookings: list[DaySlotBooking] = []
    half_day_bookings: list[tuple[DaySlotBooking, DaySlot]] = []
    passthrough: list[DaySlotBooking] = []
    for booking in bookings:
        slot = resolve_day_slot(booking)
        if slot is None:
            passthrough.append(booking)
        elif slot == DaySlot.FULL:
            full_bookings.append(booking)
        else:
            half_day_bookings.append((booking, slot))

    full_by_identity: dict[str, DaySlotBooking] = {}
    for index, booking in enumerate(full_bookings):
        full_by_identity[booking_identity(booking, index)] = booking

    grouped_half_day: dict[str, dict[DaySlot, DaySlotBooking]] = {}
    for index, (booking, slot) in enumerate(half_day_bookings):
        group = grouped_half_day.setdefault(booking_identity(booking, index), {})
        group[slot] = booking

    normalized: list[NormalizedDaySlotBooking] = []
    for identity, booking in full_by_identity.items():
        normalized.append(_normalized(booking, DaySlot.FULL))
        grouped_half_day.pop(identity, None)

    for group in grouped_half_day.values():
        am = group.get(DaySlot.AM)
        pm = group.get(DaySlot.PM)
        if am is not None and pm is not None:
            normalized.append(
                _normalized(
                    am,
                    DaySlot.FULL,
                    source_booking_ids=tuple(
                        booking_id for booking_id in (am.id, pm.id) if booking_id
                    ),
                    is_virtual_merged=True,
                )
            )
            continue
        if am is not None:
            normalized.append(_normalized(am, DaySlot.AM))
        if pm is not None:
            normalized.append(_normalized(pm, DaySlot.PM))

    for booking in passthrough:
        normalized.append(_normalized(booking, DaySlot.FULL))

    return normalized
