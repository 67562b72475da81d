from __future__ import annotations

from booking_engine.domain.models import DaySlot, DaySlotBooking
from booking_engine.services.day_slot_service import (
    booking_identity,
    normalize_day_slot_bookings,
    normalize_day_slot_bookings_per_entry,
    resolve_day_slot,
)


def test_resolve_day_slot_prefers_full_and_reads_legacy_slot() -> None:
    assert resolve_day_slot(DaySlotBooking(day_slot="AM", slot="FULL_DAY")) == DaySlot.FULL
    assert resolve_day_slot(DaySlotBooking(slot="MORNING")) == DaySlot.AM
    assert resolve_day_slot(DaySlotBooking(slot="AFTERNOON")) == DaySlot.PM
    assert resolve_day_slot(DaySlotBooking(slot="CUSTOM")) is None
    assert resolve_day_slot(DaySlotBooking()) is None


def test_identity_priority_chain() -> None:
    guest = DaySlotBooking(
        booked_for="GUEST",
        created_by_employee_id=" emp-1 ",
        guest_name="Ada",
        employee_id="emp-9",
    )
    assert booking_identity(guest, 0) == "guest-creator:emp-1"

    named_guest = DaySlotBooking(booked_for="GUEST", guest_name="  Ada Lovelace ")
    assert booking_identity(named_guest, 0) == "guest-name:ada lovelace"

    holder = DaySlotBooking(booked_for="SELF", employee_id="emp-2", user_email="x@example.com")
    assert booking_identity(holder, 0) == "self-employee:emp-2"

    by_email = DaySlotBooking(user_email=" Someone@Example.COM ")
    assert booking_identity(by_email, 0) == "self-email:someone@example.com"

    assert booking_identity(DaySlotBooking(id="b-7"), 3) == "fallback:b-7"
    assert booking_identity(DaySlotBooking(), 3) == "fallback:3"


def test_single_booking_is_tagged_with_its_slot() -> None:
    [am] = normalize_day_slot_bookings([DaySlotBooking(id="a", day_slot="AM")])
    assert am.day_slot == "AM"
    assert am.is_virtual_merged is False

    [unknown] = normalize_day_slot_bookings([DaySlotBooking(id="b")])
    assert unknown.day_slot == "FULL"


def test_am_and_pm_of_same_identity_merge_into_virtual_full() -> None:
    normalized = normalize_day_slot_bookings(
        [
            DaySlotBooking(id="am-1", employee_id="emp-1", day_slot="AM", resource_id="desk-4"),
            DaySlotBooking(id="pm-1", employee_id="emp-1", day_slot="PM", resource_id="desk-4"),
        ]
    )
    assert len(normalized) == 1
    merged = normalized[0]
    assert merged.day_slot == "FULL"
    assert merged.is_virtual_merged is True
    assert merged.source_booking_ids == ("am-1", "pm-1")
    assert merged.id == "am-1"
    assert merged.resource_id == "desk-4"


def test_half_days_of_different_identities_stay_separate() -> None:
    normalized = normalize_day_slot_bookings(
        [
            DaySlotBooking(id="am-1", employee_id="emp-1", day_slot="AM"),
            DaySlotBooking(id="pm-2", employee_id="emp-2", day_slot="PM"),
        ]
    )
    assert [(item.id, item.day_slot) for item in normalized] == [("am-1", "AM"), ("pm-2", "PM")]
    assert not any(item.is_virtual_merged for item in normalized)


def test_guest_bookings_merge_by_creator() -> None:
    normalized = normalize_day_slot_bookings(
        [
            DaySlotBooking(id="g-am", booked_for="GUEST", created_by_employee_id="emp-5", slot="MORNING"),
            DaySlotBooking(id="g-pm", booked_for="GUEST", created_by_employee_id="emp-5", slot="AFTERNOON"),
        ]
    )
    assert len(normalized) == 1
    assert normalized[0].source_booking_ids == ("g-am", "g-pm")


def test_full_booking_dominates_half_days_of_same_identity() -> None:
    normalized = normalize_day_slot_bookings(
        [
            DaySlotBooking(id="full-1", employee_id="emp-1", day_slot="FULL"),
            DaySlotBooking(id="am-1", employee_id="emp-1", day_slot="AM"),
            DaySlotBooking(id="pm-3", employee_id="emp-3", day_slot="PM"),
        ]
    )
    assert [(item.id, item.day_slot) for item in normalized] == [("full-1", "FULL"), ("pm-3", "PM")]
    assert normalized[0].is_virtual_merged is False


def test_passthrough_bookings_are_emitted_last_as_full() -> None:
    normalized = normalize_day_slot_bookings(
        [
            DaySlotBooking(id="custom", employee_id="emp-1", slot="CUSTOM"),
            DaySlotBooking(id="am-2", employee_id="emp-2", day_slot="AM"),
        ]
    )
    assert [(item.id, item.day_slot) for item in normalized] == [("am-2", "AM"), ("custom", "FULL")]


def test_per_entry_never_merges() -> None:
    normalized = normalize_day_slot_bookings_per_entry(
        [
            DaySlotBooking(id="am-1", employee_id="emp-1", day_slot="AM"),
            DaySlotBooking(id="pm-1", employee_id="emp-1", day_slot="PM"),
            DaySlotBooking(id="x"),
        ]
    )
    assert [item.day_slot for item in normalized] == ["AM", "PM", "FULL"]


def test_merging_is_by_identity_not_by_resource() -> None:
    normalized = normalize_day_slot_bookings(
        [
            DaySlotBooking(id="am-1", employee_id="emp-1", day_slot="AM", resource_id="desk-4"),
            DaySlotBooking(id="pm-1", employee_id="emp-1", day_slot="PM", resource_id="desk-7"),
        ]
    )
    assert len(normalized) == 1
    assert normalized[0].source_booking_ids == ("am-1", "pm-1")
    assert normalized[0].resource_id == "desk-4"
