from __future__ import annotations

import math
from datetime import date, datetime

import pytest

from booking_engine.domain.models import MinuteInterval, RingSegment
from booking_engine.services.interval_service import (
    booking_interval_on_day,
    clamp_interval,
    compute_occupancy,
    format_minutes,
    intervals_to_segments,
    invert_intervals,
    merge_intervals,
    overlaps_half_open_intervals,
)
from booking_engine.utils.time_format import parse_timestamp, to_minutes


def _iv(start: float, end: float) -> MinuteInterval:
    return MinuteInterval(start_min=start, end_min=end)


def test_touching_interval_boundaries_are_not_treated_as_overlap() -> None:
    assert overlaps_half_open_intervals(8 * 60, 14 * 60, 14 * 60, 16 * 60) is False
    assert overlaps_half_open_intervals(14 * 60, 16 * 60, 8 * 60, 14 * 60) is False


def test_shifting_a_touching_bound_by_one_minute_overlaps() -> None:
    assert overlaps_half_open_intervals(8 * 60, 10 * 60, 10 * 60, 12 * 60) is False
    assert overlaps_half_open_intervals(8 * 60, 10 * 60, 9 * 60 + 59, 12 * 60) is True
    assert overlaps_half_open_intervals(8 * 60, 10 * 60 + 1, 10 * 60, 12 * 60) is True


def test_invalid_or_empty_intervals_are_never_treated_as_overlap() -> None:
    assert overlaps_half_open_intervals(10 * 60, 10 * 60, 10 * 60, 12 * 60) is False
    assert overlaps_half_open_intervals(12 * 60, 10 * 60, 10 * 60, 12 * 60) is False
    assert overlaps_half_open_intervals(600, 600, 600, 600) is False


@pytest.mark.parametrize(
    "left, right",
    [
        ((0, 60), (30, 90)),
        ((0, 60), (60, 120)),
        ((100, 50), (0, 200)),
        ((0, 1440), (720, 721)),
        ((300, 400), (0, 10)),
    ],
)
def test_overlap_is_symmetric(left, right) -> None:
    assert overlaps_half_open_intervals(*left, *right) == overlaps_half_open_intervals(*right, *left)


def test_non_empty_interval_overlaps_itself() -> None:
    assert overlaps_half_open_intervals(480, 600, 480, 600) is True


@pytest.mark.parametrize(
    "value, expected",
    [("00:00", 0), ("07:30", 450), ("23:59", 1439)],
)
def test_to_minutes_parses_hhmm(value: str, expected: int) -> None:
    assert to_minutes(value) == expected


@pytest.mark.parametrize("value", ["24:00", "7:30", "07:61", "ab:cd", "", "07:30:00"])
def test_to_minutes_rejects_invalid_strings(value: str) -> None:
    assert math.isnan(to_minutes(value))


def test_format_minutes_floors_and_clamps() -> None:
    assert format_minutes(450.9) == "07:30"
    assert format_minutes(-5) == "00:00"
    assert format_minutes(2000) == "24:00"
    assert format_minutes(math.nan) == ""


def test_merge_folds_overlapping_and_touching_intervals() -> None:
    merged = merge_intervals([_iv(600, 660), _iv(480, 540), _iv(540, 570), _iv(650, 700)])
    assert merged == [_iv(480, 570), _iv(600, 700)]


def test_merge_drops_nan_and_empty_inputs() -> None:
    merged = merge_intervals(
        [_iv(to_minutes("bad"), 600), _iv(500, 500), _iv(700, 650), _iv(480, 540)]
    )
    assert merged == [_iv(480, 540)]


def test_merge_is_idempotent() -> None:
    raw = [_iv(30, 90), _iv(0, 10), _iv(10, 20), _iv(85, 200), _iv(300, 310)]
    once = merge_intervals(raw)
    assert merge_intervals(once) == once
    for left, right in zip(once, once[1:]):
        assert left.end_min < right.start_min


def test_invert_and_merge_reconstruct_window() -> None:
    window_start, window_end = 420, 1080
    merged = merge_intervals([_iv(400, 480), _iv(600, 660), _iv(660, 720), _iv(1000, 1200)])
    free = invert_intervals(window_start, window_end, merged)
    assert free == [_iv(480, 600), _iv(720, 1000)]

    clamped = [clamp_interval(interval, window_start, window_end) for interval in merged]
    pieces = sorted(
        [interval for interval in clamped if interval is not None] + free,
        key=lambda interval: interval.start_min,
    )
    assert pieces[0].start_min == window_start
    assert pieces[-1].end_min == window_end
    for left, right in zip(pieces, pieces[1:]):
        assert left.end_min == right.start_min


def test_invert_of_nothing_is_whole_window() -> None:
    assert invert_intervals(420, 1080, []) == [_iv(420, 1080)]


def test_invert_clips_gaps_to_window() -> None:
    assert invert_intervals(420, 600, [_iv(700, 800)]) == [_iv(420, 600)]


def test_intervals_to_segments_maps_to_fractions() -> None:
    segments = intervals_to_segments(0, 100, [_iv(25, 50), _iv(90, 150), _iv(-20, 10)])
    assert segments == [
        RingSegment(p0=0.25, p1=0.5),
        RingSegment(p0=0.9, p1=1.0),
        RingSegment(p0=0.0, p1=0.1),
    ]


def test_intervals_to_segments_drops_zero_width_and_bad_window() -> None:
    assert intervals_to_segments(0, 100, [_iv(40, 40)]) == []
    assert intervals_to_segments(100, 100, [_iv(0, 50)]) == []
    assert intervals_to_segments(100, 50, [_iv(0, 50)]) == []


def test_clamp_interval() -> None:
    assert clamp_interval(_iv(300, 500), 420, 1080) == _iv(420, 500)
    assert clamp_interval(_iv(100, 300), 420, 1080) is None
    assert clamp_interval(_iv(math.nan, 500), 420, 1080) is None


def test_compute_occupancy_in_business_window() -> None:
    metrics = compute_occupancy([_iv(360, 480), _iv(480, 540), _iv(1020, 1200)])
    assert metrics.intervals == [_iv(420, 540), _iv(1020, 1080)]
    assert metrics.free_intervals == [_iv(540, 1020)]
    assert metrics.occupied_minutes == 180
    assert metrics.window_minutes == 660
    assert metrics.occupied_ratio == pytest.approx(180 / 660)
    assert metrics.segments[0] == RingSegment(p0=0.0, p1=120 / 660)


def test_compute_occupancy_with_invalid_window_is_empty() -> None:
    metrics = compute_occupancy([_iv(480, 540)], window_start="18:00", window_end="07:00")
    assert metrics.intervals == []
    assert metrics.segments == []
    assert metrics.occupied_ratio == 0.0


def test_parse_timestamp_reads_wall_clock_and_ignores_clock_times() -> None:
    assert parse_timestamp("2024-03-04T09:15:00") == datetime(2024, 3, 4, 9, 15)
    assert parse_timestamp("2024-03-04T09:15:00+02:00") == datetime(2024, 3, 4, 9, 15)
    assert parse_timestamp("2024-03-04T09:15:00Z") == datetime(2024, 3, 4, 9, 15)
    assert parse_timestamp("09:15") is None
    assert parse_timestamp("tomorrow") is None
    assert parse_timestamp(None) is None


def test_booking_interval_on_day_reads_clock_times() -> None:
    assert booking_interval_on_day("08:00", "09:30") == _iv(480, 570)
    assert booking_interval_on_day("09:30", "08:00") is None
    assert booking_interval_on_day("08:00", None) is None


def test_booking_interval_on_day_skips_clock_times_dated_on_another_day() -> None:
    day = date(2024, 3, 4)
    assert booking_interval_on_day("08:00", "09:00", day, booking_date="2024-03-04") == _iv(480, 540)
    assert booking_interval_on_day("08:00", "09:00", day, booking_date="2024-03-04T00:00:00") == _iv(
        480, 540
    )
    assert booking_interval_on_day("08:00", "09:00", day, booking_date="2024-03-05") is None
    assert booking_interval_on_day("08:00", "09:00", day) == _iv(480, 540)


def test_booking_interval_on_day_clips_multi_day_timestamps() -> None:
    start, end = "2024-03-03T20:00:00", "2024-03-05T10:30:00"
    assert booking_interval_on_day(start, end, date(2024, 3, 3)) == _iv(1200, 1440)
    assert booking_interval_on_day(start, end, date(2024, 3, 4)) == _iv(0, 1440)
    assert booking_interval_on_day(start, end, date(2024, 3, 5)) == _iv(0, 630)
    assert booking_interval_on_day(start, end, date(2024, 3, 6)) is None


def test_booking_interval_on_day_defaults_to_start_date_for_timestamps() -> None:
    assert booking_interval_on_day("2024-03-04T09:00:00", "2024-03-04T11:15:00") == _iv(540, 675)
    assert booking_interval_on_day("2024-03-04T22:00:00", "2024-03-05T02:00:00") == _iv(1320, 1440)


def test_booking_interval_on_day_rejects_mixed_or_inverted_timestamps() -> None:
    day = date(2024, 3, 4)
    assert booking_interval_on_day("08:00", "2024-03-04T10:00:00", day) is None
    assert booking_interval_on_day("2024-03-04T10:00:00", "2024-03-04T09:00:00", day) is None
    assert booking_interval_on_day("2024-03-04T10:00:00", "not-a-time", day) is None
