from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from numbers import Real
import re
from typing import Any

from rule_parser import (
    ALL_DAY,
    MINUTES_PER_DAY,
    UNRESTRICTED,
    DaySet,
    TimeRange,
    TimeWindow,
    parse_days,
    parse_time_range,
)

NO_PARKING_PATTERN = re.compile(r"no\s*parking|tow-?away")
_FIRST_INTEGER = re.compile(r"(\d+)")


@dataclass(frozen=True)
class WindowSegment:
    start_minute: int
    end_minute: int
    day_offset: int  # 0 = same day as the window start, -1 = spilled over from yesterday


@dataclass(frozen=True)
class IntervalEvaluation:
    active: bool
    coverage: float


def sunday_weekday(instant: datetime) -> int:
    """Weekday index with Sunday as 0, matching the regulation feed."""
    return (instant.weekday() + 1) % 7


def minute_of_day(instant: datetime) -> int:
    return instant.hour * 60 + instant.minute


def effective_window(time_range: TimeRange) -> TimeWindow:
    return time_range if isinstance(time_range, TimeWindow) else ALL_DAY


def window_segments(window: TimeWindow) -> tuple[WindowSegment, ...]:
    if window.is_overnight:
        return (
            WindowSegment(window.start_minute, MINUTES_PER_DAY, 0),
            WindowSegment(0, window.end_minute, -1),
        )
    return (WindowSegment(window.start_minute, window.end_minute, 0),)


def overlap_minutes(window: TimeWindow, start_minute: int, end_minute: int) -> int:
    """Minutes of the half-open query [start_minute, end_minute) inside the window."""
    total = 0
    for segment in window_segments(window):
        overlap_start = max(segment.start_minute, start_minute)
        overlap_end = min(segment.end_minute, end_minute)
        if overlap_start < overlap_end:
            total += overlap_end - overlap_start
    return total


def _day_applies(days: DaySet, weekday: int) -> bool:
    return days is UNRESTRICTED or weekday in days


def _is_time_unrestricted(time_range: TimeRange) -> bool:
    return not isinstance(time_range, TimeWindow) or time_range.is_all_day


def is_active_at(record: Mapping[str, Any], instant: datetime) -> bool:
    days = parse_days(record.get("days"))
    window = effective_window(parse_time_range(record.get("hours")))
    weekday = sunday_weekday(instant)
    now_minute = minute_of_day(instant)

    for segment in window_segments(window):
        if not segment.start_minute <= now_minute < segment.end_minute:
            continue
        # The post-midnight part of an overnight rule belongs to yesterday.
        if _day_applies(days, (weekday + segment.day_offset) % 7):
            return True
    return False


def intersects_range(record: Mapping[str, Any], start: datetime, end: datetime) -> bool:
    """Whether the regulation is in force at any point of [start, end).

    Both instants are assumed to fall on the same calendar day. An overnight
    rule from the previous day is not considered when today is excluded.
    """
    days = parse_days(record.get("days"))
    time_range = parse_time_range(record.get("hours"))

    if not _day_applies(days, sunday_weekday(start)):
        return False
    if _is_time_unrestricted(time_range):
        return True
    return overlap_minutes(time_range, minute_of_day(start), minute_of_day(end)) > 0


def extract_limit_minutes(value: object) -> int | float | None:
    """Hour limit in minutes from "2", "2 HR" or a number; None when absent or not positive."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        match = _FIRST_INTEGER.search(value)
        minutes = int(match.group(1)) * 60 if match else None
    elif isinstance(value, Real):
        minutes = value * 60
    else:
        minutes = None
    if not minutes or minutes < 0:
        return None
    return minutes


def is_no_parking(record: Mapping[str, Any]) -> bool:
    text = str(record.get("regulation") or "").lower()
    return NO_PARKING_PATTERN.search(text) is not None


def calculate_coverage(record: Mapping[str, Any], start: datetime, end: datetime) -> float:
    """Fraction of [start, end) during which parking is permitted.

    No-parking and tow-away overlap is fully unavailable; a time-limited
    regulation lets the vehicle stay for up to its hour limit inside the
    regulated overlap. Returns 0 for an empty or inverted interval.
    """
    start_minute = minute_of_day(start)
    end_minute = minute_of_day(end)
    duration = end_minute - start_minute
    if duration <= 0:
        return 0.0

    days = parse_days(record.get("days"))
    if not _day_applies(days, sunday_weekday(start)):
        return 1.0

    time_range = parse_time_range(record.get("hours"))
    if _is_time_unrestricted(time_range):
        regulated = duration
    else:
        regulated = overlap_minutes(time_range, start_minute, end_minute)

    if regulated == 0:
        return 1.0

    free_minutes = duration - regulated
    if is_no_parking(record):
        return free_minutes / duration

    limit_minutes = extract_limit_minutes(record.get("hrlimit") or record.get("hours"))
    if limit_minutes:
        allowed = min(limit_minutes, regulated)
        return min(1.0, (free_minutes + allowed) / duration)

    return free_minutes / duration


def evaluate_interval(record: Mapping[str, Any], start: datetime, end: datetime) -> IntervalEvaluation:
    return IntervalEvaluation(
        active=intersects_range(record, start, end),
        coverage=calculate_coverage(record, start, end),
    )
