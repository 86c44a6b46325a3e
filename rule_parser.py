from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import re
from types import MappingProxyType

MINUTES_PER_DAY = 1440

DAY_TO_INDEX = MappingProxyType(
    {
        "SU": 0,
        "MO": 1,
        "M": 1,
        "TU": 2,
        "WE": 3,
        "W": 3,
        "TH": 4,
        "FR": 5,
        "F": 5,
        "SA": 6,
    }
)

_DAY_SEPARATORS = re.compile(r"[,;\s]+")
_DIGIT_RANGE = re.compile(r"^(\d{3,4})-(\d{3,4})$")
_MERIDIEM_RANGE = re.compile(
    r"^(\d{1,2})(?::?(\d{2}))?(am|pm)?-(\d{1,2})(?::?(\d{2}))?(am|pm)?$"
)


class RuleSentinel(Enum):
    UNRESTRICTED = "unrestricted"
    UNPARSEABLE = "unparseable"


UNRESTRICTED = RuleSentinel.UNRESTRICTED
UNPARSEABLE = RuleSentinel.UNPARSEABLE


@dataclass(frozen=True)
class TimeWindow:
    start_minute: int
    end_minute: int

    @property
    def is_overnight(self) -> bool:
        return self.end_minute <= self.start_minute

    @property
    def is_all_day(self) -> bool:
        return self.start_minute == 0 and self.end_minute == MINUTES_PER_DAY


ALL_DAY = TimeWindow(0, MINUTES_PER_DAY)

DaySet = frozenset[int] | RuleSentinel
TimeRange = TimeWindow | RuleSentinel


def parse_days(raw: object) -> DaySet:
    """Parse a days string such as "M-F" or "SA,SU" into weekday indices (0=Sunday)."""
    if not raw or not isinstance(raw, str):
        return UNRESTRICTED

    days: set[int] = set()
    for token in _DAY_SEPARATORS.split(raw.upper()):
        token = token.strip()
        if not token:
            continue

        if "-" in token:
            start_token, end_token = token.split("-")[:2]
            start_idx = DAY_TO_INDEX.get(start_token.strip())
            end_idx = DAY_TO_INDEX.get(end_token.strip())
            if start_idx is None or end_idx is None:
                continue
            # Ranges across the week boundary ("FR-MO") add nothing.
            days.update(range(start_idx, end_idx + 1))
            continue

        day_idx = DAY_TO_INDEX.get(token)
        if day_idx is not None:
            days.add(day_idx)

    return frozenset(days) if days else UNRESTRICTED


def _to_minutes(hour: int, minute: int, *, limit: int) -> int | None:
    total = hour * 60 + minute
    if minute > 59 or total > limit:
        return None
    return total


def _window(start: tuple[int, int], end: tuple[int, int]) -> TimeRange:
    # 2400 is accepted only as an end of day.
    start_minute = _to_minutes(*start, limit=MINUTES_PER_DAY - 1)
    end_minute = _to_minutes(*end, limit=MINUTES_PER_DAY)
    if start_minute is None or end_minute is None:
        return UNPARSEABLE
    return TimeWindow(start_minute, end_minute)


def parse_time_range(raw: object) -> TimeRange:
    """Parse an hours string into a TimeWindow.

    Supports "0900-1800", "900-1730", "8am-6pm", "9:30am-5pm" and
    "ANYTIME"/"24 HR". Absent input means all day; anything else that does
    not match returns UNPARSEABLE.
    """
    if not raw or not isinstance(raw, str):
        return ALL_DAY
    upper = raw.upper()
    if "ANYTIME" in upper or "24 HR" in upper:
        return ALL_DAY

    cleaned = re.sub(r"\s", "", raw).lower()

    match = _DIGIT_RANGE.match(cleaned)
    if match:
        start_str = match.group(1).zfill(4)
        end_str = match.group(2).zfill(4)
        return _window(
            (int(start_str[:2]), int(start_str[2:])),
            (int(end_str[:2]), int(end_str[2:])),
        )

    match = _MERIDIEM_RANGE.match(cleaned)
    if not match:
        return UNPARSEABLE

    h1, m1, ampm1, h2, m2, ampm2 = match.groups()
    start_hour, start_min = int(h1), int(m1 or 0)
    end_hour, end_min = int(h2), int(m2 or 0)

    if ampm1 == "pm" and start_hour < 12:
        start_hour += 12
    if ampm1 == "am" and start_hour == 12:
        start_hour = 0
    if ampm2 == "pm" and end_hour < 12:
        end_hour += 12
    if ampm2 == "am" and end_hour == 12:
        end_hour = 0

    # "8-7am": only the end carries a meridiem and the naive parse ends before
    # it starts, so the start is read as afternoon.
    if ampm2 and not ampm1:
        if (end_hour, end_min) < (start_hour, start_min) and start_hour < 12:
            start_hour += 12

    return _window((start_hour, start_min), (end_hour, end_min))
