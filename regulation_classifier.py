from __future__ import annotations

from collections.abc import Mapping
import re
from typing import Any

from rule_engine import NO_PARKING_PATTERN

NO_PARKING = "no_parking"
PERMIT_ONLY = "permit_only"
RPP = "rpp"
TIME_LIMIT = "time_limit"
UNKNOWN = "unknown"

REGULATION_CLASSES = (NO_PARKING, PERMIT_ONLY, RPP, TIME_LIMIT, UNKNOWN)

RPP_FIELDS = ("rpparea1", "rpparea2", "rpparea3", "rpp_sym", "sym_rpp2")

_PERMIT_ONLY_PATTERN = re.compile(r"commercial|truck|taxi|permit\s*only|loading")
_TIME_LIMIT_PATTERN = re.compile(r"time\s*limit|\b\d+\s*(min|hour|hr|h)\b")


def has_rpp_area(record: Mapping[str, Any]) -> bool:
    return any(record.get(field) for field in RPP_FIELDS)


def rpp_areas(record: Mapping[str, Any]) -> list[str]:
    areas = [str(record[key]) for key in ("rpparea1", "rpparea2", "rpparea3") if record.get(key)]
    if areas:
        return areas
    symbol = record.get("rpp_sym") or record.get("sym_rpp2")
    return [str(symbol)] if symbol else []


def classify_regulation(record: Mapping[str, Any]) -> str:
    text = str(record.get("regulation") or "").lower()

    if NO_PARKING_PATTERN.search(text):
        return NO_PARKING
    if _PERMIT_ONLY_PATTERN.search(text):
        return PERMIT_ONLY
    if has_rpp_area(record):
        return RPP

    has_time_limit = bool(record.get("hrlimit") or record.get("hours"))
    if has_time_limit or _TIME_LIMIT_PATTERN.search(text):
        return TIME_LIMIT
    return UNKNOWN
