from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

from regulation_classifier import RPP, classify_regulation, rpp_areas
from rule_engine import calculate_coverage, intersects_range, is_active_at
from schemas import RegulationEvaluation, SimulationSummary

DEFAULT_TZ = "America/Los_Angeles"


def to_local(instant: datetime, timezone_name: str = DEFAULT_TZ) -> datetime:
    """Convert aware timestamps to the city's wall clock; naive ones are taken as local."""
    if instant.tzinfo is None:
        return instant
    return instant.astimezone(ZoneInfo(timezone_name))


def _text(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _split_feature(record: Mapping[str, Any]) -> tuple[Mapping[str, Any], dict | None, bool]:
    properties = record.get("properties")
    if isinstance(properties, Mapping):
        geometry = record.get("geometry")
        return properties, geometry if isinstance(geometry, dict) else None, True
    return record, None, False


def filter_by_class(records: Iterable[Mapping[str, Any]], allowed: set[str]) -> list[Mapping[str, Any]]:
    kept = []
    for record in records:
        properties, _, _ = _split_feature(record)
        if classify_regulation(properties) in allowed:
            kept.append(record)
    return kept


def evaluate_record(
    record: Mapping[str, Any],
    *,
    index: int,
    mode: str,
    at: datetime | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    assume_rpp_permit: bool = False,
) -> RegulationEvaluation:
    properties, geometry, is_feature = _split_feature(record)
    regulation_class = classify_regulation(properties)
    exempt = assume_rpp_permit and regulation_class == RPP

    coverage = None
    if mode == "point":
        active = False if exempt else is_active_at(properties, at)
    else:
        active = False if exempt else intersects_range(properties, start, end)
        coverage = 1.0 if exempt else calculate_coverage(properties, start, end)

    return RegulationEvaluation(
        index=index,
        regulation=_text(properties.get("regulation")),
        days=_text(properties.get("days")),
        hours=_text(properties.get("hours")),
        hrlimit=_text(properties.get("hrlimit")),
        regulation_class=regulation_class,
        rpp_areas=rpp_areas(properties),
        active=active,
        coverage=coverage,
        exempt=exempt,
        properties=dict(properties) if is_feature else None,
        geometry=geometry,
    )


def evaluate_records(
    records: Iterable[Mapping[str, Any]],
    *,
    mode: str,
    at: datetime | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    assume_rpp_permit: bool = False,
    timezone_name: str = DEFAULT_TZ,
) -> list[RegulationEvaluation]:
    if mode == "point":
        if at is None:
            raise ValueError("point mode requires 'at'")
        at = to_local(at, timezone_name)
    else:
        if start is None or end is None:
            raise ValueError("interval mode requires 'start' and 'end'")
        start = to_local(start, timezone_name)
        end = to_local(end, timezone_name)
        if start.date() != end.date():
            raise ValueError("interval mode requires 'start' and 'end' on the same local day")

    return [
        evaluate_record(
            record,
            index=index,
            mode=mode,
            at=at,
            start=start,
            end=end,
            assume_rpp_permit=assume_rpp_permit,
        )
        for index, record in enumerate(records)
    ]


def summarize_results(results: list[RegulationEvaluation]) -> SimulationSummary:
    active = sum(1 for r in results if r.active)
    coverages = [r.coverage for r in results if r.coverage is not None]
    mean_coverage = round(sum(coverages) / len(coverages), 4) if coverages else None
    return SimulationSummary(
        total=len(results),
        active=active,
        inactive=len(results) - active,
        mean_coverage=mean_coverage,
        by_class=dict(Counter(r.regulation_class for r in results)),
    )
