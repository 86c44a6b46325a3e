from datetime import UTC, datetime
from threading import Lock
from typing import Literal, Optional

from fastapi import FastAPI, HTTPException, Query

from config import get_settings
from decision_engine import evaluate_records, filter_by_class, summarize_results, to_local
from regulation_classifier import NO_PARKING, PERMIT_ONLY, RPP, TIME_LIMIT, UNKNOWN
from regulation_feed import BoundingBox, feed_cache, fetch_regulation_features
from schemas import (
    EvaluationRequest,
    EvaluationResponse,
    FreshnessInfo,
    HealthResponse,
    RegulationEvaluation,
)

settings = get_settings()

app = FastAPI(
    title=settings.app_name,
    description="San Francisco curb regulation simulator: is parking allowed at a time or over an interval?",
    version="0.1.0",
)

_UPSTREAM_LOCK = Lock()
_LATEST_UPSTREAM_STATUS = {
    "regulations": {"status": "not_requested", "cache_hit": None, "fetched_at": None},
}


def _require_query_times(
    mode: str,
    at: datetime | None,
    start: datetime | None,
    end: datetime | None,
) -> None:
    if mode == "point":
        if at is None:
            raise HTTPException(status_code=422, detail="Point mode requires 'at'.")
        return
    if start is None or end is None:
        raise HTTPException(status_code=422, detail="Interval mode requires 'start' and 'end'.")
    if (start.tzinfo is None) != (end.tzinfo is None):
        raise HTTPException(status_code=422, detail="'start' and 'end' must both carry a timezone or neither.")
    if end <= start:
        raise HTTPException(status_code=422, detail="'end' must be after 'start'.")
    if to_local(start, settings.timezone).date() != to_local(end, settings.timezone).date():
        raise HTTPException(status_code=422, detail="'start' and 'end' must fall on the same local day.")


def _build_response(
    *,
    records: list[dict],
    mode: str,
    at: datetime | None,
    start: datetime | None,
    end: datetime | None,
    assume_rpp_permit: bool,
    include_inactive: bool,
    freshness: dict | None = None,
    source: str | None = None,
) -> EvaluationResponse:
    results = evaluate_records(
        records,
        mode=mode,
        at=at,
        start=start,
        end=end,
        assume_rpp_permit=assume_rpp_permit,
        timezone_name=settings.timezone,
    )
    summary = summarize_results(results)

    returned: list[RegulationEvaluation] = results
    if not include_inactive:
        returned = [r for r in results if r.active]

    return EvaluationResponse(
        mode=mode,
        at=at,
        start=start,
        end=end,
        timezone=settings.timezone,
        results=returned,
        summary=summary,
        data_freshness=FreshnessInfo(**freshness) if freshness else None,
        source=source,
    )


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(status="ok")


@app.get("/system-health")
def system_health() -> dict:
    with _UPSTREAM_LOCK:
        upstream = dict(_LATEST_UPSTREAM_STATUS)
    return {
        "status": "ok",
        "service": app.title,
        "version": app.version,
        "timestamp": datetime.now(UTC),
        "timezone": settings.timezone,
        "cache": feed_cache.stats(),
        "upstream": upstream,
    }


@app.post("/evaluate", response_model=EvaluationResponse)
def evaluate(request: EvaluationRequest) -> EvaluationResponse:
    _require_query_times(request.mode, request.at, request.start, request.end)
    return _build_response(
        records=request.records,
        mode=request.mode,
        at=request.at,
        start=request.start,
        end=request.end,
        assume_rpp_permit=request.assume_rpp_permit,
        include_inactive=request.include_inactive,
    )


@app.get("/regulations", response_model=EvaluationResponse)
def get_regulations(
    north: float = Query(37.7800, description="Northern latitude of the viewport"),
    south: float = Query(37.7700, description="Southern latitude of the viewport"),
    east: float = Query(-122.4100, description="Eastern longitude of the viewport"),
    west: float = Query(-122.4300, description="Western longitude of the viewport"),
    mode: Literal["point", "interval"] = Query("point", description="point | interval"),
    at: Optional[datetime] = Query(None, description="Instant to evaluate (point mode); defaults to now"),
    start: Optional[datetime] = Query(None, description="Interval start (interval mode)"),
    end: Optional[datetime] = Query(None, description="Interval end (interval mode)"),
    limit: Optional[int] = Query(None, ge=1, le=5000, description="Maximum features requested from the feed"),
    show_no_parking: bool = Query(True),
    show_time_limit: bool = Query(True),
    show_rpp: bool = Query(True),
    show_permit: bool = Query(True),
    assume_rpp_permit: bool = Query(False, description="Treat residential permit areas as exempt"),
    include_inactive: bool = Query(True, description="Include regulations not in force"),
) -> EvaluationResponse:
    if north <= south or east <= west:
        raise HTTPException(status_code=422, detail="Bounding box must satisfy north > south and east > west.")
    if mode == "point" and at is None:
        at = datetime.now(UTC)
    _require_query_times(mode, at, start, end)

    features, freshness = fetch_regulation_features(
        BoundingBox(north=north, south=south, east=east, west=west),
        limit=limit,
    )
    with _UPSTREAM_LOCK:
        _LATEST_UPSTREAM_STATUS["regulations"] = freshness

    allowed = {UNKNOWN}
    if show_no_parking:
        allowed.add(NO_PARKING)
    if show_time_limit:
        allowed.add(TIME_LIMIT)
    if show_rpp:
        allowed.add(RPP)
    if show_permit:
        allowed.add(PERMIT_ONLY)

    return _build_response(
        records=filter_by_class(features, allowed),
        mode=mode,
        at=at,
        start=start,
        end=end,
        assume_rpp_permit=assume_rpp_permit,
        include_inactive=include_inactive,
        freshness=freshness,
        source=f"SF Open Data ({settings.dataset_id})",
    )
