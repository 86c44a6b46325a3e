from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str = Field(..., examples=["ok"])


class EvaluationRequest(BaseModel):
    mode: Literal["point", "interval"] = "point"
    at: Optional[datetime] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    records: list[dict[str, Any]] = Field(default_factory=list)
    assume_rpp_permit: bool = False
    include_inactive: bool = True


class RegulationEvaluation(BaseModel):
    index: int = Field(..., description="Position of the record in the evaluated collection")
    regulation: Optional[str] = None
    days: Optional[str] = None
    hours: Optional[str] = None
    hrlimit: Optional[str] = None
    regulation_class: str = Field(..., description="no_parking | permit_only | rpp | time_limit | unknown")
    rpp_areas: list[str] = Field(default_factory=list)
    active: bool
    coverage: Optional[float] = Field(None, ge=0.0, le=1.0)
    exempt: bool = False
    properties: Optional[dict[str, Any]] = None
    geometry: Optional[dict[str, Any]] = None


class SimulationSummary(BaseModel):
    total: int
    active: int
    inactive: int
    mean_coverage: Optional[float] = None
    by_class: dict[str, int]


class FreshnessInfo(BaseModel):
    status: str
    cache_hit: Optional[bool] = None
    fetched_at: Optional[datetime] = None


class EvaluationResponse(BaseModel):
    mode: Literal["point", "interval"]
    at: Optional[datetime] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    timezone: str
    results: list[RegulationEvaluation]
    summary: SimulationSummary
    data_freshness: Optional[FreshnessInfo] = None
    source: Optional[str] = None
