"""
Pipeline metrics for the batch jobs (last runs, failures, low-coverage funds).
"""
from typing import Optional

from fastapi import APIRouter, Query
from pydantic import BaseModel

from fundscope.core.metrics import metrics

router = APIRouter()


class MetricsSummary(BaseModel):
    """Summary of metrics over a time period."""
    period_hours: int
    total_events: int
    by_category: dict
    by_event: dict
    jobs_completed: int
    units_failed: int
    low_coverage_funds: int
    last_runs: dict


class MetricEventResponse(BaseModel):
    timestamp: str
    category: str
    event_type: str
    subject: Optional[str]
    value: float
    metadata: dict


@router.get("/summary", response_model=MetricsSummary)
async def get_metrics_summary(
    hours: int = Query(default=24, ge=1, le=168, description="Hours of history to include")
) -> MetricsSummary:
    summary = metrics.get_summary(hours=hours)
    return MetricsSummary(**summary)


@router.get("/events", response_model=list[MetricEventResponse])
async def list_metric_events(
    category: Optional[str] = Query(default=None),
    limit: int = Query(default=100, ge=1, le=1000),
) -> list[MetricEventResponse]:
    """Most recent buffered events, newest first."""
    events = metrics.get_buffer()
    if category:
        events = [e for e in events if e.category == category]
    return [MetricEventResponse(**e.to_dict()) for e in reversed(events[-limit:])]
