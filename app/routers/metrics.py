"""
Metrics router — structured daily metrics for the chart front end.

GET /metrics              — all rows, newest first
GET /metrics/{day}        — one row
GET /metrics/{day}/raw    — verbatim oracle output stored with the row
"""
from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.base import get_db
from app.models.daily_metric import DailyMetric
from app.schemas.common import ErrorResponse
from app.schemas.metrics import DailyMetricResponse, RawOutputResponse
from app.services.metrics_store import MetricsStore, decode_textual_info

router = APIRouter(prefix="/metrics", tags=["metrics"])


# ---------------------------------------------------------------------------
# Serialization helper
# ---------------------------------------------------------------------------

def _metric_to_response(m: DailyMetric) -> DailyMetricResponse:
    return DailyMetricResponse(
        date=str(m.date),
        start_time=m.start_time,
        work_hours=m.work_hours,
        total_hours=m.total_hours,
        procrastination_minutes=m.procrastination_minutes,
        dispersion_minutes=m.dispersion_minutes,
        mindfulness_moments=m.mindfulness_moments,
        meditation_time=m.meditation_time,
        meditation_quality=m.meditation_quality,
        meditation_comment=m.meditation_comment,
        sleep_quality=m.sleep_quality,
        sleep_comment=m.sleep_comment,
        mood_score=m.mood_score,
        mood_sentiment=m.mood_sentiment,
        mood_comment=m.mood_comment,
        is_workday=m.is_workday,
        textual_info=decode_textual_info(m),
        created_at=m.created_at.isoformat() if m.created_at else "",
    )


# ---------------------------------------------------------------------------
# GET /metrics
# ---------------------------------------------------------------------------

@router.get(
    "",
    response_model=list[DailyMetricResponse],
    summary="All daily metrics (newest first)",
)
def list_metrics(db: Session = Depends(get_db)):
    """Every stored DailyMetric row with `textual_info` decoded."""
    return [_metric_to_response(m) for m in MetricsStore(db).list_all()]


@router.get(
    "/{day}",
    response_model=DailyMetricResponse,
    summary="Metrics for one date",
    responses={404: {"model": ErrorResponse, "description": "Date not parsed."}},
)
def get_metric(day: date, db: Session = Depends(get_db)):
    return _metric_to_response(MetricsStore(db).get_by_date(day))


@router.get(
    "/{day}/raw",
    response_model=RawOutputResponse,
    summary="Raw oracle output for one date",
    responses={404: {"model": ErrorResponse, "description": "Date not parsed."}},
)
def get_raw_output(day: date, db: Session = Depends(get_db)):
    """
    The verbatim text the extraction oracle returned for this date, kept
    for auditing what the structured row was derived from.
    """
    row = MetricsStore(db).get_by_date(day)
    return RawOutputResponse(date=str(row.date), raw_extraction_output=row.raw_extraction_output)
