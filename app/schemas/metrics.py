"""
Daily metrics response schemas.

GET /metrics              → list[DailyMetricResponse]
GET /metrics/{day}        → DailyMetricResponse
GET /metrics/{day}/raw    → RawOutputResponse
"""
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field


class DailyMetricResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    date: str
    start_time: Optional[str] = None
    work_hours: float
    total_hours: float
    procrastination_minutes: int
    dispersion_minutes: int
    mindfulness_moments: int
    meditation_time: Optional[float] = Field(default=None, description="null = not recorded.")
    meditation_quality: Optional[float] = None
    meditation_comment: Optional[str] = None
    sleep_quality: Optional[float] = None
    sleep_comment: Optional[str] = None
    mood_score: Optional[float] = None
    mood_sentiment: str
    mood_comment: Optional[str] = None
    is_workday: bool
    textual_info: dict[str, Any] = Field(
        description="most_important_task, wins, blockers, summary, radioactive_tasks.",
    )
    created_at: str = Field(description="When this row was extracted (UTC).")


class RawOutputResponse(BaseModel):
    date: str
    raw_extraction_output: Optional[str] = Field(
        description="Verbatim oracle response stored with the row.",
    )
