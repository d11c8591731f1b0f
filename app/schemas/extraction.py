"""
Typed views of what the extraction oracle returns.

ExtractedMetrics  — one daily note's metrics, after default/null coercion
ExtractedEvent    — one procrastination/dispersion event

The coercion table lives here as field defaults and validators:

  count / duration fields  → missing or null becomes 0
  quality / score fields   → missing or null stays None (never 0)
  is_workday               → True unless the value is literal `false`
  mood_sentiment           → missing or null becomes ""
  textual_info             → missing or null becomes {}
  NaN / Infinity           → rejected

Anything the validators cannot coerce raises ValidationError, which the
sync layer treats exactly like an oracle failure.
"""
from __future__ import annotations

import datetime as dt
import math
import re
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.procrastination_event import EventKind

COUNT_FIELDS = (
    "work_hours",
    "total_hours",
    "procrastination_minutes",
    "dispersion_minutes",
    "mindfulness_moments",
)
SCORE_FIELDS = (
    "meditation_time",
    "meditation_quality",
    "sleep_quality",
    "mood_score",
)
_OPTIONAL_TEXT_FIELDS = (
    "start_time",
    "meditation_comment",
    "sleep_comment",
    "mood_comment",
)
# "9:30", "09:30:15", "9:30 pm"
_CLOCK_TIME = re.compile(r"^(\d{1,2}):(\d{2})(?::\d{2})?\s*([AaPp][Mm])?$")


class ExtractedMetrics(BaseModel):
    model_config = ConfigDict(extra="ignore", allow_inf_nan=False)

    start_time: Optional[str] = None

    work_hours: float = Field(default=0, ge=0)
    total_hours: float = Field(default=0, ge=0)
    procrastination_minutes: int = Field(default=0, ge=0)
    dispersion_minutes: int = Field(default=0, ge=0)
    mindfulness_moments: int = Field(default=0, ge=0)

    meditation_time: Optional[float] = None
    meditation_quality: Optional[float] = None
    meditation_comment: Optional[str] = None
    sleep_quality: Optional[float] = None
    sleep_comment: Optional[str] = None
    mood_score: Optional[float] = None
    mood_sentiment: str = ""
    mood_comment: Optional[str] = None

    is_workday: bool = True
    textual_info: dict[str, Any] = Field(default_factory=dict)

    @field_validator(*COUNT_FIELDS, mode="before")
    @classmethod
    def null_count_is_zero(cls, v: Any) -> Any:
        return 0 if v is None else v

    @field_validator("procrastination_minutes", "dispersion_minutes", "mindfulness_moments", mode="before")
    @classmethod
    def round_whole_counts(cls, v: Any) -> Any:
        # "12.5 minutes" is still a count of minutes
        if isinstance(v, float) and math.isfinite(v):
            return round(v)
        return v

    @field_validator(*SCORE_FIELDS, mode="before")
    @classmethod
    def blank_score_is_null(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator(*_OPTIONAL_TEXT_FIELDS, mode="before")
    @classmethod
    def blank_text_is_null(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        return v

    @field_validator("is_workday", mode="before")
    @classmethod
    def workday_unless_false(cls, v: Any) -> bool:
        return v is not False

    @field_validator("mood_sentiment", mode="before")
    @classmethod
    def null_sentiment_is_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("textual_info", mode="before")
    @classmethod
    def null_textual_info_is_empty(cls, v: Any) -> Any:
        return {} if v is None else v


def _text_or_empty(v: Any) -> str:
    if v is None:
        return ""
    return v if isinstance(v, str) else str(v)


class ExtractedEvent(BaseModel):
    """Event coercion is lenient: bad fields fall back, the event survives."""
    model_config = ConfigDict(extra="ignore", use_enum_values=True)

    date: Optional[dt.date] = None
    time: Optional[str] = None
    type: EventKind = Field(default=EventKind.procrastination, validate_default=True)
    duration_minutes: float = 0
    activity: str = ""
    trigger: str = ""
    feeling: str = ""
    action_taken: str = ""

    @field_validator("date", mode="before")
    @classmethod
    def parse_date_or_null(cls, v: Any) -> Optional[dt.date]:
        if isinstance(v, dt.date):
            return v
        if isinstance(v, str):
            try:
                return dt.date.fromisoformat(v.strip()[:10])
            except ValueError:
                return None
        return None

    @field_validator("time", mode="before")
    @classmethod
    def time_or_null(cls, v: Any) -> Optional[str]:
        """Zero-padded 24h "HH:MM"; anything unreadable becomes None."""
        if v is None:
            return None
        m = _CLOCK_TIME.match(str(v).strip())
        if not m:
            return None
        hour, minute = int(m.group(1)), int(m.group(2))
        meridiem = (m.group(3) or "").lower()
        if meridiem:
            if not 1 <= hour <= 12:
                return None
            hour = hour % 12 + (12 if meridiem == "pm" else 0)
        if hour > 23 or minute > 59:
            return None
        return f"{hour:02d}:{minute:02d}"

    @field_validator("type", mode="before")
    @classmethod
    def normalize_kind(cls, v: Any) -> EventKind:
        if isinstance(v, str) and "dispers" in v.lower():
            return EventKind.dispersion
        return EventKind.procrastination

    @field_validator("duration_minutes", mode="before")
    @classmethod
    def duration_or_zero(cls, v: Any) -> float:
        if isinstance(v, bool):
            return 0
        try:
            value = float(v)
        except (TypeError, ValueError):
            return 0
        return value if math.isfinite(value) and value > 0 else 0

    @field_validator("activity", "trigger", "feeling", "action_taken", mode="before")
    @classmethod
    def text_or_empty(cls, v: Any) -> str:
        return _text_or_empty(v)
