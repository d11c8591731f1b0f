"""
DailyMetric — structured metrics extracted from one daily note.

One row per date (unique constraint). A re-extraction replaces the row
wholesale; rows are never patched field by field.

Zero vs NULL: count/duration columns default to 0 ("none observed"), while
quality/score columns stay NULL when the note does not record them.

textual_info: JSON-encoded dict stored as Text, round-tripped only.
"""
import datetime as dt
from sqlalchemy import Integer, String, Text, Float, Boolean, Date, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class DailyMetric(Base):
    __tablename__ = "daily_metrics"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, unique=True, index=True)
    start_time: Mapped[str | None] = mapped_column(String(16), nullable=True)

    work_hours: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    total_hours: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    procrastination_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    dispersion_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    mindfulness_moments: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    meditation_time: Mapped[float | None] = mapped_column(Float, nullable=True)
    meditation_quality: Mapped[float | None] = mapped_column(Float, nullable=True)
    meditation_comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    sleep_quality: Mapped[float | None] = mapped_column(Float, nullable=True)
    sleep_comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    mood_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    mood_sentiment: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    mood_comment: Mapped[str | None] = mapped_column(Text, nullable=True)

    is_workday: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    textual_info: Mapped[str] = mapped_column(Text, nullable=False, default="{}")
    raw_extraction_output: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
