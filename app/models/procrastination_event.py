"""
ProcrastinationEvent — one logged procrastination or dispersion episode.

Rows are grouped by `source`, the tag of the document they were extracted
from. Every import of a source replaces its whole generation of rows.
"""
import datetime as dt
import enum

from sqlalchemy import Integer, String, Text, Float, Date, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class EventKind(str, enum.Enum):
    procrastination = "Procrastination"
    dispersion = "Dispersion"


class ProcrastinationEvent(Base):
    __tablename__ = "procrastination_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    date: Mapped[dt.date | None] = mapped_column(Date, nullable=True, index=True)
    time: Mapped[str | None] = mapped_column(String(16), nullable=True)
    type: Mapped[str] = mapped_column(
        String(32), nullable=False, default=EventKind.procrastination.value
    )
    duration_minutes: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    activity: Mapped[str] = mapped_column(Text, nullable=False, default="")
    trigger: Mapped[str] = mapped_column(Text, nullable=False, default="")
    feeling: Mapped[str] = mapped_column(Text, nullable=False, default="")
    action_taken: Mapped[str] = mapped_column(Text, nullable=False, default="")
    source: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
