"""
Note status / parse request and response schemas.

GET  /notes                   → list[NoteStatusResponse]
POST /notes/parse             → DateBatchRequest → BatchParseResponse
POST /notes/{day}/reprocess   → DateOutcomeResponse
POST /notes/delete            → DateBatchRequest → DeleteResponse
"""
from __future__ import annotations

from datetime import date
from typing import Annotated, Optional

from pydantic import BaseModel, Field

BATCH_MAX_DATES = 366


class NoteStatusResponse(BaseModel):
    date: str = Field(description="ISO date of the note file.")
    status: str = Field(description='"Parsed" if metrics are stored, else "Missing".')


class DateBatchRequest(BaseModel):
    """A set of note dates to act on. Duplicates are ignored, order is kept."""
    dates: Annotated[list[date], Field(
        min_length=1,
        max_length=BATCH_MAX_DATES,
        description=f"ISO dates (1–{BATCH_MAX_DATES}).",
        examples=[["2024-03-05", "2024-03-06"]],
    )]


class DateOutcomeResponse(BaseModel):
    date: str
    success: bool
    error: Optional[str] = Field(default=None, description="Why the date failed.")


class BatchParseResponse(BaseModel):
    """Per-date report of a selective parse, in request order."""
    total: int
    succeeded: int
    failed: int
    items: list[DateOutcomeResponse]


class DeleteResponse(BaseModel):
    requested: int
    deleted: int
