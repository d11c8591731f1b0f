"""
Background sync schemas.

POST /sync                     → SyncRequest → SyncJobResponse (202)
GET  /sync/jobs/{job_id}       → SyncJobResponse
POST /sync/jobs/{job_id}/cancel → SyncJobResponse
"""
from __future__ import annotations

import enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.notes import DateOutcomeResponse
from app.schemas.procrastination import RecordImportResponse


class BackgroundMode(str, enum.Enum):
    incremental = "incremental"
    full = "full"


class SyncRequest(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    mode: BackgroundMode = Field(
        default=BackgroundMode.incremental,
        description="incremental = only Missing notes; full = re-extract every note.",
    )
    include_procrastination: bool = Field(
        default=True,
        description="Also import the procrastination record after the notes.",
    )


class SyncJobResponse(BaseModel):
    id: str
    mode: str
    status: str = Field(description='"queued" | "running" | "completed" | "cancelled" | "failed"')
    total: int = Field(description="Dates queued for this run.")
    processed: int
    succeeded: int
    cancel_requested: bool
    error: Optional[str] = None
    created_at: str
    started_at: Optional[str] = None
    finished_at: Optional[str] = None
    outcomes: list[DateOutcomeResponse] = Field(default_factory=list)
    record_import: Optional[RecordImportResponse] = None
