"""
Procrastination event schemas.

GET  /procrastination          → list[ProcrastinationEventResponse]
POST /procrastination/import   → RecordImportResponse
"""
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class ProcrastinationEventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    date: Optional[str] = Field(default=None, description="ISO date, null if unknown.")
    time: Optional[str] = None
    type: str = Field(description='"Procrastination" | "Dispersion"')
    duration_minutes: float
    activity: str
    trigger: str
    feeling: str
    action_taken: str
    source: str


class RecordImportResponse(BaseModel):
    source: str = Field(description="Source tag whose events were (or were not) replaced.")
    extracted: int = Field(description="Events returned by the oracle after validation.")
    replaced: bool = Field(description="True if stored events for the source were replaced.")
    error: Optional[str] = None
