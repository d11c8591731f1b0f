"""
Procrastination router.

GET  /procrastination          — all events, newest first (date, then time)
POST /procrastination/import   — re-import the aggregate procrastination record
"""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.base import get_db
from app.models.procrastination_event import ProcrastinationEvent
from app.routers.deps import get_orchestrator
from app.schemas.procrastination import ProcrastinationEventResponse, RecordImportResponse
from app.services.event_store import EventStore
from app.services.sync import RecordImportResult, SyncOrchestrator

router = APIRouter(prefix="/procrastination", tags=["procrastination"])


def _event_to_response(ev: ProcrastinationEvent) -> ProcrastinationEventResponse:
    return ProcrastinationEventResponse(
        id=ev.id,
        date=str(ev.date) if ev.date else None,
        time=ev.time,
        type=ev.type,
        duration_minutes=ev.duration_minutes,
        activity=ev.activity,
        trigger=ev.trigger,
        feeling=ev.feeling,
        action_taken=ev.action_taken,
        source=ev.source,
    )


def import_to_response(r: RecordImportResult) -> RecordImportResponse:
    return RecordImportResponse(
        source=r.source,
        extracted=r.extracted,
        replaced=r.replaced,
        error=r.error,
    )


@router.get(
    "",
    response_model=list[ProcrastinationEventResponse],
    summary="All procrastination / dispersion events",
)
def list_events(db: Session = Depends(get_db)):
    return [_event_to_response(ev) for ev in EventStore(db).list_all()]


@router.post(
    "/import",
    response_model=RecordImportResponse,
    summary="Re-import the procrastination record",
)
async def import_record(orchestrator: SyncOrchestrator = Depends(get_orchestrator)):
    """
    Extract events from the configured record document and replace every
    stored event with the same source tag.

    If the document is missing or the oracle returns no events, stored events
    are kept and `replaced` is false.
    """
    return import_to_response(await orchestrator.import_procrastination_record())
