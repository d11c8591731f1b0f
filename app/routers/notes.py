"""
Notes router.

GET  /notes                  — Parsed / Missing status of every note on disk
POST /notes/parse            — selective parse of explicit dates (awaited)
POST /notes/{day}/reprocess  — re-extract a single date
POST /notes/delete           — drop stored metrics for a set of dates
"""
from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.errors import BatchTooLargeError
from app.db.base import get_db
from app.schemas.common import ValidationErrorResponse
from app.schemas.notes import (
    BATCH_MAX_DATES,
    BatchParseResponse,
    DateBatchRequest,
    DateOutcomeResponse,
    DeleteResponse,
    NoteStatusResponse,
)
from app.routers.deps import get_orchestrator
from app.services.metrics_store import MetricsStore
from app.services.sync import DateOutcome, SyncMode, SyncOrchestrator

router = APIRouter(prefix="/notes", tags=["notes"])


def _outcome_to_response(o: DateOutcome) -> DateOutcomeResponse:
    return DateOutcomeResponse(date=str(o.date), success=o.success, error=o.error)


@router.get(
    "",
    response_model=list[NoteStatusResponse],
    summary="Status of every daily note (newest first)",
)
def list_notes(orchestrator: SyncOrchestrator = Depends(get_orchestrator)):
    """
    Every `YYYY-MM-DD.md` file under the notes directory, flagged `Parsed`
    when metrics are stored for that date and `Missing` otherwise.
    """
    return [
        NoteStatusResponse(date=str(s.date), status=s.status.value)
        for s in orchestrator.note_statuses()
    ]


@router.post(
    "/parse",
    response_model=BatchParseResponse,
    status_code=status.HTTP_207_MULTI_STATUS,
    summary="Parse an explicit list of dates",
    responses={
        207: {"description": "Multi-status: check each item's `success` field."},
        422: {"model": ValidationErrorResponse, "description": "Empty or oversized date list."},
    },
)
async def parse_notes(
    payload: DateBatchRequest,
    orchestrator: SyncOrchestrator = Depends(get_orchestrator),
):
    """
    Re-extract every requested date, whether or not it is already parsed.

    Dates are processed one at a time. A missing note or a failed extraction
    marks that date `success=false` and leaves any stored row untouched; the
    other dates still run.
    """
    if len(payload.dates) > BATCH_MAX_DATES:
        raise BatchTooLargeError(max_items=BATCH_MAX_DATES, received=len(payload.dates))

    outcomes = await orchestrator.run(SyncMode.selective, payload.dates)
    items = [_outcome_to_response(o) for o in outcomes]
    succeeded = sum(1 for o in outcomes if o.success)
    return BatchParseResponse(
        total=len(items),
        succeeded=succeeded,
        failed=len(items) - succeeded,
        items=items,
    )


@router.post(
    "/{day}/reprocess",
    response_model=DateOutcomeResponse,
    summary="Re-extract a single date",
)
async def reprocess_note(
    day: date,
    orchestrator: SyncOrchestrator = Depends(get_orchestrator),
):
    """Always calls the oracle again, even if the date is already parsed."""
    return _outcome_to_response(await orchestrator.reprocess(day))


@router.post(
    "/delete",
    response_model=DeleteResponse,
    summary="Delete parsed metrics for a set of dates",
    responses={422: {"model": ValidationErrorResponse, "description": "Empty or oversized date list."}},
)
def delete_parsed(payload: DateBatchRequest, db: Session = Depends(get_db)):
    """Removes the stored rows; the notes go back to `Missing`."""
    if len(payload.dates) > BATCH_MAX_DATES:
        raise BatchTooLargeError(max_items=BATCH_MAX_DATES, received=len(payload.dates))

    deleted = MetricsStore(db).delete_by_dates(payload.dates)
    return DeleteResponse(requested=len(set(payload.dates)), deleted=deleted)
