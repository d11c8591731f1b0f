"""
Sync router — background extraction runs.

POST /sync                        — queue an incremental (default) or full run
GET  /sync/jobs/{job_id}          — poll status / progress / outcomes
POST /sync/jobs/{job_id}/cancel   — stop after the date currently in flight
"""
from __future__ import annotations

from functools import partial
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import sessionmaker

from app.db.base import get_session_factory
from app.routers.deps import get_orchestrator, get_sync_tracker
from app.routers.procrastination import import_to_response
from app.schemas.common import ErrorResponse
from app.schemas.notes import DateOutcomeResponse
from app.schemas.sync import SyncJobResponse, SyncRequest
from app.services.oracle import ExtractionOracle, get_oracle
from app.services.sync import (
    SyncJob,
    SyncMode,
    SyncOrchestrator,
    SyncTracker,
    make_orchestrator,
    run_sync_job,
)

router = APIRouter(prefix="/sync", tags=["sync"])


def _iso(dt) -> str | None:
    return dt.isoformat() if dt else None


def _job_to_response(job: SyncJob) -> SyncJobResponse:
    return SyncJobResponse(
        id=job.id,
        mode=job.mode.value,
        status=job.status.value,
        total=job.total,
        processed=job.processed,
        succeeded=job.succeeded,
        cancel_requested=job.cancel_requested,
        error=job.error,
        created_at=job.created_at.isoformat(),
        started_at=_iso(job.started_at),
        finished_at=_iso(job.finished_at),
        outcomes=[
            DateOutcomeResponse(date=str(o.date), success=o.success, error=o.error)
            for o in job.outcomes
        ],
        record_import=import_to_response(job.record_import) if job.record_import else None,
    )


@router.post(
    "",
    response_model=SyncJobResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Start a background sync run",
    responses={
        202: {"description": "Run queued; poll GET /sync/jobs/{id}."},
        409: {"model": ErrorResponse, "description": "Another run is still active."},
    },
)
def start_sync(
    background_tasks: BackgroundTasks,
    payload: Optional[SyncRequest] = None,
    orchestrator: SyncOrchestrator = Depends(get_orchestrator),
    tracker: SyncTracker = Depends(get_sync_tracker),
    session_factory: sessionmaker = Depends(get_session_factory),
    oracle: ExtractionOracle = Depends(get_oracle),
):
    """
    Resolve the dates to extract now (`incremental`: notes still Missing,
    `full`: every note), then return immediately with the job handle and
    the number of dates queued. The run continues after the response on
    its own DB session.

    Only one run may be active at a time (409 `SYNC_ALREADY_RUNNING`).
    """
    payload = payload or SyncRequest()
    mode = SyncMode(payload.mode)
    dates = orchestrator.select_dates(mode)
    job = tracker.start(mode, dates, include_procrastination=payload.include_procrastination)
    background_tasks.add_task(
        run_sync_job,
        job,
        session_factory,
        partial(make_orchestrator, oracle=oracle),
    )
    return _job_to_response(job)


@router.get(
    "/jobs/{job_id}",
    response_model=SyncJobResponse,
    summary="Status of a sync run",
    responses={404: {"model": ErrorResponse, "description": "Unknown job id."}},
)
def get_sync_job(job_id: str, tracker: SyncTracker = Depends(get_sync_tracker)):
    return _job_to_response(tracker.get(job_id))


@router.post(
    "/jobs/{job_id}/cancel",
    response_model=SyncJobResponse,
    summary="Cancel a sync run",
    responses={404: {"model": ErrorResponse, "description": "Unknown job id."}},
)
def cancel_sync_job(job_id: str, tracker: SyncTracker = Depends(get_sync_tracker)):
    """Cooperative: the date being extracted finishes, the rest are skipped."""
    return _job_to_response(tracker.cancel(job_id))
