"""
Sync orchestrator: decides which notes need extraction and drives
NoteRepository → ExtractionOracle → MetricsStore / EventStore.

Modes
-----
  incremental  — dates on disk that have no stored metrics yet
  full         — every date on disk (re-extracts and replaces every row)
  selective    — an explicit list of dates, whatever their status
  reprocess()  — selective with one date

Per-date step
-------------
  read note     NoteNotFoundError    → success=False, next date
                OSError              → success=False, next date
  call oracle   structured is None   → success=False, stored row untouched
  coerce        shape mismatch       → success=False, stored row untouched
  upsert        PersistenceError     → success=False, next date

Dates are processed strictly one after another. A failed date never aborts
the batch; only OperationalError (store unreachable) ends a run early.

Procrastination record
----------------------
The aggregate record replaces its source's events only when the oracle
returns a non-empty list. A failed or empty extraction leaves stored events
as they are.

Background runs
---------------
SyncTracker hands out SyncJob handles (status, progress, outcomes) and
refuses to start a run while another one is active. Cancellation is
cooperative: the flag is checked between dates.
"""
from __future__ import annotations

import enum
import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Callable, Optional, Sequence

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import (
    JournalMetricsException,
    NoteNotFoundError,
    PersistenceError,
    SyncAlreadyRunningError,
    SyncJobNotFoundError,
)
from app.services.event_store import EventStore
from app.services.extraction import coerce_daily_metrics, coerce_events
from app.services.metrics_store import MetricsStore
from app.services.notes import NoteRepository, read_record
from app.services.oracle import ExtractionOracle

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Constants + result types
# ---------------------------------------------------------------------------

class SyncMode(str, enum.Enum):
    incremental = "incremental"
    full = "full"
    selective = "selective"


class NoteState(str, enum.Enum):
    parsed = "Parsed"
    missing = "Missing"


class JobStatus(str, enum.Enum):
    queued = "queued"
    running = "running"
    completed = "completed"
    cancelled = "cancelled"
    failed = "failed"


ORACLE_FAILURE = "Extraction oracle returned no structured result."
VALIDATION_ANOMALY = "Extraction result did not match the metrics schema."
KEEP_FINISHED_JOBS = 50


@dataclass
class DateOutcome:
    date: date
    success: bool
    error: Optional[str] = None


@dataclass
class NoteStatus:
    date: date
    status: NoteState


@dataclass
class RecordImportResult:
    source: str
    extracted: int = 0
    replaced: bool = False
    error: Optional[str] = None


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


@dataclass
class SyncJob:
    """Observable handle for one orchestration run."""
    mode: SyncMode
    dates: list[date]
    include_procrastination: bool = False
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    status: JobStatus = JobStatus.queued
    outcomes: list[DateOutcome] = field(default_factory=list)
    record_import: Optional[RecordImportResult] = None
    error: Optional[str] = None
    cancel_requested: bool = False
    created_at: datetime = field(default_factory=_now)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def total(self) -> int:
        return len(self.dates)

    @property
    def processed(self) -> int:
        return len(self.outcomes)

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.success)

    @property
    def is_active(self) -> bool:
        return self.status in (JobStatus.queued, JobStatus.running)


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------

class SyncOrchestrator:
    def __init__(
        self,
        notes: NoteRepository,
        oracle: ExtractionOracle,
        metrics: MetricsStore,
        events: EventStore,
        record_path: Optional[str] = None,
        source_tag: str = "Procrastination Record",
    ):
        self.notes = notes
        self.oracle = oracle
        self.metrics = metrics
        self.events = events
        self.record_path = record_path
        self.source_tag = source_tag

    # --- date selection ---------------------------------------------------

    def select_dates(
        self, mode: SyncMode, dates: Optional[Sequence[date]] = None
    ) -> list[date]:
        if mode == SyncMode.selective:
            # keep caller order, drop repeats
            return list(dict.fromkeys(dates or []))

        disk_dates = self.notes.list_note_dates()
        if mode == SyncMode.full:
            return disk_dates

        known = self.metrics.list_dates()
        return [d for d in disk_dates if d not in known]

    def note_statuses(self) -> list[NoteStatus]:
        known = self.metrics.list_dates()
        return [
            NoteStatus(date=d, status=NoteState.parsed if d in known else NoteState.missing)
            for d in self.notes.list_note_dates()
        ]

    # --- per-date step ----------------------------------------------------

    async def process_date(self, day: date) -> DateOutcome:
        try:
            text = self.notes.read_note(day)
        except NoteNotFoundError as exc:
            logger.warning("Skipping %s: %s", day, exc.message)
            return DateOutcome(date=day, success=False, error=exc.message)
        except OSError as exc:
            logger.warning("Could not read note for %s: %s", day, exc)
            return DateOutcome(date=day, success=False, error=f"Could not read note for {day}: {exc}")

        extraction = await self.oracle.extract_daily_metrics(text, day)
        if extraction.structured is None:
            logger.warning("Oracle failure for %s; stored row left as is", day)
            return DateOutcome(date=day, success=False, error=ORACLE_FAILURE)

        metrics = coerce_daily_metrics(extraction.structured)
        if metrics is None:
            return DateOutcome(date=day, success=False, error=VALIDATION_ANOMALY)

        try:
            self.metrics.upsert(day, metrics, extraction.raw)
        except PersistenceError as exc:
            return DateOutcome(date=day, success=False, error=exc.message)

        logger.info("Stored metrics for %s", day)
        return DateOutcome(date=day, success=True)

    async def run(
        self,
        mode: SyncMode,
        dates: Optional[Sequence[date]] = None,
        job: Optional[SyncJob] = None,
    ) -> list[DateOutcome]:
        targets = self.select_dates(mode, dates)
        logger.info("Sync run (%s): %d dates selected", mode.value, len(targets))

        outcomes = job.outcomes if job is not None else []
        for day in targets:
            if job is not None and job.cancel_requested:
                logger.info("Sync run cancelled after %d of %d dates", len(outcomes), len(targets))
                break
            outcomes.append(await self.process_date(day))

        failed = sum(1 for o in outcomes if not o.success)
        logger.info("Sync run (%s) done: %d ok, %d failed", mode.value, len(outcomes) - failed, failed)
        return outcomes

    async def reprocess(self, day: date) -> DateOutcome:
        """Re-extract one date even if it is already parsed."""
        outcomes = await self.run(SyncMode.selective, [day])
        return outcomes[0]

    # --- procrastination record ------------------------------------------

    async def import_procrastination_record(self) -> RecordImportResult:
        result = RecordImportResult(source=self.source_tag)
        try:
            text = read_record(self.record_path)
        except JournalMetricsException as exc:
            logger.warning("Procrastination record skipped: %s", exc.message)
            result.error = exc.message
            return result
        except OSError as exc:
            logger.warning("Could not read procrastination record: %s", exc)
            result.error = f"Could not read procrastination record: {exc}"
            return result

        raw_events = await self.oracle.extract_procrastination_events(text)
        events = coerce_events(raw_events)
        result.extracted = len(events)
        if not events:
            logger.warning("No events extracted from %r; stored events kept", self.source_tag)
            result.error = "No events extracted; stored events left unchanged."
            return result

        try:
            self.events.replace_by_source(self.source_tag, events)
        except PersistenceError as exc:
            result.error = exc.message
            return result

        result.replaced = True
        return result


# ---------------------------------------------------------------------------
# Background job tracking
# ---------------------------------------------------------------------------

class SyncTracker:
    """
    Registry of sync jobs for one process. At most one job is active.
    Only the `keep_finished` most recent finished jobs stay pollable.
    """

    def __init__(self, keep_finished: int = KEEP_FINISHED_JOBS):
        self._jobs: dict[str, SyncJob] = {}
        self._lock = threading.Lock()
        self.keep_finished = keep_finished

    def _evict_finished(self) -> None:
        # dict order is creation order, so the oldest finished jobs go first
        finished = [job_id for job_id, job in self._jobs.items() if not job.is_active]
        for job_id in finished[:max(len(finished) - self.keep_finished, 0)]:
            del self._jobs[job_id]

    def start(
        self,
        mode: SyncMode,
        dates: Sequence[date],
        include_procrastination: bool = False,
    ) -> SyncJob:
        with self._lock:
            active = self.active()
            if active is not None:
                raise SyncAlreadyRunningError(active.id)
            self._evict_finished()
            job = SyncJob(
                mode=mode,
                dates=list(dates),
                include_procrastination=include_procrastination,
            )
            self._jobs[job.id] = job
            return job

    def active(self) -> Optional[SyncJob]:
        return next((j for j in self._jobs.values() if j.is_active), None)

    def get(self, job_id: str) -> SyncJob:
        job = self._jobs.get(job_id)
        if job is None:
            raise SyncJobNotFoundError(job_id)
        return job

    def cancel(self, job_id: str) -> SyncJob:
        job = self.get(job_id)
        if job.is_active:
            job.cancel_requested = True
        return job


OrchestratorFactory = Callable[[Session], SyncOrchestrator]


async def run_sync_job(
    job: SyncJob,
    session_factory: Callable[[], Session],
    build_orchestrator: OrchestratorFactory,
) -> SyncJob:
    """
    Drive `job` to completion on its own DB session.
    Meant to be scheduled detached from the request that created the job.
    """
    if job.cancel_requested:
        job.status = JobStatus.cancelled
        job.finished_at = _now()
        return job

    job.status = JobStatus.running
    job.started_at = _now()
    db = session_factory()
    try:
        orchestrator = build_orchestrator(db)
        await orchestrator.run(SyncMode.selective, job.dates, job=job)
        if job.include_procrastination and not job.cancel_requested:
            job.record_import = await orchestrator.import_procrastination_record()
        job.status = JobStatus.cancelled if job.cancel_requested else JobStatus.completed
    except Exception as exc:
        logger.exception("Sync job %s failed", job.id)
        job.status = JobStatus.failed
        job.error = str(exc)
    finally:
        job.finished_at = _now()
        db.close()
    return job


def make_orchestrator(db: Session, oracle: ExtractionOracle) -> SyncOrchestrator:
    """Wire an orchestrator to configured paths and fresh stores on `db`."""
    return SyncOrchestrator(
        notes=NoteRepository(settings.NOTES_PATH),
        oracle=oracle,
        metrics=MetricsStore(db),
        events=EventStore(db),
        record_path=settings.PROCRASTINATION_RECORD_PATH,
        source_tag=settings.PROCRASTINATION_SOURCE_TAG,
    )
