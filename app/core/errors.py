"""
Custom exception hierarchy for Journal Metrics.

Rule: every HTTP error has a machine-readable `code` string so clients
can branch on it without parsing English messages.

Oracle failures and malformed extraction output are NOT exceptions: they are
reported as `success=false` per-date outcomes by the sync orchestrator.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exception classes
# ---------------------------------------------------------------------------

class JournalMetricsException(Exception):
    """Base class for all application-level errors."""
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class NoteNotFoundError(JournalMetricsException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "NOTE_NOT_FOUND"

    def __init__(self, day: date):
        self.day = day
        super().__init__(
            message=f"No daily note found for {day}.",
            details={"date": str(day)},
        )


class RecordNotFoundError(JournalMetricsException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "RECORD_NOT_FOUND"

    def __init__(self, path: str):
        super().__init__(
            message="Procrastination record document not found.",
            details={"path": path} if path else {},
        )


class MetricsNotFoundError(JournalMetricsException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "METRICS_NOT_FOUND"

    def __init__(self, day: date):
        super().__init__(
            message=f"No parsed metrics stored for {day}.",
            details={"date": str(day)},
        )


class PersistenceError(JournalMetricsException):
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "PERSISTENCE_ERROR"

    def __init__(self, message: str, day: date | None = None):
        super().__init__(
            message=message,
            details={"date": str(day)} if day else {},
        )


class SyncAlreadyRunningError(JournalMetricsException):
    http_status = status.HTTP_409_CONFLICT
    code = "SYNC_ALREADY_RUNNING"

    def __init__(self, job_id: str):
        super().__init__(
            message="A sync run is already in progress.",
            details={"job_id": job_id},
        )


class SyncJobNotFoundError(JournalMetricsException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "SYNC_JOB_NOT_FOUND"

    def __init__(self, job_id: str):
        super().__init__(
            message=f"Sync job {job_id} does not exist.",
            details={"job_id": job_id},
        )


class BatchTooLargeError(JournalMetricsException):
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "BATCH_TOO_LARGE"

    def __init__(self, max_items: int, received: int):
        super().__init__(
            message=f"Batch exceeds maximum size of {max_items} dates. Received {received}.",
            details={"max_items": max_items, "received": received},
        )


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

def _envelope(status_code: int, code: str, message: str, details: dict | None = None) -> JSONResponse:
    content: dict[str, Any] = {"code": code, "message": message}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


async def journal_exception_handler(
    request: Request, exc: JournalMetricsException
) -> JSONResponse:
    if exc.http_status >= 500:
        logger.error("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


def _field_path(loc: tuple) -> str:
    # drop the request-part prefix: ("body", "dates", 1) -> "dates.1"
    return ".".join(str(part) for part in loc if part not in ("body", "path", "query"))


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """422 with one `{field, message, type}` entry per failed field."""
    errors = [
        {"field": _field_path(err["loc"]), "message": err["msg"], "type": err["type"]}
        for err in exc.errors()
    ]
    return _envelope(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "VALIDATION_ERROR",
        "Request validation failed.",
        {"errors": errors},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _envelope(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "INTERNAL_ERROR",
        "An unexpected error occurred.",
    )


def register_exception_handlers(app: FastAPI) -> None:
    # most specific first
    app.add_exception_handler(JournalMetricsException, journal_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
