import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import register_exception_handlers
from app.core.logging_config import configure_logging
from app.db.base import get_db
from app.routers import metrics, notes, procrastination, sync
from app.services.sync import SyncTracker

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.LOG_LEVEL)
    app.state.sync_tracker = SyncTracker()
    if not settings.NOTES_PATH:
        logger.warning("NOTES_PATH is not set; no daily notes will be found")
    elif not Path(settings.NOTES_PATH).is_dir():
        logger.warning("NOTES_PATH %s is not a directory", settings.NOTES_PATH)
    if not settings.GEMINI_API_KEY:
        logger.warning("GEMINI_API_KEY is not set; every extraction will fail")
    yield


app = FastAPI(
    title="Journal Metrics API",
    description=(
        "Turns one-markdown-file-per-day journal notes into structured daily "
        "metrics and procrastination events via an LLM extraction step, and "
        "serves them for charting.\n\n"
        "Errors use the `{code, message, details}` envelope."
    ),
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

for module in (notes, metrics, procrastination, sync):
    app.include_router(module.router)


@app.get("/health", tags=["health"], summary="Health check")
def health(db: Session = Depends(get_db)):
    """`{"status": "ok"}` when the database answers, HTTP 503 otherwise."""
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Health check could not reach the database")
        return JSONResponse(status_code=503, content={"status": "error", "db": "unreachable"})

    return {
        "status": "ok",
        "db": "ok",
        "env": settings.APP_ENV,
        "notes_path_configured": bool(settings.NOTES_PATH),
    }
