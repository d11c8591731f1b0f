"""Shared FastAPI dependencies for the routers."""
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.db.base import get_db
from app.services.oracle import ExtractionOracle, get_oracle
from app.services.sync import SyncOrchestrator, SyncTracker, make_orchestrator


def get_orchestrator(
    db: Session = Depends(get_db),
    oracle: ExtractionOracle = Depends(get_oracle),
) -> SyncOrchestrator:
    return make_orchestrator(db, oracle)


def get_sync_tracker(request: Request) -> SyncTracker:
    return request.app.state.sync_tracker
