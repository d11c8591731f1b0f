"""
Shared pytest fixtures.

Uses an in-memory SQLite database (one shared connection via StaticPool) so
no Postgres is required, a temporary notes directory, and FakeOracle in place
of Gemini.
"""
import json
from datetime import date
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, delete
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import settings
from app.db.base import Base, get_db, get_session_factory
from app.main import app
from app.models import DailyMetric, ProcrastinationEvent
from app.services.event_store import EventStore
from app.services.metrics_store import MetricsStore
from app.services.notes import NoteRepository
from app.services.oracle import MetricsExtraction, get_oracle
from app.services.sync import SyncOrchestrator

SOURCE_TAG = "Procrastination Record"

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

DEFAULT_METRICS = {"work_hours": 6, "mood_sentiment": "Neutral"}


class FakeOracle:
    """
    Scripted extraction oracle.

    metrics[day] = dict  → structured result (raw = its JSON)
    metrics[day] = None  → oracle failure (raw = "Error: ...")
    unscripted days get DEFAULT_METRICS.
    """

    def __init__(self):
        self.metrics: dict = {}
        self.raw: dict = {}
        self.events: list = []
        self.metric_calls: list[date] = []
        self.event_calls = 0

    async def extract_daily_metrics(self, note_text: str, day: date) -> MetricsExtraction:
        self.metric_calls.append(day)
        structured = self.metrics.get(day, DEFAULT_METRICS)
        if structured is None:
            return MetricsExtraction(structured=None, raw=self.raw.get(day, "Error: scripted failure"))
        raw = self.raw.get(day, json.dumps(structured))
        return MetricsExtraction(structured=dict(structured), raw=raw)

    async def extract_procrastination_events(self, document_text: str) -> list:
        self.event_calls += 1
        return list(self.events)


def write_note(root: Path, day: str, text: str = "Worked a bit.") -> Path:
    path = root / f"{day}.md"
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture(scope="session", autouse=True)
def create_tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def clean_tables():
    yield
    db = TestingSessionLocal()
    try:
        db.execute(delete(ProcrastinationEvent))
        db.execute(delete(DailyMetric))
        db.commit()
    finally:
        db.close()


@pytest.fixture()
def db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def notes_dir(tmp_path, monkeypatch):
    root = tmp_path / "daily"
    root.mkdir()
    monkeypatch.setattr(settings, "NOTES_PATH", str(root))
    return root


@pytest.fixture()
def record_path(tmp_path, monkeypatch):
    path = tmp_path / "Procrastination Record.md"
    monkeypatch.setattr(settings, "PROCRASTINATION_RECORD_PATH", str(path))
    monkeypatch.setattr(settings, "PROCRASTINATION_SOURCE_TAG", SOURCE_TAG)
    return path


@pytest.fixture()
def oracle():
    return FakeOracle()


@pytest.fixture()
def orchestrator(db, notes_dir, record_path, oracle):
    return SyncOrchestrator(
        notes=NoteRepository(notes_dir),
        oracle=oracle,
        metrics=MetricsStore(db),
        events=EventStore(db),
        record_path=str(record_path),
        source_tag=SOURCE_TAG,
    )


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(notes_dir, record_path, oracle):
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: TestingSessionLocal
    app.dependency_overrides[get_oracle] = lambda: oracle
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
