"""
Engine, session factory and declarative Base.

Works with both SQLite (local dev, tests) and PostgreSQL.
Stores never share a global connection: each request gets its own Session via
`get_db`, and background sync jobs open theirs from `get_session_factory`.
"""
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from app.core.config import settings


class Base(DeclarativeBase):
    pass


def make_engine(url: str):
    # SQLite needs check_same_thread=False; PostgreSQL does not
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(url, pool_pre_ping=True)


engine = make_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Provides a DB session per request. Auto-closes when done."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory() -> sessionmaker:
    """Session factory for work that outlives the request (background sync)."""
    return SessionLocal
