"""
EventStore: the `procrastination_events` table.

replace_by_source(source, events) deletes every row tagged `source` and
inserts the new generation inside one transaction, so a reader never sees an
empty or half-filled generation. The delete runs even for an empty list.
"""
from __future__ import annotations

import logging
from typing import Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import PersistenceError
from app.models.procrastination_event import ProcrastinationEvent
from app.schemas.extraction import ExtractedEvent

logger = logging.getLogger(__name__)


class EventStore:
    # newest first; undated and untimed events last on every backend
    ORDERING = (
        ProcrastinationEvent.date.desc().nulls_last(),
        ProcrastinationEvent.time.desc().nulls_last(),
        ProcrastinationEvent.id.desc(),
    )

    def __init__(self, db: Session):
        self.db = db

    def replace_by_source(self, source: str, events: Sequence[ExtractedEvent]) -> int:
        rows = [ProcrastinationEvent(source=source, **ev.model_dump()) for ev in events]
        try:
            removed = self.db.execute(
                delete(ProcrastinationEvent).where(ProcrastinationEvent.source == source)
            ).rowcount
            self.db.add_all(rows)
            self.db.commit()
        except OperationalError:
            self.db.rollback()
            raise
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Replacing events for source %r failed: %s", source, exc)
            raise PersistenceError(f"Could not replace events for {source!r}: {exc}") from exc

        logger.info("Source %r: replaced %d events with %d", source, removed, len(rows))
        return len(rows)

    def list_all(self) -> list[ProcrastinationEvent]:
        stmt = select(ProcrastinationEvent).order_by(*self.ORDERING)
        return list(self.db.scalars(stmt))

    def count_by_source(self, source: str) -> int:
        stmt = select(func.count(ProcrastinationEvent.id)).where(
            ProcrastinationEvent.source == source
        )
        return self.db.scalar(stmt) or 0
