"""
MetricsStore: the `daily_metrics` table behind a small explicit API.

Public API
----------
upsert(day, metrics, raw)   → DailyMetric   (delete + insert, one transaction)
get_by_date(day)            → DailyMetric   (MetricsNotFoundError)
list_all()                  → list[DailyMetric]   newest first
list_dates()                → set[date]
delete_by_dates(dates)      → int           rows removed

Upsert is the only write path and it is unconditional: the app assumes a
single writer. SQLAlchemy errors roll back and surface as PersistenceError,
except OperationalError (store unreachable), which propagates untouched.
"""
from __future__ import annotations

import json
import logging
from datetime import date
from typing import Iterable

from sqlalchemy import delete, select
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import MetricsNotFoundError, PersistenceError
from app.models.daily_metric import DailyMetric
from app.schemas.extraction import ExtractedMetrics

logger = logging.getLogger(__name__)


def _to_row(day: date, metrics: ExtractedMetrics, raw: str | None) -> DailyMetric:
    values = metrics.model_dump(exclude={"textual_info"})
    return DailyMetric(
        date=day,
        textual_info=json.dumps(metrics.textual_info, ensure_ascii=False),
        raw_extraction_output=raw,
        **values,
    )


class MetricsStore:
    def __init__(self, db: Session):
        self.db = db

    def upsert(self, day: date, metrics: ExtractedMetrics, raw: str | None) -> DailyMetric:
        """Replace whatever is stored for `day` with a fresh row."""
        row = _to_row(day, metrics, raw)
        try:
            self.db.execute(delete(DailyMetric).where(DailyMetric.date == day))
            self.db.add(row)
            self.db.commit()
        except OperationalError:
            self.db.rollback()
            raise
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Upsert failed for %s: %s", day, exc)
            raise PersistenceError(f"Could not store metrics for {day}: {exc}", day=day) from exc

        self.db.refresh(row)
        return row

    def get_by_date(self, day: date) -> DailyMetric:
        row = self.db.scalars(select(DailyMetric).where(DailyMetric.date == day)).first()
        if row is None:
            raise MetricsNotFoundError(day)
        return row

    def list_all(self) -> list[DailyMetric]:
        return list(self.db.scalars(select(DailyMetric).order_by(DailyMetric.date.desc())))

    def list_dates(self) -> set[date]:
        return set(self.db.scalars(select(DailyMetric.date)))

    def delete_by_dates(self, dates: Iterable[date]) -> int:
        targets = list(set(dates))
        if not targets:
            return 0
        try:
            result = self.db.execute(delete(DailyMetric).where(DailyMetric.date.in_(targets)))
            self.db.commit()
        except OperationalError:
            self.db.rollback()
            raise
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise PersistenceError(f"Could not delete metrics: {exc}") from exc

        logger.info("Deleted metrics for %d of %d requested dates", result.rowcount, len(targets))
        return result.rowcount


def decode_textual_info(row: DailyMetric) -> dict:
    try:
        value = json.loads(row.textual_info or "{}")
    except (ValueError, TypeError):
        return {}
    return value if isinstance(value, dict) else {}
