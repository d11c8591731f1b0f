"""
Tests for MetricsStore and EventStore against in-memory SQLite.
"""
import json
import pytest
from datetime import date

from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import IntegrityError

from app.core.errors import MetricsNotFoundError, PersistenceError
from app.models import DailyMetric, ProcrastinationEvent
from app.services.event_store import EventStore
from app.services.extraction import coerce_daily_metrics, coerce_events
from app.services.metrics_store import MetricsStore, decode_textual_info

D1 = date(2024, 1, 1)
D2 = date(2024, 1, 2)
D3 = date(2024, 1, 3)


def _metrics(**fields):
    return coerce_daily_metrics(fields)


def _count(db, model) -> int:
    return db.scalar(select(func.count()).select_from(model))


class TestMetricsUpsert:
    def test_insert(self, db):
        row = MetricsStore(db).upsert(D1, _metrics(work_hours=5), raw="raw text")
        assert row.id is not None
        assert row.date == D1
        assert row.work_hours == 5
        assert row.raw_extraction_output == "raw text"

    def test_twice_leaves_one_row_with_latest_values(self, db):
        store = MetricsStore(db)
        store.upsert(D1, _metrics(work_hours=5, sleep_quality=3), raw="first")
        store.upsert(D1, _metrics(work_hours=8), raw="second")

        assert _count(db, DailyMetric) == 1
        row = store.get_by_date(D1)
        assert row.work_hours == 8
        assert row.raw_extraction_output == "second"
        # wholesale replace, not a merge
        assert row.sleep_quality is None

    def test_null_vs_zero_persisted(self, db):
        row = MetricsStore(db).upsert(D1, _metrics(work_hours=2), raw="")
        assert row.sleep_quality is None
        assert row.mood_score is None
        assert row.procrastination_minutes == 0
        assert row.dispersion_minutes == 0

    def test_textual_info_serialized(self, db):
        info = {"summary": "Good day", "wins": ["shipped"]}
        row = MetricsStore(db).upsert(D1, _metrics(textual_info=info), raw="")
        assert json.loads(row.textual_info) == info
        assert decode_textual_info(row) == info

    def test_textual_info_always_serialized(self, db):
        row = MetricsStore(db).upsert(D1, _metrics(), raw="")
        assert row.textual_info == "{}"

    def test_other_dates_untouched(self, db):
        store = MetricsStore(db)
        store.upsert(D1, _metrics(work_hours=1), raw="")
        store.upsert(D2, _metrics(work_hours=2), raw="")
        store.upsert(D1, _metrics(work_hours=3), raw="")
        assert store.get_by_date(D2).work_hours == 2

    def test_store_error_becomes_persistence_error(self, db, monkeypatch):
        store = MetricsStore(db)
        store.upsert(D1, _metrics(work_hours=1), raw="kept")

        def boom():
            raise IntegrityError("INSERT", {}, Exception("disk says no"))

        monkeypatch.setattr(db, "commit", boom)
        with pytest.raises(PersistenceError) as exc_info:
            store.upsert(D1, _metrics(work_hours=9), raw="lost")
        assert exc_info.value.code == "PERSISTENCE_ERROR"
        monkeypatch.undo()

        # rolled back: the earlier row survives
        assert store.get_by_date(D1).raw_extraction_output == "kept"


class TestMetricsReads:
    def test_get_missing_raises(self, db):
        with pytest.raises(MetricsNotFoundError):
            MetricsStore(db).get_by_date(D1)

    def test_list_all_newest_first(self, db):
        store = MetricsStore(db)
        for d in (D2, D1, D3):
            store.upsert(d, _metrics(), raw="")
        assert [r.date for r in store.list_all()] == [D3, D2, D1]

    def test_list_dates(self, db):
        store = MetricsStore(db)
        store.upsert(D1, _metrics(), raw="")
        store.upsert(D3, _metrics(), raw="")
        assert store.list_dates() == {D1, D3}


class TestMetricsDelete:
    def test_delete_by_dates(self, db):
        store = MetricsStore(db)
        for d in (D1, D2, D3):
            store.upsert(d, _metrics(), raw="")
        assert store.delete_by_dates([D1, D3, date(2030, 1, 1)]) == 2
        assert store.list_dates() == {D2}

    def test_delete_empty(self, db):
        assert MetricsStore(db).delete_by_dates([]) == 0


def _events(*items):
    return coerce_events(list(items))


class TestReplaceBySource:
    def test_second_import_converges(self, db):
        store = EventStore(db)
        store.replace_by_source("Record", _events({"activity": "a"}, {"activity": "b"}, {"activity": "c"}))
        assert store.count_by_source("Record") == 3

        store.replace_by_source("Record", _events({"activity": "d"}))
        assert store.count_by_source("Record") == 1
        assert [e.activity for e in store.list_all()] == ["d"]

    def test_repeated_identical_imports_do_not_accumulate(self, db):
        store = EventStore(db)
        batch = _events({"activity": "a"}, {"activity": "b"})
        for _ in range(3):
            store.replace_by_source("Record", batch)
        assert _count(db, ProcrastinationEvent) == 2

    def test_empty_list_clears_source(self, db):
        store = EventStore(db)
        store.replace_by_source("Record", _events({"activity": "a"}))
        assert store.replace_by_source("Record", []) == 0
        assert store.count_by_source("Record") == 0

    def test_other_sources_untouched(self, db):
        store = EventStore(db)
        store.replace_by_source("Record", _events({"activity": "a"}))
        store.replace_by_source("Other", _events({"activity": "x"}, {"activity": "y"}))
        store.replace_by_source("Record", _events({"activity": "b"}))
        assert store.count_by_source("Other") == 2
        assert store.count_by_source("Record") == 1

    def test_fields_persisted(self, db):
        store = EventStore(db)
        store.replace_by_source("Record", _events({
            "date": "2024-02-01", "time": "09:30", "type": "Dispersion",
            "duration_minutes": 15, "activity": "news", "trigger": "tired",
            "feeling": "guilty", "action_taken": "walk",
        }))
        [ev] = store.list_all()
        assert ev.date == date(2024, 2, 1)
        assert ev.time == "09:30"
        assert ev.type == "Dispersion"
        assert ev.duration_minutes == 15
        assert ev.source == "Record"

    def test_failed_replace_keeps_previous_generation(self, db, monkeypatch):
        store = EventStore(db)
        store.replace_by_source("Record", _events({"activity": "a"}, {"activity": "b"}))

        def boom():
            raise IntegrityError("INSERT", {}, Exception("nope"))

        monkeypatch.setattr(db, "commit", boom)
        with pytest.raises(PersistenceError):
            store.replace_by_source("Record", _events({"activity": "c"}))
        monkeypatch.undo()

        assert store.count_by_source("Record") == 2


class TestEventOrdering:
    def test_newest_date_then_time_first(self, db):
        store = EventStore(db)
        store.replace_by_source("Record", _events(
            {"date": "2024-01-01", "time": "09:00", "activity": "a"},
            {"date": "2024-01-02", "time": "08:00", "activity": "b"},
            {"date": "2024-01-02", "time": "17:45", "activity": "c"},
            {"date": None, "time": "23:00", "activity": "undated"},
        ))
        assert [e.activity for e in store.list_all()] == ["c", "b", "a", "undated"]

    def test_unpadded_times_sort_chronologically(self, db):
        store = EventStore(db)
        store.replace_by_source("Record", _events(
            {"date": "2024-01-02", "time": "9:30", "activity": "early"},
            {"date": "2024-01-02", "time": "10:15", "activity": "late"},
            {"date": "2024-01-02", "time": None, "activity": "untimed"},
        ))
        events = store.list_all()
        assert [e.activity for e in events] == ["late", "early", "untimed"]
        assert events[1].time == "09:30"

    def test_undated_events_last_on_postgres(self):
        stmt = select(ProcrastinationEvent).order_by(*EventStore.ORDERING)
        sql = str(stmt.compile(dialect=postgresql.dialect()))
        assert "procrastination_events.date DESC NULLS LAST" in sql
        assert "procrastination_events.time DESC NULLS LAST" in sql
