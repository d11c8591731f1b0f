"""
Integration tests for API endpoints using SQLite in-memory DB.
"""
import pytest
from datetime import date

from app.services.sync import SyncMode

from conftest import SOURCE_TAG, write_note


class TestHealth:
    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json()["status"] == "ok"
        assert r.json()["db"] == "ok"


class TestNotes:
    def test_list_notes_statuses(self, client, notes_dir):
        write_note(notes_dir, "2024-01-01")
        write_note(notes_dir, "2024-01-02")
        (notes_dir / "ideas.md").write_text("not a daily note", encoding="utf-8")
        client.post("/notes/parse", json={"dates": ["2024-01-01"]})

        r = client.get("/notes")
        assert r.status_code == 200
        assert r.json() == [
            {"date": "2024-01-02", "status": "Missing"},
            {"date": "2024-01-01", "status": "Parsed"},
        ]

    def test_list_notes_empty_directory(self, client):
        r = client.get("/notes")
        assert r.status_code == 200
        assert r.json() == []

    def test_parse_returns_207_with_items(self, client, notes_dir):
        write_note(notes_dir, "2024-01-01")
        write_note(notes_dir, "2024-01-03")
        r = client.post("/notes/parse", json={"dates": ["2024-01-01", "2024-01-02", "2024-01-03"]})
        assert r.status_code == 207
        body = r.json()
        assert body["total"] == 3
        assert body["succeeded"] == 2
        assert body["failed"] == 1
        assert [i["date"] for i in body["items"]] == ["2024-01-01", "2024-01-02", "2024-01-03"]
        failed = body["items"][1]
        assert failed["success"] is False
        assert "2024-01-02" in failed["error"]

    def test_parse_duplicate_dates_processed_once(self, client, notes_dir, oracle):
        write_note(notes_dir, "2024-01-01")
        r = client.post("/notes/parse", json={"dates": ["2024-01-01", "2024-01-01"]})
        assert r.json()["total"] == 1
        assert oracle.metric_calls == [date(2024, 1, 1)]

    def test_parse_oracle_failure_reported(self, client, notes_dir, oracle):
        write_note(notes_dir, "2024-01-01")
        oracle.metrics[date(2024, 1, 1)] = None
        r = client.post("/notes/parse", json={"dates": ["2024-01-01"]})
        assert r.status_code == 207
        item = r.json()["items"][0]
        assert item["success"] is False
        assert item["error"]
        assert client.get("/metrics/2024-01-01").status_code == 404

    def test_reprocess(self, client, notes_dir, oracle):
        write_note(notes_dir, "2024-01-01")
        oracle.metrics[date(2024, 1, 1)] = {"work_hours": 2}
        client.post("/notes/parse", json={"dates": ["2024-01-01"]})

        oracle.metrics[date(2024, 1, 1)] = {"work_hours": 5}
        r = client.post("/notes/2024-01-01/reprocess")
        assert r.status_code == 200
        assert r.json() == {"date": "2024-01-01", "success": True, "error": None}
        assert client.get("/metrics/2024-01-01").json()["work_hours"] == 5

    def test_reprocess_missing_note(self, client):
        r = client.post("/notes/2024-01-01/reprocess")
        assert r.status_code == 200
        assert r.json()["success"] is False

    def test_delete_reverts_to_missing(self, client, notes_dir):
        write_note(notes_dir, "2024-01-01")
        write_note(notes_dir, "2024-01-02")
        client.post("/notes/parse", json={"dates": ["2024-01-01", "2024-01-02"]})

        r = client.post("/notes/delete", json={"dates": ["2024-01-01", "2024-06-01"]})
        assert r.status_code == 200
        assert r.json() == {"requested": 2, "deleted": 1}

        statuses = {n["date"]: n["status"] for n in client.get("/notes").json()}
        assert statuses == {"2024-01-01": "Missing", "2024-01-02": "Parsed"}
        # the note itself is left on disk
        assert (notes_dir / "2024-01-01.md").exists()


class TestMetrics:
    def test_list_newest_first_with_textual_info(self, client, notes_dir, oracle):
        for d in ("2024-01-01", "2024-01-03", "2024-01-02"):
            write_note(notes_dir, d)
        oracle.metrics[date(2024, 1, 3)] = {
            "work_hours": 7.5,
            "textual_info": {"summary": "Focused", "wins": ["shipped"]},
        }
        client.post("/notes/parse", json={"dates": ["2024-01-01", "2024-01-03", "2024-01-02"]})

        r = client.get("/metrics")
        assert r.status_code == 200
        body = r.json()
        assert [m["date"] for m in body] == ["2024-01-03", "2024-01-02", "2024-01-01"]
        assert body[0]["textual_info"] == {"summary": "Focused", "wins": ["shipped"]}
        assert body[1]["textual_info"] == {}

    def test_get_one_date(self, client, notes_dir, oracle):
        write_note(notes_dir, "2024-03-05")
        oracle.metrics[date(2024, 3, 5)] = {
            "work_hours": 7.5,
            "meditation_time": 20,
            "meditation_quality": 4,
            "sleep_quality": None,
        }
        client.post("/notes/parse", json={"dates": ["2024-03-05"]})

        r = client.get("/metrics/2024-03-05")
        assert r.status_code == 200
        body = r.json()
        assert body["work_hours"] == 7.5
        assert body["meditation_time"] == 20
        assert body["sleep_quality"] is None
        assert body["procrastination_minutes"] == 0
        assert body["is_workday"] is True
        assert body["created_at"]

    def test_raw_output(self, client, notes_dir, oracle):
        write_note(notes_dir, "2024-01-01")
        oracle.metrics[date(2024, 1, 1)] = {"work_hours": 1}
        oracle.raw[date(2024, 1, 1)] = 'Result:\n{"work_hours": 1}'
        client.post("/notes/parse", json={"dates": ["2024-01-01"]})

        r = client.get("/metrics/2024-01-01/raw")
        assert r.status_code == 200
        assert r.json() == {"date": "2024-01-01", "raw_extraction_output": 'Result:\n{"work_hours": 1}'}


class TestProcrastination:
    def test_import_and_list(self, client, record_path, oracle):
        record_path.write_text("| date | activity |", encoding="utf-8")
        oracle.events = [
            {"date": "2024-01-01", "time": "09:00", "activity": "a"},
            {"date": "2024-01-02", "time": "10:00", "type": "dispersion", "activity": "b"},
        ]
        r = client.post("/procrastination/import")
        assert r.status_code == 200
        assert r.json() == {"source": SOURCE_TAG, "extracted": 2, "replaced": True, "error": None}

        events = client.get("/procrastination").json()
        assert [e["activity"] for e in events] == ["b", "a"]
        assert events[0]["type"] == "Dispersion"
        assert events[0]["source"] == SOURCE_TAG

    def test_reimport_converges(self, client, record_path, oracle):
        record_path.write_text("record", encoding="utf-8")
        oracle.events = [{"activity": "a"}, {"activity": "b"}, {"activity": "c"}]
        client.post("/procrastination/import")
        oracle.events = [{"activity": "d"}]
        client.post("/procrastination/import")
        assert [e["activity"] for e in client.get("/procrastination").json()] == ["d"]

    def test_missing_record_keeps_events(self, client, record_path, oracle):
        record_path.write_text("record", encoding="utf-8")
        oracle.events = [{"activity": "a"}]
        client.post("/procrastination/import")
        record_path.unlink()

        r = client.post("/procrastination/import")
        assert r.status_code == 200
        assert r.json()["replaced"] is False
        assert r.json()["error"]
        assert len(client.get("/procrastination").json()) == 1


class TestSync:
    def test_incremental_run_completes(self, client, notes_dir, record_path, oracle):
        write_note(notes_dir, "2024-01-01")
        write_note(notes_dir, "2024-01-02")
        client.post("/notes/parse", json={"dates": ["2024-01-01"]})
        oracle.metric_calls.clear()

        r = client.post("/sync", json={"mode": "incremental", "include_procrastination": False})
        assert r.status_code == 202
        job_id = r.json()["id"]
        assert r.json()["total"] == 1

        job = client.get(f"/sync/jobs/{job_id}").json()
        assert job["status"] == "completed"
        assert job["processed"] == 1
        assert job["outcomes"] == [{"date": "2024-01-02", "success": True, "error": None}]
        assert job["record_import"] is None
        assert oracle.metric_calls == [date(2024, 1, 2)]

    def test_default_body_is_incremental_with_record(self, client, notes_dir, record_path, oracle):
        write_note(notes_dir, "2024-01-01")
        record_path.write_text("record", encoding="utf-8")
        oracle.events = [{"activity": "a"}]

        r = client.post("/sync")
        assert r.status_code == 202
        assert r.json()["mode"] == "incremental"

        job = client.get(f"/sync/jobs/{r.json()['id']}").json()
        assert job["status"] == "completed"
        assert job["record_import"]["replaced"] is True

    def test_full_run_reextracts_parsed_notes(self, client, notes_dir, oracle):
        write_note(notes_dir, "2024-01-01")
        client.post("/notes/parse", json={"dates": ["2024-01-01"]})

        r = client.post("/sync", json={"mode": "full", "include_procrastination": False})
        assert r.json()["total"] == 1
        job = client.get(f"/sync/jobs/{r.json()['id']}").json()
        assert job["succeeded"] == 1
        assert oracle.metric_calls == [date(2024, 1, 1), date(2024, 1, 1)]

    def test_second_run_rejected_while_active(self, client):
        active = client.app.state.sync_tracker.start(SyncMode.incremental, [])
        r = client.post("/sync", json={"mode": "full"})
        assert r.status_code == 409
        body = r.json()
        assert body["code"] == "SYNC_ALREADY_RUNNING"
        assert body["details"]["job_id"] == active.id

    def test_cancel(self, client):
        job = client.app.state.sync_tracker.start(SyncMode.full, [date(2024, 1, 1)])
        r = client.post(f"/sync/jobs/{job.id}/cancel")
        assert r.status_code == 200
        assert r.json()["cancel_requested"] is True
        assert r.json()["status"] == "queued"

    def test_cancel_unknown_job(self, client):
        r = client.post("/sync/jobs/nope/cancel")
        assert r.status_code == 404
        assert r.json()["code"] == "SYNC_JOB_NOT_FOUND"

    @pytest.mark.parametrize("mode", ["incremental", "full"])
    def test_nothing_to_do(self, client, mode):
        r = client.post("/sync", json={"mode": mode, "include_procrastination": False})
        job = client.get(f"/sync/jobs/{r.json()['id']}").json()
        assert job["total"] == 0
        assert job["status"] == "completed"
