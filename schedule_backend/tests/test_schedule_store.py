"""
Tests for persisting computed schedules.
"""
import json

import pytest
from sqlalchemy import text

from schedule_backend.app.db.schedule_store import get_project_deadline, persist_schedule
from schedule_backend.tools.schedule.engine import calculate_project_schedule


class TestProjectDeadline:
    def test_end_date(self, db_session):
        db_session.execute(text("INSERT INTO projects (id, name, end_date) VALUES (1, 'Apollo', '2024-03-31')"))
        db_session.commit()
        assert get_project_deadline(db_session, 1) == "2024-03-31"

    def test_missing_project_or_date(self, db_session):
        db_session.execute(text("INSERT INTO projects (id, name, end_date) VALUES (2, 'Open-ended', NULL)"))
        db_session.commit()
        assert get_project_deadline(db_session, 2) is None
        assert get_project_deadline(db_session, 999) is None


class TestPersistSchedule:
    def test_writes_schedule_items_and_tasks(self, db_session, scenario):
        items, edges = scenario
        schedule = calculate_project_schedule(items, "2024-01-01", raw_edges=edges)
        stored = persist_schedule(db_session, 1, "Baseline", items, schedule, created_by=3, notes="first cut")

        assert stored["version"] == 1
        assert stored["totalTasks"] == 3
        assert stored["endDate"] == "2024-01-03"

        header = db_session.execute(text("SELECT * FROM project_schedules WHERE id = :sid"),
                                    {"sid": stored["scheduleId"]}).fetchone()
        assert header.name == "Baseline"
        assert header.version == 1
        assert header.created_by == 3
        assert header.notes == "first cut"

        members = db_session.execute(text("SELECT COUNT(*) FROM schedule_items")).scalar()
        assert members == 3

        row = db_session.execute(text("SELECT * FROM task_schedules WHERE item_id = 2")).fetchone()
        assert row.scheduled_start == "2024-01-02"
        assert row.scheduled_end == "2024-01-03"
        assert json.loads(row.dependencies) == ["issue:1"]

    def test_rolls_back_on_failure(self, db_session, scenario):
        items, edges = scenario
        schedule = calculate_project_schedule(items, "2024-01-01", raw_edges=edges)
        del schedule["tasks"][1]["scheduledEnd"]
        with pytest.raises(KeyError):
            persist_schedule(db_session, 1, "Broken", items, schedule, created_by=3)
        assert db_session.execute(text("SELECT COUNT(*) FROM project_schedules")).scalar() == 0
        assert db_session.execute(text("SELECT COUNT(*) FROM task_schedules")).scalar() == 0
