"""
Tests for loading project graphs, writing schedules back and the recompute orchestration.
"""
import logging
from datetime import date
from unittest.mock import Mock

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from planboard.app.db.database import activities
from planboard.app.db.db_loader import load_project_graph
from planboard.app.db.models import ScheduleResult, TaskModel
from planboard.tools.cpa.engine import (
    ScheduleValidationError,
    preview_project_schedule,
    recalculate_project_schedule,
    validate_project,
    write_schedule,
)

JAN_1 = date(2024, 1, 1)


def _activity(aid, project_id=1, duration=None, start=None, auto=True):
    return {
        "id": aid,
        "project_id": project_id,
        "name": f"Activity {aid}",
        "duration": duration,
        "planned_start_date": start,
        "is_auto_scheduled": auto,
        "critical_path": False,
    }


def _dependency(did, pred, succ, dependency_type="finish_to_start", lag=0, active=True):
    return {
        "id": did,
        "predecessor_id": pred,
        "successor_id": succ,
        "dependency_type": dependency_type,
        "lag_time": lag,
        "is_active": active,
    }


def _row(db_session, aid):
    return db_session.execute(select(activities).where(activities.c.id == aid)).fetchone()


@pytest.fixture
def two_task_project(seed):
    """Scenario: A (5d, auto) -> B (3d, manual) in project 1, plus noise in project 2."""
    seed(
        tasks=[
            _activity(1, duration=5, start=JAN_1),
            _activity(2, duration=3, start=date(2023, 12, 1), auto=False),
            _activity(3, project_id=2, duration=1, start=JAN_1),
        ],
        dependencies=[_dependency(1, 1, 2)],
    )


class TestLoadProjectGraph:
    """Reading a project's scheduling data."""

    def test_loads_tasks_edges_and_constraints(self, seed, db_session):
        seed(
            tasks=[_activity(1, duration=5, start=JAN_1), _activity(2, duration=3), _activity(9, project_id=2)],
            dependencies=[_dependency(1, 1, 2, lag=2), _dependency(2, 9, 1)],
            constraints=[{
                "id": 1, "activity_id": 2, "constraint_type": "must_start_on",
                "constraint_date": date(2024, 2, 1), "priority": "high", "is_active": True,
            }],
        )
        graph = load_project_graph(db_session, 1)

        assert [t.id for t in graph.tasks] == [1, 2]
        assert graph.tasks[0].planned_start == JAN_1
        assert graph.tasks[0].duration_days == 5
        assert graph.tasks[1].duration_days is None
        assert [(d.predecessor_id, d.successor_id, d.lag_days) for d in graph.dependencies] == [(1, 2, 2)]
        assert graph.constraints[0].constraint_type.value == "must_start_on"
        assert graph.constraints[0].constraint_date == date(2024, 2, 1)

    def test_inactive_rows_are_not_loaded(self, seed, db_session):
        seed(
            tasks=[_activity(1), _activity(2)],
            dependencies=[_dependency(1, 1, 2, active=False)],
            constraints=[{
                "id": 1, "activity_id": 1, "constraint_type": "must_start_on",
                "constraint_date": JAN_1, "is_active": False,
            }],
        )
        graph = load_project_graph(db_session, 1)
        assert graph.dependencies == []
        assert graph.constraints == []

    def test_null_auto_scheduled_flag_loads_as_manual(self, seed, db_session):
        seed(tasks=[_activity(1, auto=None), _activity(2, auto=False), _activity(3)])
        graph = load_project_graph(db_session, 1)
        assert [t.is_auto_scheduled for t in graph.tasks] == [False, False, True]

    def test_negative_stored_duration_loads_as_absent(self, seed, db_session, caplog):
        seed(tasks=[_activity(1, duration=-3, start=JAN_1)])
        with caplog.at_level(logging.WARNING):
            graph = load_project_graph(db_session, 1)
        assert graph.tasks[0].duration_days is None
        assert "negative duration" in caplog.text

    def test_unknown_project_is_empty(self, db_session):
        graph = load_project_graph(db_session, 404)
        assert graph.tasks == [] and graph.dependencies == []


class TestWriteSchedule:
    """Write-back gating and per-task failure isolation."""

    def _result(self, tid, critical=True):
        return ScheduleResult(
            task_id=tid, early_start=JAN_1, early_finish=date(2024, 1, 3),
            late_start=JAN_1, late_finish=date(2024, 1, 3),
            total_float_days=0, is_critical=critical,
        )

    def test_only_auto_scheduled_tasks_are_written(self, seed, db_session):
        seed(tasks=[_activity(1, start=date(2023, 1, 1)), _activity(2, start=date(2023, 1, 1), auto=False)])
        tasks = [TaskModel(id=1), TaskModel(id=2, is_auto_scheduled=False)]

        errors = write_schedule(db_session, [self._result(1), self._result(2)], tasks)

        assert errors == []
        written, manual = _row(db_session, 1), _row(db_session, 2)
        assert written.planned_start_date == JAN_1
        assert written.planned_end_date == date(2024, 1, 3)
        assert written.critical_path is True
        assert manual.planned_start_date == date(2023, 1, 1)
        assert manual.critical_path is False

    def test_failed_write_does_not_stop_the_others(self):
        db = Mock()
        db.execute.side_effect = [OperationalError("UPDATE activities", {}, Exception("disk I/O error")), Mock(rowcount=1)]
        tasks = [TaskModel(id=1), TaskModel(id=2)]

        errors = write_schedule(db, [self._result(1), self._result(2)], tasks)

        assert [e.task_id for e in errors] == [1]
        assert "disk I/O error" in errors[0].error
        assert db.execute.call_count == 2
        db.rollback.assert_called_once()
        db.commit.assert_called_once()

    def test_missing_row_is_reported(self, db_session):
        errors = write_schedule(db_session, [self._result(77)], [TaskModel(id=77)])
        assert [(e.task_id, e.error) for e in errors] == [(77, "activity not found")]


class TestRecalculateProjectSchedule:
    """Whole-project recompute against storage."""

    def test_recalculates_and_writes_auto_tasks_only(self, two_task_project, db_session):
        summary = recalculate_project_schedule(db_session, 1)

        assert [r.task_id for r in summary.results] == [1, 2]
        assert summary.project_finish == date(2024, 1, 9)
        assert summary.duration_days == 8
        assert summary.critical_path == [1, 2]
        assert summary.write_errors == []
        assert summary.updated_task_ids == [1]

        a, b = _row(db_session, 1), _row(db_session, 2)
        assert a.planned_start_date == JAN_1
        assert a.planned_end_date == date(2024, 1, 6)
        assert a.critical_path is True
        assert b.planned_start_date == date(2023, 12, 1)
        assert b.critical_path is False

    def test_null_auto_scheduled_row_is_left_alone(self, seed, db_session):
        row = _activity(1, duration=2, start=JAN_1, auto=None)
        row["planned_end_date"] = date(2024, 3, 1)
        seed(tasks=[row])

        summary = recalculate_project_schedule(db_session, 1)

        assert summary.results[0].early_finish == date(2024, 1, 3)
        assert summary.updated_task_ids == []
        stored = _row(db_session, 1)
        assert stored.planned_end_date == date(2024, 3, 1)
        assert stored.critical_path is False

    def test_cycle_aborts_without_writing(self, seed, db_session):
        seed(
            tasks=[_activity(1, duration=5, start=date(2023, 1, 1)), _activity(2, duration=3)],
            dependencies=[_dependency(1, 1, 2), _dependency(2, 2, 1)],
        )
        with pytest.raises(ScheduleValidationError) as exc_info:
            recalculate_project_schedule(db_session, 1)

        assert exc_info.value.project_id == 1
        assert {e for c in exc_info.value.cycles for e in c.edges} == {(1, 2), (2, 1)}
        assert "1 -> 2" in str(exc_info.value)
        assert _row(db_session, 1).planned_start_date == date(2023, 1, 1)

    def test_edge_into_another_project_is_skipped(self, seed, db_session):
        seed(
            tasks=[_activity(1, duration=2, start=JAN_1), _activity(5, project_id=2, duration=1, start=JAN_1)],
            dependencies=[_dependency(1, 1, 5)],
        )
        summary = recalculate_project_schedule(db_session, 1)
        assert [r.task_id for r in summary.results] == [1]

    def test_preview_does_not_write(self, two_task_project, db_session):
        summary = preview_project_schedule(db_session, 1)
        assert summary.project_finish == date(2024, 1, 9)
        assert summary.updated_task_ids == []
        assert _row(db_session, 1).planned_end_date is None

    def test_validate_project(self, seed, db_session):
        seed(tasks=[_activity(1), _activity(2)], dependencies=[_dependency(1, 1, 2), _dependency(2, 2, 1)])
        cycles = validate_project(db_session, 1)
        assert len(cycles) == 1
