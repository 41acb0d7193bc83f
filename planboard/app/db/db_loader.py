import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy import text

from .models import ConstraintModel, DependencyModel, ProjectGraph, TaskModel

logger = logging.getLogger(__name__)


def _as_date(value) -> Optional[date]:
    # SQLite hands dates back as ISO strings, Postgres timestamps as datetimes
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _duration(row) -> Optional[int]:
    if row.duration is not None and row.duration < 0:
        logger.warning("Activity %s has negative duration %s; using the default", row.id, row.duration)
        return None
    return row.duration


def load_project_graph(session, project_id: int) -> ProjectGraph:
    """Load tasks, active dependencies and active constraints for one project.

    Dependencies are scoped through their predecessor, constraints through the
    constrained activity. A successor living outside the project is left in
    place; the engine skips it as a dangling reference.
    """
    task_rows = session.execute(text("""
        SELECT id, project_id, name, planned_start_date, planned_end_date,
               duration, is_auto_scheduled, critical_path
        FROM activities
        WHERE project_id = :pid
        ORDER BY id
    """), {"pid": project_id}).fetchall()

    dep_rows = session.execute(text("""
        SELECT d.id, d.predecessor_id, d.successor_id, d.dependency_type, d.lag_time, d.is_active
        FROM activity_dependencies d
        JOIN activities a ON a.id = d.predecessor_id
        WHERE a.project_id = :pid AND d.is_active = :active
        ORDER BY d.id
    """), {"pid": project_id, "active": True}).fetchall()

    constraint_rows = session.execute(text("""
        SELECT c.id, c.activity_id, c.constraint_type, c.constraint_date,
               c.priority, c.description, c.is_active
        FROM activity_constraints c
        JOIN activities a ON a.id = c.activity_id
        WHERE a.project_id = :pid AND c.is_active = :active
        ORDER BY c.id
    """), {"pid": project_id, "active": True}).fetchall()

    tasks = [
        TaskModel(
            id=row.id,
            project_id=row.project_id,
            name=row.name,
            planned_start=_as_date(row.planned_start_date),
            planned_finish=_as_date(row.planned_end_date),
            duration_days=_duration(row),
            # NULL means manual
            is_auto_scheduled=bool(row.is_auto_scheduled),
            critical_path=bool(row.critical_path),
        )
        for row in task_rows
    ]
    dependencies = [
        DependencyModel(
            id=row.id,
            predecessor_id=row.predecessor_id,
            successor_id=row.successor_id,
            dependency_type=row.dependency_type or "finish_to_start",
            lag_days=row.lag_time or 0,
            is_active=bool(row.is_active),
        )
        for row in dep_rows
    ]
    constraints = [
        ConstraintModel(
            id=row.id,
            activity_id=row.activity_id,
            constraint_type=row.constraint_type,
            constraint_date=_as_date(row.constraint_date),
            priority=row.priority or "medium",
            description=row.description,
            is_active=bool(row.is_active),
        )
        for row in constraint_rows
    ]
    logger.debug(
        "Loaded project %s: %d tasks, %d dependencies, %d constraints",
        project_id, len(tasks), len(dependencies), len(constraints),
    )
    return ProjectGraph(project_id=project_id, tasks=tasks, dependencies=dependencies, constraints=constraints)
