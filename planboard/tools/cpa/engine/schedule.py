import logging
from datetime import date
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from planboard.app.db.database import SessionLocal
from planboard.app.db.db_loader import load_project_graph
from planboard.app.db.models import (
    ConstraintModel,
    CycleError,
    DependencyModel,
    ProjectGraph,
    RecalculationResult,
    ScheduleResult,
    TaskModel,
)

from .backward_pass import backward_pass
from .critical_path import critical_path, project_bounds, project_duration_days, reduce_schedule
from .cycles import validate_dependencies
from .db import write_schedule
from .errors import ScheduleValidationError
from .forward_pass import forward_pass
from .graph import DEFAULT_DURATION_DAYS, ScheduleGraph

logger = logging.getLogger(__name__)


# ------------------------------
# Pure computation
# ------------------------------

def compute_schedule(
    tasks: Iterable[TaskModel],
    dependencies: Iterable[DependencyModel],
    constraints: Iterable[ConstraintModel] = (),
    project_start: Optional[date] = None,
    default_duration: int = DEFAULT_DURATION_DAYS,
) -> List[ScheduleResult]:
    """Forward pass, backward pass and float for every task, in input order.

    ``project_start`` seeds tasks that have neither predecessors nor a planned
    start; it defaults to today. Callers are expected to have validated the
    graph; a cycle that slips through raises DependencyCycleError.
    """
    graph = ScheduleGraph(tasks, dependencies, constraints)
    if project_start is None:
        project_start = date.today()
    forward = forward_pass(graph, project_start, default_duration)
    backward = backward_pass(graph, forward, default_duration)
    return reduce_schedule(graph.order, forward, backward)


def _validated(graph: ProjectGraph) -> ProjectGraph:
    cycles: List[CycleError] = validate_dependencies(graph.tasks, graph.dependencies)
    if cycles:
        for c in cycles:
            logger.error("Project %s: %s", graph.project_id, c.message)
        raise ScheduleValidationError(graph.project_id, cycles)
    return graph


def _summarize(project_id: int, results: List[ScheduleResult]) -> RecalculationResult:
    start, finish = project_bounds(results)
    return RecalculationResult(
        project_id=project_id,
        results=results,
        project_start=start,
        project_finish=finish,
        duration_days=project_duration_days(results),
        critical_path=critical_path(results),
    )


# ------------------------------
# Storage-backed entry points
# ------------------------------

def validate_project(db: Session, project_id: int) -> List[CycleError]:
    graph = load_project_graph(db, project_id)
    return validate_dependencies(graph.tasks, graph.dependencies)


def preview_project_schedule(db: Session, project_id: int, project_start: Optional[date] = None) -> RecalculationResult:
    """Validate and compute a project's schedule without writing anything back."""
    graph = _validated(load_project_graph(db, project_id))
    results = compute_schedule(graph.tasks, graph.dependencies, graph.constraints, project_start=project_start)
    return _summarize(project_id, results)


def recalculate_project_schedule(db: Session, project_id: int, project_start: Optional[date] = None) -> RecalculationResult:
    """Recompute the whole schedule of one project and persist it.

    Raises ScheduleValidationError (listing every cycle) before any date
    arithmetic when the active dependencies are cyclic; nothing is written in
    that case. Write failures do not abort the run and are returned in
    ``write_errors``.
    """
    logger.info("Recalculating schedule for project %s", project_id)
    graph = _validated(load_project_graph(db, project_id))
    results = compute_schedule(graph.tasks, graph.dependencies, graph.constraints, project_start=project_start)
    write_errors = write_schedule(db, results, graph.tasks)

    summary = _summarize(project_id, results)
    failed = {e.task_id for e in write_errors}
    summary.write_errors = write_errors
    summary.updated_task_ids = [t.id for t in graph.tasks if t.is_auto_scheduled and t.id not in failed]
    logger.info(
        "Project %s scheduled: %d tasks, finish %s, %d critical, %d write errors",
        project_id, len(results), summary.project_finish, len(summary.critical_path), len(write_errors),
    )
    return summary


def run_schedule(project_id: int, project_start: Optional[date] = None) -> RecalculationResult:
    """Recalculate a project's schedule using a session of its own."""
    db = SessionLocal()
    try:
        return recalculate_project_schedule(db, project_id, project_start=project_start)
    finally:
        db.close()
