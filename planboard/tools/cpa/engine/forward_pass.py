from datetime import date, timedelta
from typing import Dict, NamedTuple

from planboard.app.db.models import DependencyType

from .constraints import apply_start_constraints
from .graph import DEFAULT_DURATION_DAYS, ScheduleGraph, memoized_walk

_START_GATED = (DependencyType.START_TO_START, DependencyType.START_TO_FINISH)


class EarlyDates(NamedTuple):
    early_start: date
    early_finish: date


def gating_date(dates: EarlyDates, dependency_type: DependencyType) -> date:
    """Predecessor date an edge of this type holds its successor to."""
    if dependency_type in _START_GATED:
        return dates.early_start
    return dates.early_finish


def forward_pass(
    graph: ScheduleGraph,
    project_start: date,
    default_duration: int = DEFAULT_DURATION_DAYS,
) -> Dict[int, EarlyDates]:
    """Earliest start/finish for every task.

    Tasks without predecessors start on their planned start, or on
    ``project_start`` when they have none. Otherwise the latest of
    (gating date + lag) over the incoming edges wins; constraints are applied
    on top of that.
    """

    def compute(task_id: int, memo: Dict[int, EarlyDates]) -> EarlyDates:
        incoming = graph.incoming[task_id]
        if not incoming:
            early_start = graph.tasks[task_id].planned_start or project_start
        else:
            early_start = max(
                gating_date(memo[d.predecessor_id], d.dependency_type) + timedelta(days=d.lag_days)
                for d in incoming
            )
        duration = graph.duration(task_id, default_duration)
        early_start = apply_start_constraints(early_start, duration, graph.constraints[task_id])
        return EarlyDates(early_start, early_start + timedelta(days=duration))

    return memoized_walk(graph.order, graph.predecessors, compute)
