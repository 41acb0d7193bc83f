from datetime import date, timedelta
from typing import Dict, NamedTuple, Optional

from planboard.app.db.models import DependencyModel, DependencyType

from .constraints import apply_finish_constraints
from .forward_pass import EarlyDates
from .graph import DEFAULT_DURATION_DAYS, ScheduleGraph, memoized_walk

_START_GATED = (DependencyType.START_TO_START, DependencyType.START_TO_FINISH)


class LateDates(NamedTuple):
    late_start: date
    late_finish: date


def project_finish(forward: Dict[int, EarlyDates]) -> Optional[date]:
    return max((d.early_finish for d in forward.values()), default=None)


def _latest_finish(dep: DependencyModel, successor: LateDates, duration: int) -> date:
    # Mirror of the forward rule: successor.start >= gating date + lag
    bound = successor.late_start - timedelta(days=dep.lag_days)
    if dep.dependency_type in _START_GATED:
        # bound applies to our start, shift it to our finish
        return bound + timedelta(days=duration)
    return bound


def backward_pass(
    graph: ScheduleGraph,
    forward: Dict[int, EarlyDates],
    default_duration: int = DEFAULT_DURATION_DAYS,
) -> Dict[int, LateDates]:
    """Latest start/finish for every task that keeps the project finish horizon."""
    horizon = project_finish(forward)

    def compute(task_id: int, memo: Dict[int, LateDates]) -> LateDates:
        duration = graph.duration(task_id, default_duration)
        late_finish = horizon
        for dep in graph.outgoing[task_id]:
            late_finish = min(late_finish, _latest_finish(dep, memo[dep.successor_id], duration))
        late_finish = apply_finish_constraints(late_finish, duration, graph.constraints[task_id])
        return LateDates(late_finish - timedelta(days=duration), late_finish)

    return memoized_walk(graph.order, graph.successors, compute)
