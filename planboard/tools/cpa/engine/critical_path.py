from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from planboard.app.db.models import ScheduleResult

from .backward_pass import LateDates
from .forward_pass import EarlyDates


def reduce_schedule(
    task_ids: Iterable[int],
    forward: Dict[int, EarlyDates],
    backward: Dict[int, LateDates],
) -> List[ScheduleResult]:
    """Combine both passes into one record per task, in ``task_ids`` order."""
    results: List[ScheduleResult] = []
    for tid in task_ids:
        early = forward[tid]
        late = backward[tid]
        total_float = (late.late_start - early.early_start).days
        results.append(ScheduleResult(
            task_id=tid,
            early_start=early.early_start,
            early_finish=early.early_finish,
            late_start=late.late_start,
            late_finish=late.late_finish,
            total_float_days=total_float,
            is_critical=total_float == 0,
        ))
    return results


def critical_path(results: List[ScheduleResult]) -> List[int]:
    """Critical task ids ordered by early start (ties keep result order)."""
    critical = [(r.early_start, i, r.task_id) for i, r in enumerate(results) if r.is_critical]
    return [tid for _, _, tid in sorted(critical)]


def project_bounds(results: List[ScheduleResult]) -> Tuple[Optional[date], Optional[date]]:
    if not results:
        return None, None
    return min(r.early_start for r in results), max(r.early_finish for r in results)


def project_duration_days(results: List[ScheduleResult]) -> int:
    start, finish = project_bounds(results)
    if start is None:
        return 0
    return (finish - start).days
