import logging
from typing import Callable, Dict, Iterable, List, TypeVar

from planboard import config
from planboard.app.db.models import ConstraintModel, DependencyModel, TaskModel

from .errors import DependencyCycleError

logger = logging.getLogger(__name__)

# Duration used when a task has none (or zero) recorded
DEFAULT_DURATION_DAYS = config.SCHEDULE_DEFAULT_DURATION_DAYS

T = TypeVar("T")


class ScheduleGraph:
    """Lookup tables for one scheduling run.

    Only active dependencies and constraints are indexed. Anything that
    references an activity outside ``tasks`` is skipped with a warning and
    kept in ``skipped_dependencies`` / ``skipped_constraints``.
    """

    def __init__(
        self,
        tasks: Iterable[TaskModel],
        dependencies: Iterable[DependencyModel] = (),
        constraints: Iterable[ConstraintModel] = (),
    ):
        self.tasks: Dict[int, TaskModel] = {}
        self.order: List[int] = []
        for t in tasks:
            if t.id in self.tasks:
                logger.warning("Duplicate activity %s ignored", t.id)
                continue
            self.tasks[t.id] = t
            self.order.append(t.id)

        self.incoming: Dict[int, List[DependencyModel]] = {tid: [] for tid in self.order}
        self.outgoing: Dict[int, List[DependencyModel]] = {tid: [] for tid in self.order}
        self.constraints: Dict[int, List[ConstraintModel]] = {tid: [] for tid in self.order}
        self.skipped_dependencies: List[DependencyModel] = []
        self.skipped_constraints: List[ConstraintModel] = []

        for dep in dependencies:
            if not dep.is_active:
                continue
            if dep.predecessor_id not in self.tasks or dep.successor_id not in self.tasks:
                logger.warning(
                    "Skipping dependency %s (%s -> %s): activity not in project",
                    dep.id, dep.predecessor_id, dep.successor_id,
                )
                self.skipped_dependencies.append(dep)
                continue
            self.outgoing[dep.predecessor_id].append(dep)
            self.incoming[dep.successor_id].append(dep)

        for c in constraints:
            if not c.is_active:
                continue
            if c.activity_id not in self.tasks:
                logger.warning(
                    "Skipping constraint %s (%s on activity %s): activity not in project",
                    c.id, c.constraint_type.value, c.activity_id,
                )
                self.skipped_constraints.append(c)
                continue
            self.constraints[c.activity_id].append(c)

    def duration(self, task_id: int, default_duration: int = DEFAULT_DURATION_DAYS) -> int:
        days = self.tasks[task_id].duration_days
        return days if days and days > 0 else default_duration

    def predecessors(self, task_id: int) -> List[int]:
        return [d.predecessor_id for d in self.incoming[task_id]]

    def successors(self, task_id: int) -> List[int]:
        return [d.successor_id for d in self.outgoing[task_id]]


def memoized_walk(
    task_ids: Iterable[int],
    neighbours: Callable[[int], List[int]],
    compute: Callable[[int, Dict[int, T]], T],
) -> Dict[int, T]:
    """Resolve every task once, after all of its ``neighbours``.

    ``compute(task_id, memo)`` runs when every neighbour already has an entry
    in ``memo``. Uses an explicit stack so long chains do not hit the
    interpreter recursion limit; a task reached again while still in progress
    raises DependencyCycleError.
    """
    memo: Dict[int, T] = {}
    in_progress = set()
    for root in task_ids:
        if root in memo:
            continue
        in_progress.add(root)
        stack = [(root, iter(neighbours(root)))]
        while stack:
            node, pending = stack[-1]
            for nxt in pending:
                if nxt in memo:
                    continue
                if nxt in in_progress:
                    path = [n for n, _ in stack]
                    raise DependencyCycleError(nxt, path[path.index(nxt):])
                in_progress.add(nxt)
                stack.append((nxt, iter(neighbours(nxt))))
                break
            else:
                stack.pop()
                in_progress.discard(node)
                memo[node] = compute(node, memo)
    return memo
