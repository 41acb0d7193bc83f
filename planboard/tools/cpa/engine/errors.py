from typing import List, Optional

from planboard.app.db.models import CycleError


class ScheduleError(Exception):
    """Base class for scheduling engine failures."""


class DependencyCycleError(ScheduleError):
    """A task was reached again while its own dates were still being resolved."""

    def __init__(self, task_id: int, path: Optional[List[int]] = None):
        self.task_id = task_id
        self.path = path or []
        chain = " -> ".join(str(t) for t in self.path + [task_id])
        super().__init__(f"Circular dependency detected at activity {task_id}" + (f" ({chain})" if self.path else ""))


class ScheduleValidationError(ScheduleError):
    """The dependency graph of a project is not a DAG; nothing was scheduled."""

    def __init__(self, project_id: Optional[int], cycles: List[CycleError]):
        self.project_id = project_id
        self.cycles = cycles
        super().__init__("Dependency validation failed: " + "; ".join(c.message for c in cycles))
