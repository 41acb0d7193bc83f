from .backward_pass import LateDates, backward_pass, project_finish
from .critical_path import (
    critical_path,
    project_bounds,
    project_duration_days,
    reduce_schedule,
)
from .cycles import validate_dependencies
from .db import write_schedule
from .errors import DependencyCycleError, ScheduleError, ScheduleValidationError
from .forward_pass import EarlyDates, forward_pass
from .graph import DEFAULT_DURATION_DAYS, ScheduleGraph
from .schedule import (
    compute_schedule,
    preview_project_schedule,
    recalculate_project_schedule,
    run_schedule,
    validate_project,
)

__all__ = [
    "DEFAULT_DURATION_DAYS",
    "ScheduleGraph",
    "validate_dependencies",
    "forward_pass",
    "backward_pass",
    "project_finish",
    "EarlyDates",
    "LateDates",
    "reduce_schedule",
    "critical_path",
    "project_bounds",
    "project_duration_days",
    "write_schedule",
    "compute_schedule",
    "validate_project",
    "preview_project_schedule",
    "recalculate_project_schedule",
    "run_schedule",
    "ScheduleError",
    "DependencyCycleError",
    "ScheduleValidationError",
]
