from datetime import date
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field


class DependencyType(str, Enum):
    FINISH_TO_START = "finish_to_start"
    START_TO_START = "start_to_start"
    FINISH_TO_FINISH = "finish_to_finish"
    START_TO_FINISH = "start_to_finish"


class ConstraintType(str, Enum):
    MUST_START_ON = "must_start_on"
    MUST_FINISH_ON = "must_finish_on"
    START_NO_EARLIER_THAN = "start_no_earlier_than"
    START_NO_LATER_THAN = "start_no_later_than"
    FINISH_NO_EARLIER_THAN = "finish_no_earlier_than"
    FINISH_NO_LATER_THAN = "finish_no_later_than"


class TaskModel(BaseModel):
    id: int
    name: str = ""
    project_id: Optional[int] = None
    planned_start: Optional[date] = None
    planned_finish: Optional[date] = None
    duration_days: Optional[int] = Field(default=None, ge=0)
    is_auto_scheduled: bool = True
    critical_path: bool = False


class DependencyModel(BaseModel):
    id: Optional[int] = None
    predecessor_id: int
    successor_id: int
    dependency_type: DependencyType = DependencyType.FINISH_TO_START
    lag_days: int = 0
    is_active: bool = True


class ConstraintModel(BaseModel):
    id: Optional[int] = None
    activity_id: int
    constraint_type: ConstraintType
    constraint_date: date
    priority: str = "medium"
    description: Optional[str] = None
    is_active: bool = True


class ProjectGraph(BaseModel):
    project_id: int
    tasks: List[TaskModel] = []
    dependencies: List[DependencyModel] = []
    constraints: List[ConstraintModel] = []


class ScheduleResult(BaseModel):
    task_id: int
    early_start: date
    early_finish: date
    late_start: date
    late_finish: date
    total_float_days: int
    is_critical: bool


class CycleError(BaseModel):
    """One dependency cycle; ``edges`` walks the cycle in order and ends with ``closing_edge``."""
    edges: List[Tuple[int, int]]
    closing_edge: Tuple[int, int]
    message: str


class WriteError(BaseModel):
    task_id: int
    error: str


class RecalculationResult(BaseModel):
    project_id: int
    results: List[ScheduleResult] = []
    write_errors: List[WriteError] = []
    project_start: Optional[date] = None
    project_finish: Optional[date] = None
    duration_days: int = 0
    critical_path: List[int] = []
    updated_task_ids: List[int] = []
