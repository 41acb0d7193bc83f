from datetime import date, timedelta
from typing import Iterable, List

from planboard.app.db.models import ConstraintModel, ConstraintType

PRIORITY_RANK = {"low": 0, "medium": 1, "high": 2, "critical": 3}

_EARLY_CLAMPS = (ConstraintType.START_NO_EARLIER_THAN, ConstraintType.FINISH_NO_EARLIER_THAN)
_LATE_CLAMPS = (ConstraintType.FINISH_NO_LATER_THAN, ConstraintType.START_NO_LATER_THAN)


def _priority(c: ConstraintModel) -> int:
    return PRIORITY_RANK.get((c.priority or "").lower(), PRIORITY_RANK["medium"])


def _in_application_order(constraints: Iterable[ConstraintModel], clamps, must: ConstraintType) -> List[ConstraintModel]:
    """Clamps first in input order, then ``must`` constraints by ascending priority.

    The last one applied wins, so a must_* constraint always overrides clamps
    and the highest-priority (then last-listed) must_* overrides the others.
    """
    constraints = list(constraints)
    clamped = [c for c in constraints if c.constraint_type in clamps]
    forced = sorted((c for c in constraints if c.constraint_type == must), key=_priority)
    return clamped + forced


def apply_start_constraints(early_start: date, duration: int, constraints: Iterable[ConstraintModel]) -> date:
    """Adjust a dependency-derived early start for the forward pass."""
    for c in _in_application_order(constraints, _EARLY_CLAMPS, ConstraintType.MUST_START_ON):
        if c.constraint_type == ConstraintType.START_NO_EARLIER_THAN:
            if early_start < c.constraint_date:
                early_start = c.constraint_date
        elif c.constraint_type == ConstraintType.FINISH_NO_EARLIER_THAN:
            floor = c.constraint_date - timedelta(days=duration)
            if early_start < floor:
                early_start = floor
        else:
            early_start = c.constraint_date
    return early_start


def apply_finish_constraints(late_finish: date, duration: int, constraints: Iterable[ConstraintModel]) -> date:
    """Adjust a successor-derived late finish for the backward pass."""
    for c in _in_application_order(constraints, _LATE_CLAMPS, ConstraintType.MUST_FINISH_ON):
        if c.constraint_type == ConstraintType.FINISH_NO_LATER_THAN:
            if late_finish > c.constraint_date:
                late_finish = c.constraint_date
        elif c.constraint_type == ConstraintType.START_NO_LATER_THAN:
            ceiling = c.constraint_date + timedelta(days=duration)
            if late_finish > ceiling:
                late_finish = ceiling
        else:
            late_finish = c.constraint_date
    return late_finish
