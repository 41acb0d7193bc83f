import logging
from typing import Iterable, List

from sqlalchemy import Boolean, Date, bindparam, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from planboard.app.db.models import ScheduleResult, TaskModel, WriteError

logger = logging.getLogger(__name__)

_UPDATE_ACTIVITY_DATES = text("""
    UPDATE activities
    SET planned_start_date = :start,
        planned_end_date = :finish,
        critical_path = :critical,
        updated_at = CURRENT_TIMESTAMP
    WHERE id = :id
""").bindparams(
    bindparam("start", type_=Date),
    bindparam("finish", type_=Date),
    bindparam("critical", type_=Boolean),
)


# ------------------------------
# Schedule write-back
# ------------------------------

def write_schedule(db: Session, results: Iterable[ScheduleResult], tasks: Iterable[TaskModel]) -> List[WriteError]:
    """Persist early dates and the critical flag of auto-scheduled activities.

    Manually scheduled activities are left untouched. Every activity is
    committed on its own; a failed write is rolled back, logged and returned
    while the remaining writes go ahead.
    """
    auto_scheduled = {t.id for t in tasks if t.is_auto_scheduled}
    errors: List[WriteError] = []
    for res in results:
        if res.task_id not in auto_scheduled:
            continue
        try:
            outcome = db.execute(_UPDATE_ACTIVITY_DATES, {
                "id": res.task_id,
                "start": res.early_start,
                "finish": res.early_finish,
                "critical": res.is_critical,
            })
            if outcome.rowcount == 0:
                db.rollback()
                logger.warning("Activity %s disappeared before its schedule was written", res.task_id)
                errors.append(WriteError(task_id=res.task_id, error="activity not found"))
                continue
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception("Failed to write schedule for activity %s", res.task_id)
            errors.append(WriteError(task_id=res.task_id, error=str(e)))
    return errors
