import logging
import threading
import weakref
from datetime import date

from fastapi import Depends, FastAPI, HTTPException, Query, status
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session

from planboard import config
from planboard.app.db.database import get_db
from planboard.app.db.models import RecalculationResult
from planboard.tools.cpa.engine import (
    ScheduleValidationError,
    preview_project_schedule,
    recalculate_project_schedule,
    validate_project,
)

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger("api")

app = FastAPI(title="Planboard")

# Enable CORS for local frontend dev server
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Recomputes for the same project must not overlap; the engine itself holds no lock.
# An entry lives only while some request holds a reference to its lock.
_PROJECT_LOCKS: "weakref.WeakValueDictionary[int, threading.Lock]" = weakref.WeakValueDictionary()
_PROJECT_LOCKS_GUARD = threading.Lock()


def _project_lock(project_id: int) -> threading.Lock:
    with _PROJECT_LOCKS_GUARD:
        lock = _PROJECT_LOCKS.get(project_id)
        if lock is None:
            lock = threading.Lock()
            _PROJECT_LOCKS[project_id] = lock
        return lock


def _cycle_detail(exc: ScheduleValidationError) -> dict:
    return {
        "message": "Dependency validation failed",
        "cycles": [c.model_dump(mode="json") for c in exc.cycles],
    }


def _internal_error() -> HTTPException:
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal error while scheduling")


@app.get("/debug/ping")
def debug_ping():
    return {"pong": True}


@app.post("/projects/{project_id}/schedule/recalculate", response_model=RecalculationResult)
def recalculate_schedule(
    project_id: int,
    project_start: date | None = Query(default=None, description="Start date for tasks with no predecessors and no planned start"),
    db: Session = Depends(get_db),
):
    """
    Recompute the whole schedule of a project and write dates back to
    auto-scheduled activities. Responds 422 with every cycle when the
    dependency graph is not acyclic.
    """
    try:
        with _project_lock(project_id):
            return recalculate_project_schedule(db, project_id, project_start=project_start)
    except ScheduleValidationError as e:
        logger.warning("Project %s has circular dependencies: %s", project_id, e)
        raise HTTPException(status_code=422, detail=_cycle_detail(e))
    except Exception as e:
        logging.exception("/projects/%s/schedule/recalculate failed: %s", project_id, e)
        raise _internal_error()


@app.get("/projects/{project_id}/schedule/validate")
def validate_schedule(project_id: int, db: Session = Depends(get_db)):
    try:
        cycles = validate_project(db, project_id)
    except Exception as e:
        logging.exception("/projects/%s/schedule/validate failed: %s", project_id, e)
        raise _internal_error()
    return {
        "project_id": project_id,
        "valid": not cycles,
        "cycles": [c.model_dump(mode="json") for c in cycles],
    }


def _preview(db: Session, project_id: int, project_start: date | None) -> RecalculationResult:
    try:
        return preview_project_schedule(db, project_id, project_start=project_start)
    except ScheduleValidationError as e:
        raise HTTPException(status_code=422, detail=_cycle_detail(e))
    except Exception as e:
        logging.exception("Schedule preview for project %s failed: %s", project_id, e)
        raise _internal_error()


@app.get("/projects/{project_id}/schedule/preview", response_model=RecalculationResult)
def schedule_preview(project_id: int, project_start: date | None = Query(default=None), db: Session = Depends(get_db)):
    """Computed schedule records without touching stored activities."""
    return _preview(db, project_id, project_start)


@app.get("/projects/{project_id}/schedule/critical-path")
def schedule_critical_path(project_id: int, project_start: date | None = Query(default=None), db: Session = Depends(get_db)):
    summary = _preview(db, project_id, project_start)
    return {"project_id": project_id, "critical_path": summary.critical_path}


@app.get("/projects/{project_id}/schedule/duration")
def schedule_duration(project_id: int, project_start: date | None = Query(default=None), db: Session = Depends(get_db)):
    summary = _preview(db, project_id, project_start)
    return {
        "project_id": project_id,
        "duration_days": summary.duration_days,
        "project_start": summary.project_start,
        "project_finish": summary.project_finish,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=config.UVICORN_HOST, port=config.UVICORN_PORT)
