import logging
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from schedule_backend import config
from schedule_backend.app.db.database import get_db
from schedule_backend.app.db.models import SchedulableItem
from schedule_backend.app.db.schedule_store import get_project_deadline, persist_schedule
from schedule_backend.tools.schedule.engine import (
    CycleDetectedError,
    InvalidScheduleInput,
    compute_schedule,
)

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger("api")

app = FastAPI()

# Enable CORS for local frontend dev server
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class ScheduleRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    items: List[SchedulableItem]
    start_date: str = Field(validation_alias=AliasChoices("startDate", "start_date"))
    hours_per_day: Optional[float] = Field(default=None, validation_alias=AliasChoices("hoursPerDay", "hours_per_day"))
    include_weekends: Optional[bool] = Field(
        default=None, validation_alias=AliasChoices("includeWeekends", "include_weekends")
    )
    project_deadline: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("projectDeadline", "project_deadline")
    )


class CreateScheduleRequest(ScheduleRequest):
    name: str
    created_by: int = Field(validation_alias=AliasChoices("createdBy", "created_by"))
    notes: Optional[str] = None


def _run_schedule(db: Session, request: ScheduleRequest, project_deadline: Optional[str]) -> dict:
    try:
        return compute_schedule(
            db,
            request.items,
            request.start_date,
            hours_per_day=request.hours_per_day,
            include_weekends=request.include_weekends,
            project_deadline=project_deadline,
        )
    except InvalidScheduleInput as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=e.message)
    except CycleDetectedError as e:
        logger.info("Schedule rejected: dependency cycle %s", (e.cycle_info or {}).get("cycle"))
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.to_dict())


@app.get("/")
def root():
    return {"message": "Hello from schedule backend!"}


@app.get("/debug/ping")
def debug_ping():
    return {"pong": True}


@app.post("/schedules/calculate")
def calculate_schedule(request: ScheduleRequest, db: Session = Depends(get_db)):
    """
    Compute a dependency-aware schedule for the given items without storing it.
    Dependencies between the items are read from the database.
    """
    try:
        return _run_schedule(db, request, request.project_deadline)
    except HTTPException:
        raise
    except Exception as e:
        logging.exception("/schedules/calculate failed: %s", e)
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/projects/{project_id}/schedules")
def create_project_schedule(project_id: int, request: CreateScheduleRequest, db: Session = Depends(get_db)):
    """
    Compute and persist a schedule for a project. The project's end date is used as the
    deadline unless the request supplies one.
    """
    try:
        deadline = request.project_deadline or get_project_deadline(db, project_id)
        logger.info("Creating schedule %r for project %s with %d items", request.name, project_id, len(request.items))
        schedule = _run_schedule(db, request, deadline)
        stored = persist_schedule(
            db,
            project_id=project_id,
            name=request.name,
            items=request.items,
            schedule=schedule,
            created_by=request.created_by,
            notes=request.notes,
        )
        return {**stored, "schedule": schedule}
    except HTTPException:
        raise
    except Exception as e:
        logging.exception("/projects/%s/schedules failed: %s", project_id, e)
        raise HTTPException(status_code=500, detail=str(e))


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=config.UVICORN_HOST, port=config.UVICORN_PORT)
