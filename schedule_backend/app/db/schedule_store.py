import json
import logging
from typing import Optional, Sequence

from sqlalchemy import text
from sqlalchemy.orm import Session

from .models import SchedulableItem

logger = logging.getLogger(__name__)


# ------------------------------
# Schedule persistence helpers
# ------------------------------

def get_project_deadline(db: Session, project_id: int) -> Optional[str]:
    row = db.execute(text("""
        SELECT end_date FROM projects WHERE id = :pid
    """), {"pid": project_id}).fetchone()
    if not row or row.end_date is None:
        return None
    return str(row.end_date)


def persist_schedule(
    db: Session,
    project_id: int,
    name: str,
    items: Sequence[SchedulableItem],
    schedule: dict,
    created_by: int,
    notes: Optional[str] = None,
) -> dict:
    """Store a computed schedule as version 1 in one transaction.

    Writes project_schedules, schedule_items and task_schedules; rolls back on any failure.
    Returns {"scheduleId", "version", **summary}.
    """
    summary = schedule["summary"]
    try:
        row = db.execute(text("""
            INSERT INTO project_schedules
              (project_id, name, version, start_date, end_date, hours_per_day, include_weekends,
               total_tasks, total_hours, critical_path_tasks, critical_path_hours, risks_count,
               is_active, is_published, created_by, notes)
            VALUES (:pid, :name, 1, :start_date, :end_date, :hours_per_day, :include_weekends,
                    :total_tasks, :total_hours, :cp_tasks, :cp_hours, :risks_count,
                    TRUE, FALSE, :created_by, :notes)
            RETURNING id
        """), {
            "pid": project_id,
            "name": name,
            "start_date": summary["startDate"],
            "end_date": summary["endDate"],
            "hours_per_day": summary["hoursPerDay"],
            "include_weekends": summary["includeWeekends"],
            "total_tasks": summary["totalTasks"],
            "total_hours": summary["totalHours"],
            "cp_tasks": summary["criticalPathTasks"],
            "cp_hours": summary["criticalPathHours"],
            "risks_count": summary["risksCount"],
            "created_by": created_by,
            "notes": notes,
        }).fetchone()
        schedule_id = int(row.id)

        for item in items:
            db.execute(text("""
                INSERT INTO schedule_items (schedule_id, item_type, item_id)
                VALUES (:sid, :item_type, :item_id)
            """), {"sid": schedule_id, "item_type": item.kind.value, "item_id": item.id})

        for task in schedule["tasks"]:
            db.execute(text("""
                INSERT INTO task_schedules
                  (schedule_id, item_type, item_id, assignee, estimated_hours, estimate_source,
                   scheduled_start, scheduled_end, duration_days, due_date,
                   is_critical_path, has_risk, risk_reason, days_late, dependencies)
                VALUES (:sid, :item_type, :item_id, :assignee, :estimated_hours, :estimate_source,
                        :scheduled_start, :scheduled_end, :duration_days, :due_date,
                        :is_critical_path, :has_risk, :risk_reason, :days_late, :dependencies)
            """), {
                "sid": schedule_id,
                "item_type": task["itemType"],
                "item_id": task["itemId"],
                "assignee": task["assignee"],
                "estimated_hours": float(task["estimatedHours"] or 0),
                "estimate_source": task["estimateSource"],
                "scheduled_start": task["scheduledStart"],
                "scheduled_end": task["scheduledEnd"],
                "duration_days": int(task["durationDays"]),
                "due_date": task["dueDate"],
                "is_critical_path": task["isCriticalPath"],
                "has_risk": task["hasRisk"],
                "risk_reason": task["riskReason"],
                "days_late": task["daysLate"],
                "dependencies": json.dumps(task["dependencies"]),
            })
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("Created schedule #%s for project %s (%d tasks)", schedule_id, project_id, summary["totalTasks"])
    return {"scheduleId": schedule_id, "version": 1, **summary}
