from schedule_backend import config

from .allocation import assignee_shares
from .calendar import parse_iso_date


def detect_task_risks(task: dict) -> dict:
    """Heuristic risk flags for one scheduled task. Pure; never raises.

    Returns JSON: {"hasRisk": bool, "riskReason": "reason; reason"}.
    """
    risks = []
    hours = task.get("estimatedHours") or 0

    if not hours:
        risks.append("No effort estimate")

    if not assignee_shares(task.get("assignee"), task.get("assignees")):
        risks.append("No assignee")

    due = parse_iso_date(task.get("dueDate"))
    end = parse_iso_date(task.get("scheduledEnd"))
    if due and end and end > due:
        risks.append(f"Will finish {(end - due).days} day(s) after due date")

    if hours > config.HIGH_COMPLEXITY_HOURS:
        risks.append(f"High complexity task (>{config.HIGH_COMPLEXITY_HOURS:g} hours)")

    deps = task.get("dependencies") or []
    if len(deps) >= config.MANY_DEPENDENCIES_THRESHOLD:
        risks.append(f"Depends on {len(deps)} other tasks")

    return {"hasRisk": bool(risks), "riskReason": "; ".join(risks)}
