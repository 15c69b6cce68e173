import logging
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from schedule_backend import config
from schedule_backend.app.db.dependency_loader import load_dependencies
from schedule_backend.app.db.models import RawDependencyEdge, SchedulableItem, WorkItemRef

from .allocation import assignee_shares, calculate_resource_allocation
from .calendar import add_business_days, calculate_duration_days, parse_iso_date, skip_weekend
from .critical_path import calculate_critical_path
from .deadline import analyze_deadline
from .errors import CycleDetectedError, InvalidScheduleInput
from .graph import build_dependency_graph, predecessor_map
from .risk import detect_task_risks
from .topo import topological_sort

logger = logging.getLogger(__name__)


# ------------------------------
# Dependency ordering
# ------------------------------

def sort_items_by_dependencies(
    items: Sequence[SchedulableItem],
    raw_edges: Iterable[RawDependencyEdge] = (),
) -> dict:
    """Order items by their dependencies and find the critical path.

    Returns JSON: {"sorted": [SchedulableItem with dependencies filled], "hasCycle",
    "unreachable": [{"type","id"}], "cycleInfo", "criticalPath": [keys], "criticalPathHours"}.
    """
    if not items:
        return {
            "sorted": [],
            "hasCycle": False,
            "unreachable": [],
            "cycleInfo": None,
            "criticalPath": [],
            "criticalPathHours": 0.0,
        }

    graph = build_dependency_graph(items, raw_edges)
    topo = topological_sort(graph)

    critical_path: List[str] = []
    critical_hours = 0.0
    if not topo["hasCycle"]:
        estimates = {k: item.estimate for k, item in graph.nodes.items()}
        cp = calculate_critical_path(topo["sorted"], graph, estimates)
        critical_path = cp["path"]
        critical_hours = cp["totalHours"]

    preds = predecessor_map(graph)
    sorted_items = [
        graph.nodes[k].model_copy(update={"dependencies": list(preds[k])})
        for k in topo["sorted"]
    ]
    return {
        "sorted": sorted_items,
        "hasCycle": topo["hasCycle"],
        "unreachable": [WorkItemRef.from_key(k).as_dict() for k in topo["unreachable"]],
        "cycleInfo": topo["cycleInfo"],
        "criticalPath": critical_path,
        "criticalPathHours": critical_hours,
    }


def format_cycle_message(items: Iterable[SchedulableItem], cycle_info: Optional[dict], unreachable: List[dict]) -> str:
    """Readable cycle report with titles, naming the dependencies a user could remove."""
    titles: Dict[str, str] = {item.key: item.title or "Untitled" for item in items}

    def label(key: str) -> str:
        kind, _, item_id = key.rpartition(":")
        return f"{kind}#{item_id}"

    lines = ["Circular dependency detected:", ""]
    if cycle_info and cycle_info.get("cycle"):
        lines.append("Dependency cycle:")
        lines.append("\n -> ".join(f"{label(k)}: {titles.get(k, 'Unknown')}" for k in cycle_info["cycle"]))
        lines.append("")
        lines.append("To fix this, remove one of these dependencies:")
        for i, dep in enumerate(cycle_info.get("dependencies", []), start=1):
            first, then = dep["from"], dep["to"]
            lines.append(
                f"{i}. {label(then)} ({titles.get(then, 'Unknown')}) depends on "
                f"{label(first)} ({titles.get(first, 'Unknown')})"
            )
    else:
        involved = ", ".join(f"{u['type']}#{u['id']}" for u in unreachable)
        lines.append(f"Tasks involved: {involved}")
    return "\n".join(lines)


# ------------------------------
# Date assignment
# ------------------------------

def _parse_start(start_date) -> date:
    if start_date is None or start_date == "":
        raise InvalidScheduleInput("Start date is required")
    parsed = parse_iso_date(start_date)
    if parsed is None:
        raise InvalidScheduleInput(f"Invalid start date: {start_date!r}")
    return parsed


def compute_dates(
    sorted_items: Sequence[SchedulableItem],
    start_date,
    hours_per_day: float = 8,
    include_weekends: bool = False,
    critical_keys: Iterable[str] = (),
) -> Tuple[List[dict], date]:
    """Assign calendar dates to items already in topological order.

    A dependent starts the day after its last prerequisite ends. Assumes the
    order is valid; cycles must be rejected by the caller.
    Returns (scheduled task dicts, project end date).
    """
    if not sorted_items:
        raise InvalidScheduleInput("No items provided for scheduling")
    project_start = _parse_start(start_date)
    if not hours_per_day or hours_per_day <= 0:
        raise InvalidScheduleInput(f"hours_per_day must be positive, got {hours_per_day!r}")

    critical = set(critical_keys)
    end_dates: Dict[str, date] = {}
    tasks: List[dict] = []
    project_end = project_start

    for item in sorted_items:
        key = item.key
        hours = item.estimate
        duration_days = calculate_duration_days(hours, hours_per_day)

        start = project_start
        dep_ends = [end_dates[d] for d in item.dependencies if d in end_dates]
        if dep_ends:
            start = max(project_start, max(dep_ends) + timedelta(days=1))
        if not include_weekends:
            start = skip_weekend(start)

        end = add_business_days(start, duration_days, include_weekends)
        end_dates[key] = end
        if end > project_end:
            project_end = end

        days_late = None
        if item.due_date and end > item.due_date:
            days_late = (end - item.due_date).days

        assignees = [{"username": a.username, "effortPercentage": a.effort_percentage} for a in item.assignees]
        shares = assignee_shares(item.assignee, assignees)
        task = {
            "itemType": item.kind.value,
            "itemId": item.id,
            "title": item.title or f"{item.kind.value} #{item.id}",
            "assignee": shares[0][0] if shares else None,
            "assignees": assignees,
            "estimatedHours": hours,
            "estimateSource": item.estimate_source,
            "scheduledStart": start.isoformat(),
            "scheduledEnd": end.isoformat(),
            "durationDays": duration_days,
            "dueDate": item.due_date.isoformat() if item.due_date else None,
            "isCriticalPath": key in critical,
            "daysLate": days_late,
            "dependencies": list(item.dependencies),
        }
        risk = detect_task_risks(task)
        task["hasRisk"] = risk["hasRisk"]
        task["riskReason"] = risk["riskReason"] if risk["hasRisk"] else None
        tasks.append(task)

    return tasks, project_end


# ------------------------------
# Public entry points
# ------------------------------

def calculate_project_schedule(
    items: Sequence[SchedulableItem],
    start_date,
    hours_per_day: Optional[float] = None,
    include_weekends: Optional[bool] = None,
    project_deadline=None,
    raw_edges: Iterable[RawDependencyEdge] = (),
) -> dict:
    """Compute the complete project schedule for items and their stored relationships.

    Raises InvalidScheduleInput for empty items or a bad start date, and
    CycleDetectedError when the dependencies are circular.
    """
    if hours_per_day is None:
        hours_per_day = config.DEFAULT_HOURS_PER_DAY
    if include_weekends is None:
        include_weekends = config.DEFAULT_INCLUDE_WEEKENDS

    if not items:
        raise InvalidScheduleInput("No items provided for scheduling")
    project_start = _parse_start(start_date)

    ordering = sort_items_by_dependencies(items, raw_edges)
    if ordering["hasCycle"]:
        message = format_cycle_message(items, ordering["cycleInfo"], ordering["unreachable"])
        raise CycleDetectedError(message, cycle_info=ordering["cycleInfo"], unreachable=ordering["unreachable"])

    tasks, project_end = compute_dates(
        ordering["sorted"],
        project_start,
        hours_per_day=hours_per_day,
        include_weekends=include_weekends,
        critical_keys=ordering["criticalPath"],
    )

    total_hours = sum(t["estimatedHours"] for t in tasks)
    deadline = None
    if project_deadline:
        deadline = parse_iso_date(project_deadline)
        if deadline is None:
            logger.warning("Ignoring unparseable project deadline %r", project_deadline)

    deadline_warning = analyze_deadline(
        project_start,
        project_end,
        deadline,
        total_hours,
        hours_per_day,
        include_weekends,
        has_assignees=any(t["assignee"] for t in tasks),
    )

    logger.info("Scheduled %d tasks from %s to %s", len(tasks), project_start.isoformat(), project_end.isoformat())

    return {
        "summary": {
            "startDate": project_start.isoformat(),
            "endDate": project_end.isoformat(),
            "totalTasks": len(tasks),
            "totalHours": total_hours,
            "criticalPathTasks": sum(1 for t in tasks if t["isCriticalPath"]),
            "criticalPathHours": ordering["criticalPathHours"],
            "risksCount": sum(1 for t in tasks if t["hasRisk"]),
            "hoursPerDay": hours_per_day,
            "includeWeekends": include_weekends,
            "deadlineWarning": deadline_warning,
        },
        "tasks": tasks,
        "resourceAllocation": calculate_resource_allocation(tasks),
        "criticalPath": [WorkItemRef.from_key(k).as_dict() for k in ordering["criticalPath"]],
    }


def compute_schedule(
    db: Session,
    items: Sequence[SchedulableItem],
    start_date,
    hours_per_day: Optional[float] = None,
    include_weekends: Optional[bool] = None,
    project_deadline=None,
) -> dict:
    """Load stored relationships for items, then compute the schedule."""
    raw_edges = load_dependencies(db, items)
    return calculate_project_schedule(
        items,
        start_date,
        hours_per_day=hours_per_day,
        include_weekends=include_weekends,
        project_deadline=project_deadline,
        raw_edges=raw_edges,
    )
