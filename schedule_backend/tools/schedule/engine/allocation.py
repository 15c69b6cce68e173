from typing import Dict, List, Optional, Tuple

from schedule_backend.app.db.models import UNASSIGNED

from .calendar import parse_iso_date, week_start


def assignee_shares(assignee: Optional[str], assignees: Optional[List[dict]]) -> List[Tuple[str, float]]:
    """Resolve who carries a task and with what effort percentage.

    The assignees list wins when it names anyone; otherwise the legacy single
    assignee gets 100%. An unset percentage means 100.
    """
    shares: List[Tuple[str, float]] = []
    for a in assignees or []:
        username = (a.get("username") or "").strip()
        if not username:
            continue
        pct = a.get("effortPercentage")
        shares.append((username, 100.0 if pct is None else float(pct)))
    if shares:
        return shares
    name = (assignee or "").strip()
    if name and name != UNASSIGNED:
        return [(name, 100.0)]
    return []


def calculate_resource_allocation(scheduled_tasks: List[dict]) -> Dict[str, Dict[str, dict]]:
    """Bucket scheduled hours by assignee and by the Monday of the task's start week.

    Returns JSON: {assignee: {"YYYY-MM-DD": {"tasks": [...], "totalHours"}}}.
    Tasks nobody is assigned to are left out.
    """
    allocation: Dict[str, Dict[str, dict]] = {}
    for task in scheduled_tasks:
        shares = assignee_shares(task.get("assignee"), task.get("assignees"))
        if not shares:
            continue
        start = parse_iso_date(task.get("scheduledStart"))
        if start is None:
            continue
        week_key = week_start(start).isoformat()
        hours = float(task.get("estimatedHours") or 0.0)
        for username, pct in shares:
            share = hours * pct / 100.0
            bucket = allocation.setdefault(username, {}).setdefault(week_key, {"tasks": [], "totalHours": 0.0})
            bucket["tasks"].append({
                "type": task.get("itemType"),
                "id": task.get("itemId"),
                "title": task.get("title"),
                "hours": share,
                "effortPercentage": pct,
            })
            bucket["totalHours"] += share
    return allocation
