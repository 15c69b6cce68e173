import math
from datetime import date
from typing import List, Optional

from schedule_backend import config

from .calendar import count_business_days


def format_delay(delay_days: int) -> str:
    weeks, days = divmod(delay_days, 7)
    if weeks > 0:
        text = "1 week" if weeks == 1 else f"{weeks} weeks"
        if days > 0:
            text += f" and {days} day{'s' if days > 1 else ''}"
        return text
    return f"{delay_days} day{'s' if delay_days > 1 else ''}"


def analyze_deadline(
    project_start: date,
    project_end: date,
    deadline: Optional[date],
    total_hours: float,
    hours_per_day: float,
    include_weekends: bool,
    has_assignees: bool = True,
) -> Optional[dict]:
    """Compare the computed end date to a target deadline.

    Suggestions are text only; no alternate schedule is computed.
    Returns None when no deadline is given.
    """
    if deadline is None:
        return None

    if project_end <= deadline:
        return {
            "hasOverrun": False,
            "projectDeadline": deadline.isoformat(),
            "calculatedEnd": project_end.isoformat(),
            "message": "Schedule fits within project deadline",
        }

    delay_days = (project_end - deadline).days
    delay_text = format_delay(delay_days)

    suggestions: List[str] = []
    working_days = count_business_days(project_start, deadline, include_weekends)
    if working_days > 0:
        required = int(math.ceil(total_hours / working_days))
        if hours_per_day < required <= config.MAX_SUGGESTED_HOURS_PER_DAY:
            suggestions.append(f"Increase working hours to {required} hours/day")

    if not include_weekends:
        suggestions.append("Include weekends in the schedule")

    if has_assignees:
        extra = int(math.ceil(delay_days / 7))
        suggestions.append(f"Add {extra} more team member{'s' if extra > 1 else ''} to distribute workload")

    suggestions.append("Review and prioritize critical tasks only")

    return {
        "hasOverrun": True,
        "projectDeadline": deadline.isoformat(),
        "calculatedEnd": project_end.isoformat(),
        "delayDays": delay_days,
        "delayText": delay_text,
        "message": f"Schedule extends {delay_text} beyond project deadline",
        "suggestions": suggestions,
    }
