import math
from datetime import date, datetime, timedelta
from typing import Optional

SATURDAY = 5
SUNDAY = 6


def parse_iso_date(d) -> Optional[date]:
    """Accept a date, datetime, 'YYYY-MM-DD' or full ISO timestamp. Returns None when unparseable."""
    if d is None or d == "":
        return None
    if isinstance(d, datetime):
        return d.date()
    if isinstance(d, date):
        return d
    if not isinstance(d, str):
        return None
    try:
        if len(d) == 10:
            return datetime.strptime(d, "%Y-%m-%d").date()
        return datetime.fromisoformat(d.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def is_weekend(d: date) -> bool:
    return d.weekday() in (SATURDAY, SUNDAY)


def skip_weekend(d: date) -> date:
    """Saturday moves to Monday (+2), Sunday to Monday (+1); weekdays are unchanged."""
    if d.weekday() == SATURDAY:
        return d + timedelta(days=2)
    if d.weekday() == SUNDAY:
        return d + timedelta(days=1)
    return d


def calculate_duration_days(hours: float, hours_per_day: float = 8) -> int:
    if not hours:
        return 0
    return int(math.ceil(hours / hours_per_day))


def add_business_days(start: date, days: int, include_weekends: bool = False) -> date:
    """End date of a task lasting `days` working days. The start day counts as day 1,
    so a 1-day task ends on its start date and a 0-day task is zero-width.
    """
    days = int(math.ceil(days))
    if days <= 0:
        return start
    if include_weekends:
        return start + timedelta(days=days - 1)
    d = start
    remaining = days - 1
    while remaining > 0:
        d = d + timedelta(days=1)
        if not is_weekend(d):
            remaining -= 1
    return d


def count_business_days(start: date, end: date, include_weekends: bool = False) -> int:
    """Inclusive count of working days in [start, end]; at least 1 for a valid range, 0 if end < start."""
    if start is None or end is None or end < start:
        return 0
    if include_weekends:
        return max(1, (end - start).days + 1)
    count = 0
    d = start
    while d <= end:
        if not is_weekend(d):
            count += 1
        d = d + timedelta(days=1)
    return max(1, count)


def week_start(d: date) -> date:
    """Monday of the ISO week containing d (Sunday belongs to the week that began six days earlier)."""
    return d - timedelta(days=d.weekday())
