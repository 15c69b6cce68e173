from .allocation import assignee_shares, calculate_resource_allocation
from .calendar import (
    add_business_days,
    calculate_duration_days,
    count_business_days,
    parse_iso_date,
    skip_weekend,
    week_start,
)
from .critical_path import calculate_critical_path
from .deadline import analyze_deadline, format_delay
from .errors import CycleDetectedError, InvalidScheduleInput, ScheduleError
from .graph import (
    DependencyGraph,
    RelationshipType,
    build_dependency_graph,
    format_dependency_graph,
    predecessors_of,
)
from .risk import detect_task_risks
from .schedule import (
    calculate_project_schedule,
    compute_dates,
    compute_schedule,
    sort_items_by_dependencies,
)
from .topo import find_cycle_path, topological_sort

__all__ = [
    "DependencyGraph",
    "RelationshipType",
    "build_dependency_graph",
    "format_dependency_graph",
    "predecessors_of",
    "topological_sort",
    "find_cycle_path",
    "calculate_critical_path",
    "parse_iso_date",
    "skip_weekend",
    "add_business_days",
    "calculate_duration_days",
    "count_business_days",
    "week_start",
    "detect_task_risks",
    "assignee_shares",
    "calculate_resource_allocation",
    "analyze_deadline",
    "format_delay",
    "sort_items_by_dependencies",
    "compute_dates",
    "calculate_project_schedule",
    "compute_schedule",
    "ScheduleError",
    "InvalidScheduleInput",
    "CycleDetectedError",
]
