"""Compute a schedule from a JSON file and print it.

The file holds {"items": [...], "edges": [...], "startDate": "...", optional
"hoursPerDay", "includeWeekends", "projectDeadline"}.

    python -m schedule_backend.scripts.run_schedule plan.json
"""
import json
import sys
from pathlib import Path

from schedule_backend.app.db.models import RawDependencyEdge, SchedulableItem
from schedule_backend.tools.schedule.engine import (
    CycleDetectedError,
    build_dependency_graph,
    calculate_project_schedule,
    format_dependency_graph,
)


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        print("usage: run_schedule.py <plan.json>", file=sys.stderr)
        return 2
    data = json.loads(Path(argv[0]).read_text(encoding="utf-8"))
    items = [SchedulableItem.model_validate(i) for i in data.get("items", [])]
    edges = [RawDependencyEdge.model_validate(e) for e in data.get("edges", [])]

    print("=== dependency graph ===")
    print(format_dependency_graph(build_dependency_graph(items, edges)))

    print("\n=== schedule ===")
    try:
        schedule = calculate_project_schedule(
            items,
            data.get("startDate"),
            hours_per_day=data.get("hoursPerDay"),
            include_weekends=data.get("includeWeekends"),
            project_deadline=data.get("projectDeadline"),
            raw_edges=edges,
        )
    except CycleDetectedError as e:
        print(e.message, file=sys.stderr)
        return 1
    print(json.dumps(schedule, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
