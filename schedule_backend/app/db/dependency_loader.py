import logging
from typing import Dict, Iterable, List, Sequence, Tuple

from sqlalchemy import bindparam, text
from sqlalchemy.orm import Session

from .models import Assignee, RawDependencyEdge, SchedulableItem, WorkItemKind, WorkItemRef

logger = logging.getLogger(__name__)

RELATIONSHIP_TYPES = ("blocks", "blocked_by", "depends_on", "dependency")

_ITEM_TABLES = {
    WorkItemKind.ISSUE: ("issues", "issue_assignees", "issue_id"),
    WorkItemKind.ACTION_ITEM: ("action_items", "action_item_assignees", "action_item_id"),
}


def _split_ids(items: Iterable) -> Tuple[List[int], List[int]]:
    issue_ids: List[int] = []
    action_ids: List[int] = []
    for item in items:
        if item.kind == WorkItemKind.ISSUE:
            issue_ids.append(int(item.id))
        elif item.kind == WorkItemKind.ACTION_ITEM:
            action_ids.append(int(item.id))
    return issue_ids, action_ids


def _edge(row) -> RawDependencyEdge:
    return RawDependencyEdge(
        source_type=row.source_type,
        source_id=row.source_id,
        target_type=row.target_type,
        target_id=row.target_id,
        relationship_type=row.relationship_type,
    )


def load_dependencies(db: Session, items: Sequence) -> List[RawDependencyEdge]:
    """Fetch every stored relationship touching the requested items.

    Reads the per-kind prerequisite tables and the generic issue_relationships
    table. Directions are normalized later by the graph builder.
    """
    if not items:
        return []
    issue_ids, action_ids = _split_ids(items)
    if not issue_ids and not action_ids:
        return []

    edges: List[RawDependencyEdge] = []

    if issue_ids:
        rows = db.execute(
            text("""
                SELECT 'issue' AS source_type,
                       issue_id AS source_id,
                       prerequisite_item_type AS target_type,
                       prerequisite_item_id AS target_id,
                       'depends_on' AS relationship_type
                FROM issue_dependencies
                WHERE issue_id IN :ids
            """).bindparams(bindparam("ids", expanding=True)),
            {"ids": issue_ids},
        ).fetchall()
        edges.extend(_edge(r) for r in rows)

    if action_ids:
        rows = db.execute(
            text("""
                SELECT 'action-item' AS source_type,
                       action_item_id AS source_id,
                       prerequisite_item_type AS target_type,
                       prerequisite_item_id AS target_id,
                       'depends_on' AS relationship_type
                FROM action_item_dependencies
                WHERE action_item_id IN :ids
            """).bindparams(bindparam("ids", expanding=True)),
            {"ids": action_ids},
        ).fetchall()
        edges.extend(_edge(r) for r in rows)

    # Legacy relationship rows, kept for backwards compatibility
    rows = db.execute(
        text("""
            SELECT source_type, source_id, target_type, target_id, relationship_type
            FROM issue_relationships
            WHERE ((source_type = 'issue' AND source_id IN :issue_ids)
                   OR (source_type = 'action-item' AND source_id IN :action_ids))
              AND ((target_type = 'issue' AND target_id IN :issue_ids)
                   OR (target_type = 'action-item' AND target_id IN :action_ids))
              AND relationship_type IN :rel_types
        """).bindparams(
            bindparam("issue_ids", expanding=True),
            bindparam("action_ids", expanding=True),
            bindparam("rel_types", expanding=True),
        ),
        {"issue_ids": issue_ids, "action_ids": action_ids, "rel_types": list(RELATIONSHIP_TYPES)},
    ).fetchall()
    edges.extend(_edge(r) for r in rows)

    logger.debug("Loaded %d dependency rows for %d items", len(edges), len(items))
    return edges


def _planning_estimate(row) -> float:
    """Pick the estimate the planner selected, falling back to AI then manual."""
    source = row.planning_estimate_source
    if source == "manual" and row.estimated_effort_hours:
        return row.estimated_effort_hours
    if source == "ai" and row.ai_effort_estimate_hours:
        return row.ai_effort_estimate_hours
    if source == "hybrid" and row.hybrid_effort_estimate_hours:
        return row.hybrid_effort_estimate_hours
    return row.ai_effort_estimate_hours or row.estimated_effort_hours or 0


def load_schedulable_items(db: Session, refs: Sequence[WorkItemRef]) -> List[SchedulableItem]:
    """Read issues/action items with estimates and effort-split assignees, in the order of refs.
    Refs that do not exist in storage are skipped.
    """
    loaded: Dict[str, SchedulableItem] = {}
    for kind, (table, assignee_table, fk) in _ITEM_TABLES.items():
        ids = [r.id for r in refs if r.kind == kind]
        if not ids:
            continue
        rows = db.execute(
            text(f"""
                SELECT id, title, assignee, due_date,
                       estimated_effort_hours, ai_effort_estimate_hours,
                       hybrid_effort_estimate_hours, planning_estimate_source
                FROM {table}
                WHERE id IN :ids
            """).bindparams(bindparam("ids", expanding=True)),
            {"ids": ids},
        ).fetchall()
        assignee_rows = db.execute(
            text(f"""
                SELECT a.{fk} AS item_id, u.username, a.effort_percentage
                FROM {assignee_table} a
                JOIN users u ON u.id = a.user_id
                WHERE a.{fk} IN :ids
                ORDER BY a.is_primary DESC, a.id ASC
            """).bindparams(bindparam("ids", expanding=True)),
            {"ids": ids},
        ).fetchall()
        by_item: Dict[int, List[Assignee]] = {}
        for a in assignee_rows:
            by_item.setdefault(a.item_id, []).append(
                Assignee(username=a.username, effort_percentage=a.effort_percentage)
            )
        for row in rows:
            item = SchedulableItem(
                kind=kind,
                id=row.id,
                title=row.title,
                estimate=_planning_estimate(row),
                due_date=row.due_date,
                assignee=row.assignee,
                assignees=by_item.get(row.id, []),
                estimate_source=row.planning_estimate_source or "unknown",
            )
            loaded[item.key] = item
    return [loaded[r.key] for r in refs if r.key in loaded]
