from typing import Dict, List, Mapping, Optional

from .graph import DependencyGraph, predecessor_map


def calculate_critical_path(sorted_keys: List[str], graph: DependencyGraph, estimates: Mapping[str, float]) -> dict:
    """Longest chain through the DAG by estimated hours.

    Single forward pass in topological order, so every predecessor's EF is final
    when a node is reached. Only meaningful for an acyclic graph.

    Returns JSON: {"path": [keys], "totalHours", "projectFinishHours"}.
    totalHours sums estimates along the backtracked chain; projectFinishHours is
    the largest earliest finish over all nodes.
    """
    preds = predecessor_map(graph)
    ES: Dict[str, float] = {}
    EF: Dict[str, float] = {}
    critical_pred: Dict[str, Optional[str]] = {}

    for u in sorted_keys:
        start = 0.0
        chosen: Optional[str] = None
        # strict '>' keeps the first predecessor on ties
        for p in preds.get(u, []):
            finish = EF.get(p, 0.0)
            if finish > start:
                start = finish
                chosen = p
        ES[u] = start
        EF[u] = start + float(estimates.get(u, 0.0) or 0.0)
        critical_pred[u] = chosen

    project_finish = 0.0
    end_node: Optional[str] = None
    for u in sorted_keys:
        if EF[u] > project_finish:
            project_finish = EF[u]
            end_node = u

    path: List[str] = []
    total = 0.0
    current = end_node
    while current is not None:
        path.append(current)
        total += float(estimates.get(current, 0.0) or 0.0)
        current = critical_pred.get(current)
    path.reverse()

    return {"path": path, "totalHours": total, "projectFinishHours": project_finish}
