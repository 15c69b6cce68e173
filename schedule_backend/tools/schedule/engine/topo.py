from collections import deque
from typing import Dict, Iterable, Iterator, List, Optional, Set, Tuple

from .graph import DependencyGraph


def topological_sort(graph: DependencyGraph) -> dict:
    """Kahn's algorithm over the dependency graph.

    Returns JSON: {"sorted", "hasCycle", "unreachable", "cycleInfo"}. A cycle is a
    normal outcome here; cycleInfo then holds the ring and the edges forming it.
    """
    indeg: Dict[str, int] = dict(graph.in_degree)
    q = deque([k for k, d in indeg.items() if d == 0])
    order: List[str] = []
    while q:
        u = q.popleft()
        order.append(u)
        for v in graph.edges.get(u, []):
            indeg[v] -= 1
            if indeg[v] == 0:
                q.append(v)

    has_cycle = len(order) < len(graph.nodes)
    unreachable: List[str] = []
    cycle_info: Optional[dict] = None
    if has_cycle:
        done = set(order)
        unreachable = [k for k in graph.nodes if k not in done]
        cycle_info = find_cycle_path(graph, unreachable)

    return {
        "sorted": order,
        "hasCycle": has_cycle,
        "unreachable": unreachable,
        "cycleInfo": cycle_info,
    }


def find_cycle_path(graph: DependencyGraph, start_nodes: Iterable[str]) -> Optional[dict]:
    """Depth-first search for the first back edge reachable from start_nodes.

    Uses an explicit stack so deep graphs cannot exhaust the interpreter's recursion limit.
    Returns {"cycle": [k0, ..., k0], "dependencies": [{"from", "to"}, ...]} or None.
    """
    visited: Set[str] = set()
    for root in start_nodes:
        if root in visited:
            continue
        path: List[str] = [root]
        on_stack: Set[str] = {root}
        visited.add(root)
        stack: List[Tuple[str, Iterator[str]]] = [(root, iter(graph.edges.get(root, [])))]
        while stack:
            node, successors = stack[-1]
            nxt = next(successors, None)
            if nxt is None:
                stack.pop()
                on_stack.discard(node)
                path.pop()
                continue
            if nxt in on_stack:
                ring = path[path.index(nxt):] + [nxt]
                return {
                    "cycle": ring,
                    "dependencies": [{"from": a, "to": b} for a, b in zip(ring, ring[1:])],
                }
            if nxt in visited:
                continue
            visited.add(nxt)
            on_stack.add(nxt)
            path.append(nxt)
            stack.append((nxt, iter(graph.edges.get(nxt, []))))
    return None
