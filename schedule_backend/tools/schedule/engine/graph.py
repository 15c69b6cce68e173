import logging
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel

from schedule_backend.app.db.models import RawDependencyEdge, SchedulableItem

logger = logging.getLogger(__name__)


class RelationshipType(str, Enum):
    BLOCKS = "blocks"
    BLOCKED_BY = "blocked_by"
    DEPENDS_ON = "depends_on"
    DEPENDENCY = "dependency"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["RelationshipType"]:
        try:
            return cls(value)
        except ValueError:
            return None

    def orient(self, source: str, target: str) -> Tuple[str, str]:
        """Return (first, then): the edge always points from 'must finish first' to 'must wait'."""
        if self is RelationshipType.BLOCKS:
            return source, target
        if self is RelationshipType.BLOCKED_BY:
            return target, source
        if self in (RelationshipType.DEPENDS_ON, RelationshipType.DEPENDENCY):
            return target, source
        raise NotImplementedError(f"no edge direction defined for {self.value!r}")


class DependencyGraph(BaseModel):
    """Adjacency-list DAG candidate. Node order follows the order items were supplied."""

    nodes: Dict[str, SchedulableItem] = {}
    edges: Dict[str, List[str]] = {}
    in_degree: Dict[str, int] = {}

    def add_edge(self, u: str, v: str) -> bool:
        successors = self.edges[u]
        if v in successors:
            return False
        successors.append(v)
        self.in_degree[v] += 1
        return True


def build_dependency_graph(items: Iterable[SchedulableItem], raw_edges: Iterable[RawDependencyEdge]) -> DependencyGraph:
    """Build the directed graph for the requested items.

    Edges to or from items outside the set, and rows with an unknown relationship
    type, are dropped without error: stale and cross-project rows are expected.
    """
    graph = DependencyGraph()
    for item in items:
        key = item.key
        graph.nodes[key] = item
        graph.edges[key] = []
        graph.in_degree[key] = 0

    for dep in raw_edges:
        source_key = dep.source_key
        target_key = dep.target_key
        if source_key not in graph.nodes or target_key not in graph.nodes:
            logger.debug("Dropping out-of-scope dependency %s -> %s", source_key, target_key)
            continue
        rel = RelationshipType.parse(dep.relationship_type)
        if rel is None:
            logger.debug("Ignoring unknown relationship type %r", dep.relationship_type)
            continue
        u, v = rel.orient(source_key, target_key)
        graph.add_edge(u, v)
    return graph


def predecessors_of(graph: DependencyGraph, key: str) -> List[str]:
    """Keys with an edge into `key`, in edges iteration order."""
    return [u for u, successors in graph.edges.items() if key in successors]


def predecessor_map(graph: DependencyGraph) -> Dict[str, List[str]]:
    preds: Dict[str, List[str]] = {k: [] for k in graph.nodes}
    for u, successors in graph.edges.items():
        for v in successors:
            preds[v].append(u)
    return preds


def format_dependency_graph(graph: DependencyGraph) -> str:
    """Return a human-readable dump of the graph (nodes with hours, then edges)."""
    lines: List[str] = []
    lines.append("Nodes (estimate in hours):")
    for k, item in graph.nodes.items():
        title = f" {item.title}" if item.title else ""
        lines.append(f" - {k}:{title} ({item.estimate:.2f}h)")
    lines.append("")
    lines.append("Edges (prerequisite -> dependent):")
    pairs = [(u, v) for u, successors in graph.edges.items() for v in successors]
    if pairs:
        for u, v in pairs:
            lines.append(f" - {u} -> {v}")
    else:
        lines.append(" - (no dependencies detected)")
    return "\n".join(lines)
