"""
Tests for Kahn's topological sort and cycle path reconstruction.
"""
from schedule_backend.tools.schedule.engine.graph import build_dependency_graph
from schedule_backend.tools.schedule.engine.topo import find_cycle_path, topological_sort


def _graph(make_item, make_edge, n, blocks):
    items = [make_item(i) for i in range(1, n + 1)]
    edges = [make_edge(u, v, "blocks") for u, v in blocks]
    return build_dependency_graph(items, edges)


class TestTopologicalOrder:
    def test_every_edge_respected(self, make_item, make_edge):
        graph = _graph(make_item, make_edge, 6, [(1, 2), (1, 3), (3, 4), (2, 4), (5, 6), (4, 6)])
        result = topological_sort(graph)
        assert result["hasCycle"] is False
        pos = {k: i for i, k in enumerate(result["sorted"])}
        for u, successors in graph.edges.items():
            for v in successors:
                assert pos[u] < pos[v]

    def test_fifo_discovery_order(self, make_item, make_edge):
        """Zero in-degree nodes are seeded in item order."""
        graph = _graph(make_item, make_edge, 4, [(1, 3), (2, 4)])
        assert topological_sort(graph)["sorted"] == ["issue:1", "issue:2", "issue:3", "issue:4"]

    def test_does_not_mutate_graph_in_degree(self, make_item, make_edge):
        graph = _graph(make_item, make_edge, 2, [(1, 2)])
        topological_sort(graph)
        assert graph.in_degree["issue:2"] == 1

    def test_conservation_without_cycle(self, make_item, make_edge):
        graph = _graph(make_item, make_edge, 3, [(1, 2)])
        result = topological_sort(graph)
        assert len(result["sorted"]) + len(result["unreachable"]) == len(graph.nodes)
        assert result["cycleInfo"] is None


class TestCycleDetection:
    def test_three_node_cycle_round_trip(self, make_item, make_edge):
        """A->B->C->A reports exactly those three edges, in some rotation."""
        graph = _graph(make_item, make_edge, 3, [(1, 2), (2, 3), (3, 1)])
        result = topological_sort(graph)
        assert result["hasCycle"] is True
        cycle = result["cycleInfo"]["cycle"]
        assert cycle[0] == cycle[-1]
        pairs = set(zip(cycle, cycle[1:]))
        assert pairs == {("issue:1", "issue:2"), ("issue:2", "issue:3"), ("issue:3", "issue:1")}
        deps = {(d["from"], d["to"]) for d in result["cycleInfo"]["dependencies"]}
        assert deps == pairs

    def test_mutual_dependency(self, make_item, make_edge):
        """A depends on B depends on A gives the ring A, B, A."""
        graph = build_dependency_graph([make_item(1), make_item(2)], [make_edge(1, 2), make_edge(2, 1)])
        result = topological_sort(graph)
        assert result["hasCycle"] is True
        assert result["cycleInfo"]["cycle"] == ["issue:1", "issue:2", "issue:1"]
        assert len(result["cycleInfo"]["cycle"]) == 3

    def test_unreachable_includes_downstream_of_cycle(self, make_item, make_edge):
        graph = _graph(make_item, make_edge, 4, [(2, 3), (3, 2), (3, 4)])
        result = topological_sort(graph)
        assert result["sorted"] == ["issue:1"]
        assert result["unreachable"] == ["issue:2", "issue:3", "issue:4"]
        assert len(result["sorted"]) + len(result["unreachable"]) == len(graph.nodes)
        assert result["cycleInfo"]["cycle"] == ["issue:2", "issue:3", "issue:2"]

    def test_long_cycle_does_not_recurse(self, make_item, make_edge):
        """A ring longer than the default recursion limit is still reconstructed."""
        n = 3000
        blocks = [(i, i + 1) for i in range(1, n)] + [(n, 1)]
        graph = _graph(make_item, make_edge, n, blocks)
        result = topological_sort(graph)
        assert result["hasCycle"] is True
        assert len(result["cycleInfo"]["cycle"]) == n + 1

    def test_find_cycle_path_none_for_dag(self, make_item, make_edge):
        graph = _graph(make_item, make_edge, 3, [(1, 2), (2, 3)])
        assert find_cycle_path(graph, list(graph.nodes)) is None
