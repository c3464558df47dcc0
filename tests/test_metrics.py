"""Tests for dependency metrics."""

from typegraph_cli.clusters import detect_clusters
from typegraph_cli.graph_builder import build_dependency_graph
from typegraph_cli.metrics import calculate_dependency_metrics, max_dependency_depth
from typegraph_cli.models import DependencyMetrics


class TestMaxDependencyDepth:
    """Tests for Kahn-based depth."""

    def test_linear_chain(self, make_record):
        records = [make_record("Level0")] + [
            make_record(f"Level{i}", base=f"Level{i - 1}") for i in range(1, 10)
        ]

        assert max_dependency_depth(build_dependency_graph(records)) == 9

    def test_sample_catalog(self, sample_catalog):
        graph = build_dependency_graph(sample_catalog.find_all())

        assert max_dependency_depth(graph) == 3

    def test_cycle_members_excluded(self, make_record):
        records = [
            make_record("A", kind="interface", interfaces=["B"]),
            make_record("B", kind="interface", interfaces=["A"]),
            make_record("C"),
        ]

        assert max_dependency_depth(build_dependency_graph(records)) == 0


class TestCalculateDependencyMetrics:
    """Tests for the aggregate block."""

    def test_sample_catalog(self, sample_catalog):
        graph = build_dependency_graph(sample_catalog.find_all())
        metrics = calculate_dependency_metrics(graph, detect_clusters(graph))

        assert metrics.total_nodes == 13
        assert metrics.total_edges == 8
        assert metrics.max_dependencies == 3
        assert metrics.average_dependencies == 8 / 13
        assert metrics.cluster_count == 1
        assert metrics.circular_dependencies == 0

    def test_counts_circular_clusters(self, make_record):
        records = [
            make_record("A", kind="interface", interfaces=["B"]),
            make_record("B", kind="interface", interfaces=["A"]),
        ]
        graph = build_dependency_graph(records)
        metrics = calculate_dependency_metrics(graph, detect_clusters(graph))

        assert metrics.circular_dependencies == 1

    def test_empty_graph(self):
        graph = build_dependency_graph([])

        assert calculate_dependency_metrics(graph, []) == DependencyMetrics()
