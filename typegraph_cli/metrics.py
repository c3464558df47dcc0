"""Aggregate metrics over a dependency graph."""

from __future__ import annotations

from collections import deque
from typing import List, Sequence

from .graph_builder import DependencyGraph
from .models import DependencyMetrics, TypeCluster


def max_dependency_depth(graph: DependencyGraph) -> int:
    """Deepest wave reached by Kahn's algorithm.

    Nodes on or behind a cycle never reach in-degree zero and are left out
    of the depth computation.
    """
    in_degree = [0] * len(graph)
    for _src, dst in graph.edge_ids:
        in_degree[dst] += 1

    queue = deque((node_id, 0) for node_id, degree in enumerate(in_degree) if degree == 0)
    max_depth = 0
    while queue:
        node_id, depth = queue.popleft()
        max_depth = max(max_depth, depth)
        for nxt in graph.adjacency[node_id]:
            in_degree[nxt] -= 1
            if in_degree[nxt] == 0:
                queue.append((nxt, depth + 1))
    return max_depth


def calculate_dependency_metrics(
    graph: DependencyGraph,
    clusters: Sequence[TypeCluster],
) -> DependencyMetrics:
    if not graph.nodes:
        return DependencyMetrics()

    counts: List[int] = [node.dependency_count for node in graph.nodes]
    return DependencyMetrics(
        total_nodes=len(graph.nodes),
        total_edges=len(graph.edges),
        average_dependencies=sum(counts) / len(counts),
        max_dependencies=max(counts),
        circular_dependencies=sum(1 for cluster in clusters if cluster.is_circular),
        max_depth=max_dependency_depth(graph),
        cluster_count=len(clusters),
    )
