"""Connected-component clustering and cycle detection for dependency graphs."""

from __future__ import annotations

import logging
from itertools import islice
from typing import Dict, List, Sequence, Set

import networkx as nx

from .graph_builder import DependencyGraph
from .models import CircularReference, ResolutionSuggestion, TypeCluster

logger = logging.getLogger(__name__)

MAX_CYCLES_PER_CLUSTER = 100

SEVERITY_LEVELS = ("low", "medium", "high", "critical")

_CYCLE_SEVERITY = {
    "inheritance": "critical",
    "interface": "high",
    "generic": "medium",
    "composition": "low",
}

_SUGGESTIONS = {
    "inheritance": (
        "interface_extraction",
        "Extract common functionality into interfaces to break inheritance cycles",
        "high",
    ),
    "interface": (
        "dependency_injection",
        "Use dependency injection to decouple interface dependencies",
        "medium",
    ),
    "generic": (
        "refactoring",
        "Simplify generic type relationships to reduce circular constraints",
        "medium",
    ),
    "composition": (
        "refactoring",
        "Refactor composition relationships to eliminate circular dependencies",
        "low",
    ),
}


class UnionFind:
    """Disjoint sets over ``0..size-1`` with path compression and union by rank."""

    def __init__(self, size: int) -> None:
        self.parent = list(range(size))
        self.rank = [0] * size

    def find(self, x: int) -> int:
        root = x
        while self.parent[root] != root:
            root = self.parent[root]
        while self.parent[x] != root:
            self.parent[x], x = root, self.parent[x]
        return root

    def union(self, x: int, y: int) -> None:
        root_x = self.find(x)
        root_y = self.find(y)
        if root_x == root_y:
            return
        if self.rank[root_x] < self.rank[root_y]:
            self.parent[root_x] = root_y
        elif self.rank[root_x] > self.rank[root_y]:
            self.parent[root_y] = root_x
        else:
            self.parent[root_y] = root_x
            self.rank[root_x] += 1


def connected_components(graph: DependencyGraph) -> List[List[int]]:
    """Components of the undirected closure, in order of their first node."""
    uf = UnionFind(len(graph))
    for src, dst in graph.edge_ids:
        uf.union(src, dst)

    groups: Dict[int, List[int]] = {}
    for node_id in range(len(graph)):
        groups.setdefault(uf.find(node_id), []).append(node_id)
    return list(groups.values())


def _induced_adjacency(graph: DependencyGraph, members: Sequence[int]) -> Dict[int, List[int]]:
    member_set = set(members)
    return {
        node_id: [nxt for nxt in graph.adjacency[node_id] if nxt in member_set]
        for node_id in members
    }


def has_cycle(graph: DependencyGraph, members: Sequence[int]) -> bool:
    """True iff a directed cycle exists among edges internal to *members*."""
    adjacency = _induced_adjacency(graph, members)
    visited: Set[int] = set()
    on_stack: Set[int] = set()

    for start in members:
        if start in visited:
            continue
        visited.add(start)
        on_stack.add(start)
        stack = [(start, iter(adjacency[start]))]
        while stack:
            node_id, neighbours = stack[-1]
            advanced = False
            for nxt in neighbours:
                if nxt in on_stack:
                    return True
                if nxt not in visited:
                    visited.add(nxt)
                    on_stack.add(nxt)
                    stack.append((nxt, iter(adjacency[nxt])))
                    advanced = True
                    break
            if not advanced:
                on_stack.discard(node_id)
                stack.pop()
    return False


def find_cycles(
    graph: DependencyGraph, members: Sequence[int], limit: int = MAX_CYCLES_PER_CLUSTER
) -> List[List[str]]:
    """Elementary cycle paths among *members*, e.g. ``[A, B, C, A]``, shortest first.

    At most *limit* cycles are enumerated per cluster.
    """
    digraph = nx.DiGraph()
    digraph.add_nodes_from(members)
    for node_id, targets in _induced_adjacency(graph, members).items():
        digraph.add_edges_from((node_id, nxt) for nxt in targets)

    found = list(islice(nx.simple_cycles(digraph), limit))
    if len(found) == limit:
        logger.debug("Cycle enumeration stopped at %d cycles", limit)

    ordered = []
    for cycle in found:
        start = cycle.index(min(cycle))
        ordered.append(cycle[start:] + cycle[:start])
    ordered.sort(key=lambda c: (len(c), c))
    return [[graph.nodes[i].type_name for i in cycle + cycle[:1]] for cycle in ordered]


def _shift(severity: str, steps: int) -> str:
    level = SEVERITY_LEVELS.index(severity) + steps
    return SEVERITY_LEVELS[max(0, min(level, len(SEVERITY_LEVELS) - 1))]


def classify_cycle(graph: DependencyGraph, cycle: List[str]) -> CircularReference:
    """Attach type, severity, impact, and a resolution suggestion to *cycle*."""
    relationship = {(e.from_type, e.to_type): e.relationship_type for e in graph.edges}
    has_inheritance = has_interface = has_generic = False

    for src, dst in zip(cycle, cycle[1:]):
        kind = relationship.get((src, dst))
        if kind == "inheritance":
            has_inheritance = True
        elif kind == "interface":
            has_interface = True
        record = graph.records[graph.index[src]]
        if record.is_generic:
            has_generic = True

    if has_inheritance:
        cycle_type = "inheritance"
    elif has_interface:
        cycle_type = "interface"
    elif has_generic:
        cycle_type = "generic"
    else:
        cycle_type = "composition"

    distinct = len(cycle) - 1
    severity = _CYCLE_SEVERITY[cycle_type]
    if distinct <= 2:
        severity = _shift(severity, 1)
    elif distinct > 4:
        severity = _shift(severity, -1)

    members = set(cycle)
    impact = [
        node.type_name
        for node in graph.nodes
        if node.type_name not in members and any(dep in members for dep in node.dependencies)
    ]

    suggestion_type, description, effort = _SUGGESTIONS[cycle_type]
    if distinct > 4:
        effort = "medium" if effort == "low" else "high"

    return CircularReference(
        cycle=cycle,
        cycle_type=cycle_type,
        severity=severity,
        impact=impact,
        suggestion=ResolutionSuggestion(suggestion_type, description, effort),
    )


def detect_clusters(graph: DependencyGraph) -> List[TypeCluster]:
    """Partition the graph into clusters of two or more connected types.

    Each cluster reports its internal/external edge counts and whether a
    directed cycle exists among its internal edges, with the cycle paths.
    """
    clusters: List[TypeCluster] = []
    for members in connected_components(graph):
        if len(members) < 2:
            continue

        member_set = set(members)
        internal = external = 0
        for src, dst in graph.edge_ids:
            inside = (src in member_set) + (dst in member_set)
            if inside == 2:
                internal += 1
            elif inside == 1:
                external += 1

        circular = has_cycle(graph, members)
        references = (
            [classify_cycle(graph, cycle) for cycle in find_cycles(graph, members)]
            if circular
            else []
        )
        clusters.append(
            TypeCluster(
                cluster_id=f"cluster_{len(clusters)}",
                types=[graph.nodes[i].type_name for i in members],
                is_circular=circular,
                internal_edges=internal,
                external_edges=external,
                circular_references=references,
            )
        )

    logger.debug(
        "Detected %d clusters (%d circular)",
        len(clusters), sum(1 for c in clusters if c.is_circular),
    )
    return clusters
