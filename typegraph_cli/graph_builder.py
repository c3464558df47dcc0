"""Dependency graph construction over a snapshot of type records.

Nodes are the retained records (system types dropped unless requested),
edges follow each record's base type and implemented interfaces.  Node ids
are plain integers assigned once per build so the clustering and depth
algorithms can work on list-backed adjacency instead of string-keyed maps.
"""

from __future__ import annotations

import logging
from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .config import SYSTEM_PREFIXES
from .models import (
    DependencyEdge,
    DependencyNode,
    FocusSubgraph,
    TypeRecord,
    generic_base_name,
    qualify,
)

logger = logging.getLogger(__name__)


def is_system_type(type_name: str, prefixes: Sequence[str] = SYSTEM_PREFIXES) -> bool:
    if not type_name:
        return False
    return any(type_name.startswith(prefix) for prefix in prefixes)


# ===================================================================
# Name resolution
# ===================================================================

class TypeIndex:
    """Resolve base-type / interface references against a record set.

    A reference resolves, in order, to:

    1. the record named by the reference qualified with the referring
       record's namespace (bare names only),
    2. the record whose qualified name equals the reference as written,
    3. the single record with that simple name, when it is unambiguous,
    4. for generic references (``IList<Foo>``), the generic definition with
       the same namespace and base name, by the same rules.
    """

    def __init__(self, records: Iterable[TypeRecord]) -> None:
        self.by_qualified: Dict[str, TypeRecord] = {}
        self.by_simple: Dict[str, List[TypeRecord]] = defaultdict(list)
        self.by_generic_base: Dict[str, TypeRecord] = {}
        self.by_simple_generic_base: Dict[str, List[TypeRecord]] = defaultdict(list)

        for record in records:
            if record.qualified_name in self.by_qualified:
                continue
            self.by_qualified[record.qualified_name] = record
            self.by_simple[record.name].append(record)
            if record.is_generic or "`" in record.name:
                base = generic_base_name(record.name)
                self.by_generic_base.setdefault(qualify(base, record.namespace), record)
                self.by_simple_generic_base[base].append(record)

    def __contains__(self, qualified_name: str) -> bool:
        return qualified_name in self.by_qualified

    def get(self, qualified_name: str) -> Optional[TypeRecord]:
        return self.by_qualified.get(qualified_name)

    def resolve(self, reference: Optional[str], namespace: str = "") -> Optional[TypeRecord]:
        if not reference:
            return None
        reference = reference.strip()

        qualified = qualify(reference, namespace)
        found = self.by_qualified.get(qualified) or self.by_qualified.get(reference)
        if found is not None:
            return found

        head = reference.split("<", 1)[0]
        if "." not in head:
            candidates = self.by_simple.get(reference, [])
            if len(candidates) == 1:
                return candidates[0]

        if "<" in reference or "`" in reference:
            base = generic_base_name(reference)
            if "." in head:
                key = f"{head.rsplit('.', 1)[0]}.{base}"
            else:
                key = qualify(base, namespace)
            found = self.by_generic_base.get(key)
            if found is not None:
                return found
            if "." not in head:
                candidates = self.by_simple_generic_base.get(base, [])
                if len(candidates) == 1:
                    return candidates[0]
        return None


# ===================================================================
# Graph
# ===================================================================

@dataclass
class DependencyGraph:
    nodes: List[DependencyNode]
    edges: List[DependencyEdge]
    records: List[TypeRecord]
    index: Dict[str, int] = field(default_factory=dict)
    adjacency: List[List[int]] = field(default_factory=list)
    edge_ids: List[Tuple[int, int]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.nodes)

    def node_id(self, type_name: str) -> Optional[int]:
        return self.index.get(type_name)


def build_dependency_graph(
    records: Sequence[TypeRecord],
    include_system_types: bool = False,
    system_prefixes: Sequence[str] = SYSTEM_PREFIXES,
) -> DependencyGraph:
    """Build nodes and directed dependency edges from *records*.

    Edges only connect retained records; references to excluded or unknown
    types are kept on the node as ``unresolved_references`` (system names are
    dropped entirely unless *include_system_types*).  Pure function of its
    inputs; an empty input yields an empty graph.
    """
    retained: List[TypeRecord] = []
    seen: Set[str] = set()
    for record in records:
        name = record.qualified_name
        if name in seen:
            continue
        if not include_system_types and is_system_type(name, system_prefixes):
            continue
        seen.add(name)
        retained.append(record)

    type_index = TypeIndex(retained)
    index = {record.qualified_name: i for i, record in enumerate(retained)}
    adjacency: List[List[int]] = [[] for _ in retained]
    reverse: List[List[int]] = [[] for _ in retained]
    edges: List[DependencyEdge] = []
    edge_ids: List[Tuple[int, int]] = []
    unresolved: List[List[str]] = [[] for _ in retained]

    for src, record in enumerate(retained):
        references = []
        if record.base_type:
            references.append((record.base_type, "inheritance"))
        references.extend((name, "interface") for name in record.interfaces)

        for reference, relationship in references:
            target = type_index.resolve(reference, record.namespace)
            if target is None:
                missing = qualify(reference, record.namespace)
                if include_system_types or not is_system_type(missing, system_prefixes):
                    unresolved[src].append(missing)
                continue
            dst = index[target.qualified_name]
            if dst in adjacency[src]:
                continue
            adjacency[src].append(dst)
            reverse[dst].append(src)
            edge_ids.append((src, dst))
            edges.append(
                DependencyEdge(
                    from_type=record.qualified_name,
                    to_type=target.qualified_name,
                    relationship_type=relationship,
                )
            )

    total = len(retained)
    nodes = []
    for i, record in enumerate(retained):
        dependencies = [retained[j].qualified_name for j in adjacency[i]]
        dependents = [retained[j].qualified_name for j in sorted(reverse[i])]
        nodes.append(
            DependencyNode(
                type_name=record.qualified_name,
                namespace=record.namespace,
                kind=record.kind,
                catalog_index=record.catalog_index,
                dependencies=dependencies,
                dependents=dependents,
                centrality=(len(dependencies) + len(dependents)) / total,
                unresolved_references=unresolved[i],
            )
        )

    logger.debug("Built dependency graph: %d nodes, %d edges", len(nodes), len(edges))
    return DependencyGraph(
        nodes=nodes,
        edges=edges,
        records=retained,
        index=index,
        adjacency=adjacency,
        edge_ids=edge_ids,
    )


def focus_subgraph(graph: DependencyGraph, target: str, max_depth: int) -> Optional[FocusSubgraph]:
    """Types within *max_depth* hops of *target*, following edges both ways."""
    start = graph.node_id(target)
    if start is None:
        return None

    neighbours: List[List[int]] = [list(out) for out in graph.adjacency]
    for src, dst in graph.edge_ids:
        neighbours[dst].append(src)

    depth_of = {start: 0}
    frontier = deque([start])
    while frontier:
        current = frontier.popleft()
        if depth_of[current] >= max_depth:
            continue
        for nxt in neighbours[current]:
            if nxt not in depth_of:
                depth_of[nxt] = depth_of[current] + 1
                frontier.append(nxt)

    members = sorted(depth_of)
    edges = [
        graph.edges[k]
        for k, (src, dst) in enumerate(graph.edge_ids)
        if src in depth_of and dst in depth_of
    ]
    return FocusSubgraph(
        target=target,
        depth=max_depth,
        types=[graph.nodes[i].type_name for i in members],
        edges=edges,
    )
