"""Inheritance hierarchy reconstruction.

Trees are rooted at every record whose base type does not resolve inside
the retained record set.  Construction works on integer record ids with an
explicit stack and a shared ``visited`` array, so a type lands in at most one
tree and malformed (cyclic) chains cannot recurse forever.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from .graph_builder import TypeIndex
from .models import (
    HierarchyNode,
    InheritanceHierarchy,
    InterfaceImplementation,
    MultipleInheritancePattern,
    TypeRecord,
)

logger = logging.getLogger(__name__)


def resolve_parents(records: Sequence[TypeRecord]) -> List[Optional[int]]:
    """Parent record id for each record, ``None`` for roots."""
    type_index = TypeIndex(records)
    position = {record.qualified_name: i for i, record in enumerate(records)}
    parents: List[Optional[int]] = []
    for i, record in enumerate(records):
        target = type_index.resolve(record.base_type, record.namespace)
        parent = position.get(target.qualified_name) if target is not None else None
        # A type naming itself as base is treated as having no base.
        parents.append(None if parent == i else parent)
    return parents


def _children_of(parents: Sequence[Optional[int]]) -> List[List[int]]:
    children: List[List[int]] = [[] for _ in parents]
    for child, parent in enumerate(parents):
        if parent is not None:
            children[parent].append(child)
    return children


def _cycle_members(parents: Sequence[Optional[int]]) -> List[bool]:
    """Flag the records that sit on a cyclic base chain."""
    on_cycle = [False] * len(parents)
    state = [0] * len(parents)  # 0 unseen, 1 on current walk, 2 finished
    for start in range(len(parents)):
        path = []
        current = start
        while current is not None and state[current] == 0:
            state[current] = 1
            path.append(current)
            current = parents[current]
        if current is not None and state[current] == 1:
            for record_id in path[path.index(current):]:
                on_cycle[record_id] = True
        for record_id in path:
            state[record_id] = 2
    return on_cycle


class HierarchyBuilder:
    """Build depth-bounded inheritance trees over one record snapshot."""

    def __init__(
        self,
        records: Sequence[TypeRecord],
        max_depth: int = 5,
        include_interfaces: bool = True,
    ) -> None:
        self.records = list(records)
        self.max_depth = max_depth
        self.include_interfaces = include_interfaces
        self.parents = resolve_parents(self.records)
        self.children = _children_of(self.parents)

    def _make_node(self, record_id: int, depth: int) -> HierarchyNode:
        record = self.records[record_id]
        return HierarchyNode(
            type_name=record.name,
            namespace=record.namespace,
            catalog_index=record.catalog_index,
            depth=depth,
            base_type=record.base_type,
            interfaces=list(record.interfaces) if self.include_interfaces else [],
        )

    def _build_tree(self, root_id: int, visited: List[bool]) -> HierarchyNode:
        visited[root_id] = True
        root = self._make_node(root_id, 0)
        stack = [(root, root_id)]
        while stack:
            node, record_id = stack.pop()
            if node.depth >= self.max_depth:
                continue
            for child_id in self.children[record_id]:
                if visited[child_id]:
                    continue
                visited[child_id] = True
                child = self._make_node(child_id, node.depth + 1)
                node.derived_types.append(child)
                stack.append((child, child_id))
        return root

    def build(self) -> List[InheritanceHierarchy]:
        visited = [False] * len(self.records)
        roots: List[HierarchyNode] = []

        for record_id, parent in enumerate(self.parents):
            if parent is None and not visited[record_id]:
                roots.append(self._build_tree(record_id, visited))

        # Cyclic base chains have no natural root: enter each cycle at its
        # first member in catalog order.
        on_cycle = _cycle_members(self.parents)
        for record_id in range(len(self.records)):
            if not visited[record_id] and on_cycle[record_id]:
                logger.warning(
                    "Inheritance cycle through %s", self.records[record_id].qualified_name,
                )
                roots.append(self._build_tree(record_id, visited))

        return [summarize_tree(root) for root in roots]

    def multiple_inheritance_patterns(self) -> List[MultipleInheritancePattern]:
        return detect_multiple_inheritance(self.records, self.include_interfaces)

    def orphaned_types(self) -> List[str]:
        return [
            record.qualified_name
            for i, record in enumerate(self.records)
            if self.parents[i] is None and not self.children[i]
        ]


def summarize_tree(root: HierarchyNode) -> InheritanceHierarchy:
    total = 0
    deepest = 0
    has_interfaces = False
    stack = [root]
    while stack:
        node = stack.pop()
        total += 1
        deepest = max(deepest, node.depth)
        has_interfaces = has_interfaces or bool(node.interfaces)
        stack.extend(node.derived_types)
    return InheritanceHierarchy(
        root_type=root,
        total_nodes=total,
        max_depth=deepest,
        has_interfaces=has_interfaces,
    )


def _complexity_band(interface_count: int) -> str:
    if interface_count >= 4:
        return "high"
    if interface_count >= 2:
        return "medium"
    return "low"


def detect_multiple_inheritance(
    records: Sequence[TypeRecord],
    include_interfaces: bool = True,
) -> List[MultipleInheritancePattern]:
    """Types combining a base class with one or more interfaces, most complex first."""
    if not include_interfaces:
        return []
    patterns = [
        MultipleInheritancePattern(
            type_name=record.name,
            namespace=record.namespace,
            base_type=record.base_type,
            interfaces=list(record.interfaces),
            complexity_score=len(record.interfaces) + 1,
            complexity=_complexity_band(len(record.interfaces)),
        )
        for record in records
        if record.base_type and record.interfaces
    ]
    return sorted(patterns, key=lambda p: p.complexity_score, reverse=True)


def find_containing_hierarchy(
    hierarchies: Sequence[InheritanceHierarchy],
    qualified_name: str,
) -> Optional[str]:
    """Qualified root name of the tree holding *qualified_name*, if any."""
    for hierarchy in hierarchies:
        stack = [hierarchy.root_type]
        while stack:
            node = stack.pop()
            if node.qualified_name == qualified_name:
                return hierarchy.root_type.qualified_name
            stack.extend(node.derived_types)
    return None


def analyze_interface_implementations(
    records: Sequence[TypeRecord],
) -> List[InterfaceImplementation]:
    """Implementing (non-interface) types for every interface record."""
    type_index = TypeIndex(records)
    implementors: Dict[str, List[str]] = {
        record.qualified_name: [] for record in records if record.is_interface
    }
    for record in records:
        if record.is_interface:
            continue
        for name in record.interfaces:
            target = type_index.resolve(name, record.namespace)
            if target is None or not target.is_interface:
                continue
            found = implementors[target.qualified_name]
            if record.qualified_name not in found:
                found.append(record.qualified_name)

    return [
        InterfaceImplementation(
            interface=interface,
            implementing_types=types,
            implementation_count=len(types),
        )
        for interface, types in implementors.items()
    ]
