"""Tests for inheritance hierarchy reconstruction."""

from typegraph_cli.hierarchy import (
    HierarchyBuilder,
    analyze_interface_implementations,
    detect_multiple_inheritance,
    find_containing_hierarchy,
)


def _walk(node):
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(current.derived_types)


def _chain(make_record, length):
    return [make_record("Level0")] + [
        make_record(f"Level{i}", base=f"Level{i - 1}") for i in range(1, length)
    ]


class TestHierarchyBuilder:
    """Tests for tree construction."""

    def test_depth_bound(self, make_record):
        hierarchies = HierarchyBuilder(_chain(make_record, 10), max_depth=3).build()

        assert len(hierarchies) == 1
        depths = [node.depth for node in _walk(hierarchies[0].root_type)]
        assert max(depths) == 3
        assert hierarchies[0].total_nodes == 4
        names = {node.type_name for node in _walk(hierarchies[0].root_type)}
        assert "Level4" not in names

    def test_full_depth(self, make_record):
        hierarchies = HierarchyBuilder(_chain(make_record, 10), max_depth=10).build()

        assert hierarchies[0].max_depth == 9
        assert hierarchies[0].total_nodes == 10

    def test_sample_trees(self, sample_catalog):
        classes = sample_catalog.find_all(kinds=["class"])
        hierarchies = HierarchyBuilder(classes).build()
        roots = [h.root_type.qualified_name for h in hierarchies]

        assert roots == [
            "Game.Entity", "Game.Data.Repository", "Game.Data.Cache",
            "Game.Standalone", "UnityEngine.MonoBehaviour",
        ]
        entity = hierarchies[0]
        assert entity.total_nodes == 4
        assert entity.max_depth == 2
        assert entity.has_interfaces is True
        character = entity.root_type.derived_types[0]
        assert [c.type_name for c in character.derived_types] == ["Player", "Enemy"]

    def test_interfaces_omitted_when_disabled(self, sample_catalog):
        classes = sample_catalog.find_all(kinds=["class"])
        hierarchies = HierarchyBuilder(classes, include_interfaces=False).build()

        assert all(not h.has_interfaces for h in hierarchies)

    def test_each_type_in_one_tree(self, sample_catalog):
        classes = sample_catalog.find_all(kinds=["class"])
        seen = []
        for hierarchy in HierarchyBuilder(classes, max_depth=10).build():
            seen.extend(node.qualified_name for node in _walk(hierarchy.root_type))

        assert len(seen) == len(set(seen)) == len(classes)

    def test_inheritance_cycle_entered_once(self, make_record):
        records = [
            make_record("A", base="C"),
            make_record("B", base="A"),
            make_record("C", base="B"),
            make_record("D", base="B"),
        ]
        hierarchies = HierarchyBuilder(records, max_depth=10).build()

        assert len(hierarchies) == 1
        root = hierarchies[0].root_type
        assert root.type_name == "A"
        assert hierarchies[0].total_nodes == 4

    def test_self_base_is_root(self, make_record):
        hierarchies = HierarchyBuilder([make_record("Loop", base="Loop")]).build()

        assert hierarchies[0].root_type.type_name == "Loop"

    def test_deep_chain_iterative(self, make_record):
        records = _chain(make_record, 5000)
        hierarchies = HierarchyBuilder(records, max_depth=10).build()

        assert hierarchies[0].total_nodes == 11


class TestOrphans:
    """Tests for orphan detection."""

    def test_orphan_reported_once(self, sample_catalog):
        classes = sample_catalog.find_all(kinds=["class"])
        orphans = HierarchyBuilder(classes).orphaned_types()

        assert orphans == ["Game.Data.Repository", "Game.Data.Cache", "Game.Standalone"]

    def test_unresolvable_base_without_children(self, make_record):
        orphans = HierarchyBuilder([make_record("Lonely", base="Missing")]).orphaned_types()

        assert orphans == ["Game.Lonely"]


class TestMultipleInheritance:
    """Tests for base + interface patterns."""

    def test_sample_patterns(self, sample_catalog):
        patterns = detect_multiple_inheritance(sample_catalog.find_all(kinds=["class"]))

        assert [p.type_name for p in patterns] == ["Character", "Enemy"]
        assert patterns[0].complexity_score == 3
        assert patterns[0].complexity == "medium"

    def test_ranking_and_bands(self, make_record):
        records = [
            make_record("One", base="Base", interfaces=["IA"]),
            make_record("Four", base="Base", interfaces=["IA", "IB", "IC", "ID"]),
        ]
        patterns = detect_multiple_inheritance(records)

        assert [(p.type_name, p.complexity) for p in patterns] == [("Four", "high"), ("One", "low")]

    def test_disabled_without_interfaces(self, sample_catalog):
        assert detect_multiple_inheritance(sample_catalog.find_all(), include_interfaces=False) == []


class TestInterfaceImplementations:
    """Tests for the interface summary."""

    def test_sample_implementations(self, sample_catalog):
        summary = {i.interface: i for i in analyze_interface_implementations(sample_catalog.find_all())}

        assert summary["Game.IDamageable"].implementing_types == ["Game.Character", "Game.Enemy"]
        assert summary["Game.IMovable"].implementing_types == ["Game.Character", "Game.Math.Vector3"]
        assert summary["Game.IUnused"].implementation_count == 0


def test_find_containing_hierarchy(sample_catalog):
    hierarchies = HierarchyBuilder(sample_catalog.find_all(kinds=["class"])).build()

    assert find_containing_hierarchy(hierarchies, "Game.Player") == "Game.Entity"
    assert find_containing_hierarchy(hierarchies, "Game.Nowhere") is None
