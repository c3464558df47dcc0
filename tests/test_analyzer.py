"""Tests for the analysis entry points and their result envelopes."""

import pytest

from typegraph_cli.analyzer import TypeAnalyzer
from typegraph_cli.config import AnalysisSettings
from typegraph_cli.storage import InMemoryCatalog


@pytest.fixture
def analyzer(sample_catalog):
    return TypeAnalyzer(sample_catalog)


@pytest.fixture
def empty_analyzer():
    return TypeAnalyzer(InMemoryCatalog([]))


class TestEnvelope:
    """Tests shared by all four operations."""

    @pytest.mark.parametrize(
        "operation",
        ["analyze_dependencies", "analyze_hierarchies", "analyze_generic_types", "analyze_compatibility"],
    )
    def test_empty_catalog(self, empty_analyzer, operation):
        result = getattr(empty_analyzer, operation)()

        assert result.success is False
        assert result.error_type == "empty_catalog"
        assert result.data is None
        assert result.operation == operation

    def test_metadata_always_present(self, analyzer):
        results = [
            analyzer.analyze_dependencies(),
            analyzer.analyze_hierarchies(),
            analyzer.analyze_generic_types(),
            analyzer.analyze_compatibility(),
        ]

        for result in results:
            assert result.success, result.error
            assert "timestamp" in result.data.analysis_metadata
            assert result.data.analysis_metadata["total_types_analyzed"] > 0
            assert result.execution_time_ms >= 0

    def test_str(self, analyzer, empty_analyzer):
        assert str(analyzer.analyze_dependencies()).startswith("✅ analyze_dependencies")
        assert "failed" in str(empty_analyzer.analyze_dependencies())


class TestDependencies:
    """Tests for analyze_dependencies."""

    def test_sample(self, analyzer):
        data = analyzer.analyze_dependencies().data

        assert data.metrics.total_nodes == 13
        assert data.metrics.total_edges == 8
        assert data.metrics.max_depth == 3
        assert data.analysis_metadata["max_depth"] == 5
        assert data.focus is None

    @pytest.mark.parametrize("depth", [0, 11])
    def test_depth_out_of_range(self, analyzer, depth):
        result = analyzer.analyze_dependencies(max_depth=depth)

        assert result.error_type == "invalid_parameter"
        assert "max_depth" in result.error

    def test_missing_target(self, analyzer):
        result = analyzer.analyze_dependencies(target_type="Nope")

        assert result.error_type == "not_found"
        assert result.error == "Target type 'Nope' not found in type catalog"

    def test_focus(self, analyzer):
        data = analyzer.analyze_dependencies(target_type="Player", max_depth=1).data

        assert data.focus.target == "Game.Player"
        assert data.focus.types == ["Game.Character", "Game.Player"]
        assert data.analysis_metadata["target_type"] == "Game.Player"

    def test_system_target_outside_graph(self, analyzer):
        result = analyzer.analyze_dependencies(target_type="MonoBehaviour")

        assert result.success
        assert result.data.focus is None
        assert "not part of the analysed graph" in result.warnings[0]

    def test_circular_cluster(self, make_record):
        records = [
            make_record("A", kind="interface", interfaces=["B"]),
            make_record("B", kind="interface", interfaces=["C"]),
            make_record("C", kind="interface", interfaces=["A"]),
        ]
        data = TypeAnalyzer(InMemoryCatalog(records)).analyze_dependencies().data

        assert len(data.clusters) == 1
        assert data.clusters[0].cluster_size == 3
        assert data.clusters[0].is_circular
        assert data.metrics.circular_dependencies == 1

    def test_cycle_detection_disabled(self, make_record):
        records = [
            make_record("A", kind="interface", interfaces=["B"]),
            make_record("B", kind="interface", interfaces=["A"]),
        ]
        data = TypeAnalyzer(InMemoryCatalog(records)).analyze_dependencies(include_circular_detection=False).data

        assert data.clusters == []
        assert data.metrics.circular_dependencies == 0

    def test_only_system_types(self, make_record):
        records = [make_record("Object", namespace="System")]
        result = TypeAnalyzer(InMemoryCatalog(records)).analyze_dependencies()

        assert result.error_type == "empty_catalog"

    def test_fetch_limit(self, sample_catalog):
        analyzer = TypeAnalyzer(sample_catalog, AnalysisSettings(fetch_limit=3))

        assert analyzer.analyze_dependencies().data.metrics.total_nodes == 3

    def test_default_depth_from_settings(self, sample_catalog):
        analyzer = TypeAnalyzer(sample_catalog, AnalysisSettings(default_max_depth=2))

        assert analyzer.analyze_dependencies().data.analysis_metadata["max_depth"] == 2


class TestHierarchies:
    """Tests for analyze_hierarchies."""

    def test_sample(self, analyzer):
        data = analyzer.analyze_hierarchies().data

        assert data.total_hierarchies == 5
        assert data.max_depth == 2
        assert data.orphaned_types == ["Game.Data.Repository", "Game.Data.Cache", "Game.Standalone"]
        assert data.orphaned_interfaces == ["Game.IUnused"]
        assert [p.type_name for p in data.multiple_inheritance_patterns] == ["Character", "Enemy"]

    def test_depth_limit(self, make_record):
        records = [make_record("Level0")] + [
            make_record(f"Level{i}", base=f"Level{i - 1}") for i in range(1, 10)
        ]
        data = TypeAnalyzer(InMemoryCatalog(records)).analyze_hierarchies(max_depth=3).data

        assert data.max_depth == 3
        assert data.analysis_metadata["max_depth_limit"] == 3

    def test_namespace_filter(self, analyzer):
        data = analyzer.analyze_hierarchies(namespace_filter="Game.Data").data

        assert [h.root_type.type_name for h in data.hierarchies] == ["Repository", "Cache"]

    def test_namespace_filter_without_classes(self, analyzer):
        result = analyzer.analyze_hierarchies(namespace_filter="Nowhere")

        assert result.error_type == "empty_catalog"

    def test_interfaces_disabled(self, analyzer):
        data = analyzer.analyze_hierarchies(include_interfaces=False).data

        assert data.interface_implementations == []
        assert data.multiple_inheritance_patterns == []

    def test_target(self, analyzer):
        assert analyzer.analyze_hierarchies(target_type="Player").data.target_hierarchy == "Game.Entity"

    def test_interface_target_not_found(self, analyzer):
        assert analyzer.analyze_hierarchies(target_type="IEntity").error_type == "not_found"

    def test_only_interfaces(self, make_record):
        result = TypeAnalyzer(InMemoryCatalog([make_record("IFoo", kind="interface")])).analyze_hierarchies()

        assert result.error_type == "empty_catalog"


class TestGenerics:
    """Tests for analyze_generic_types."""

    def test_sample(self, analyzer):
        result = analyzer.analyze_generic_types()
        data = result.data

        assert [d.type_name for d in data.generic_type_definitions] == ["Cache", "Repository"]
        assert len(data.constraint_relationships) == 4
        assert data.generic_instantiations == []
        assert any("unknown parameter 'U'" in w for w in result.warnings)

    def test_instantiations(self, analyzer):
        data = analyzer.analyze_generic_types(include_instantiations=True).data

        assert [i.base_type for i in data.generic_instantiations] == ["Dictionary", "List"]

    def test_constraints_disabled(self, analyzer):
        result = analyzer.analyze_generic_types(include_constraints=False)

        assert result.data.constraint_relationships == []
        assert result.warnings == []

    def test_target(self, analyzer):
        data = analyzer.analyze_generic_types(target_type="Repository").data

        assert [d.type_name for d in data.generic_type_definitions] == ["Repository"]
        assert data.analysis_metadata["total_types_analyzed"] == 1

    def test_non_generic_target(self, analyzer):
        result = analyzer.analyze_generic_types(target_type="Player")

        assert result.error_type == "invalid_parameter"
        assert result.error == "Target type 'Player' is not a generic type"

    def test_missing_target(self, analyzer):
        result = analyzer.analyze_generic_types(target_type="Nope")

        assert result.error == "Target generic type 'Nope' not found in type catalog"

    @pytest.mark.parametrize("threshold", [0, 11])
    def test_threshold_out_of_range(self, analyzer, threshold):
        assert analyzer.analyze_generic_types(complexity_threshold=threshold).error_type == "invalid_parameter"

    def test_target_on_empty_catalog(self, empty_analyzer):
        result = empty_analyzer.analyze_generic_types(target_type="Repository")

        assert result.error_type == "empty_catalog"

    def test_no_generic_types(self, make_record):
        result = TypeAnalyzer(InMemoryCatalog([make_record("Plain")])).analyze_generic_types()

        assert result.error_type == "empty_catalog"


class TestCompatibility:
    """Tests for analyze_compatibility."""

    def test_pair(self, analyzer):
        data = analyzer.analyze_compatibility("Player", "Entity").data

        assert data.verdict.is_compatible
        assert data.compatibility_matrix == []
        assert data.analysis_metadata["analysis_type"] == "specific"
        assert data.analysis_metadata["total_compatibility_checks"] == 1

    def test_builtin_numerics(self, analyzer):
        verdict = analyzer.analyze_compatibility("int", "long").data.verdict

        assert verdict.compatibility_type == "convertible"
        assert verdict.confidence == 0.85

    @pytest.mark.parametrize("pair", [("int", "long"), ("Foo", "Bar")])
    def test_pair_on_empty_catalog(self, empty_analyzer, pair):
        result = empty_analyzer.analyze_compatibility(*pair)

        assert result.success is False
        assert result.error_type == "empty_catalog"

    def test_only_one_side(self, analyzer):
        result = analyzer.analyze_compatibility(from_type="Player")

        assert result.error_type == "invalid_parameter"
        assert result.error == "from_type and to_type must be provided together"

    def test_unknown_source(self, analyzer):
        result = analyzer.analyze_compatibility("Nope", "Entity")

        assert result.error == "Source type 'Nope' not found in type catalog"

    def test_matrix(self, analyzer):
        result = analyzer.analyze_compatibility()
        data = result.data

        assert len(data.compatibility_matrix) == 14 * 13
        assert data.analysis_metadata["analysis_type"] == "matrix"
        assert data.analysis_metadata["total_compatibility_checks"] == 182
        assert result.warnings == []

    def test_matrix_limit(self, analyzer):
        result = analyzer.analyze_compatibility(limit=3)

        assert len(result.data.compatibility_matrix) == 6
        assert result.data.analysis_metadata["total_types_analyzed"] == 3
        assert "first 3 of 14 types" in result.warnings[0]

    def test_bad_limit(self, analyzer):
        assert analyzer.analyze_compatibility(limit=0).error_type == "invalid_parameter"
