"""Entry points for the four type relationship analyses.

Each ``analyze_*`` method fetches one snapshot through a
:class:`~typegraph_cli.storage.CatalogAccessor`, validates its parameters,
runs the builders over the snapshot and wraps the report in an
:class:`~typegraph_cli.models.AnalysisResult`.  Domain errors become failed
results; anything else propagates to the caller.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from .clusters import detect_clusters
from .compatibility import CompatibilityResolver, builtin_numeric_record
from .config import MAX_DEPTH, MIN_DEPTH, AnalysisSettings
from .errors import EmptyCatalogError, InvalidParameterError, NotFoundError, TypeGraphError
from .generics import complexity_metrics, constraint_relationships, find_instantiations, generic_definitions
from .graph_builder import build_dependency_graph, focus_subgraph
from .hierarchy import HierarchyBuilder, analyze_interface_implementations, find_containing_hierarchy
from .metrics import calculate_dependency_metrics
from .models import (
    MEMBER_KINDS,
    TYPE_KINDS,
    AnalysisResult,
    CompatibilityAnalysis,
    DependencyAnalysis,
    GenericAnalysis,
    HierarchyAnalysis,
    TypeRecord,
)
from .storage import CatalogAccessor

logger = logging.getLogger(__name__)

MIN_THRESHOLD = 1
MAX_THRESHOLD = 10


def _check_range(param: str, value: int, low: int, high: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool) or not low <= value <= high:
        raise InvalidParameterError(f"{param} must be an integer between {low} and {high}", param=param)


def _metadata(total: int, **params: Any) -> Dict[str, Any]:
    metadata = dict(params)
    metadata["timestamp"] = datetime.now(timezone.utc).isoformat()
    metadata["total_types_analyzed"] = total
    return metadata


class TypeAnalyzer:
    """Run relationship analyses against one catalog."""

    def __init__(self, accessor: CatalogAccessor, settings: Optional[AnalysisSettings] = None):
        self.accessor = accessor
        self.settings = settings or AnalysisSettings()

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    def _run(self, operation: str, body: Callable[[List[str]], Any]) -> AnalysisResult:
        started = time.perf_counter()
        warnings: List[str] = []
        try:
            report = body(warnings)
        except TypeGraphError as exc:
            elapsed = (time.perf_counter() - started) * 1000
            logger.debug("%s failed (%s): %s", operation, exc.error_type, exc)
            return AnalysisResult(
                success=False,
                operation=operation,
                error=str(exc),
                error_type=exc.error_type,
                warnings=warnings,
                execution_time_ms=elapsed,
            )
        elapsed = (time.perf_counter() - started) * 1000
        return AnalysisResult(
            success=True,
            operation=operation,
            data=report,
            warnings=warnings,
            execution_time_ms=elapsed,
        )

    def _fetch(self, kinds=TYPE_KINDS) -> List[TypeRecord]:
        return self.accessor.find_all(kinds=kinds, limit=self.settings.fetch_limit)

    def _resolve_target(self, name: str, kinds=TYPE_KINDS, role: str = "Target type") -> TypeRecord:
        record = self.accessor.find_by_name(name, kinds=kinds)
        if record is None:
            raise NotFoundError(name, role=role)
        return record

    def _depth(self, max_depth: Optional[int]) -> int:
        depth = self.settings.default_max_depth if max_depth is None else max_depth
        _check_range("max_depth", depth, MIN_DEPTH, MAX_DEPTH)
        return depth

    # ------------------------------------------------------------------
    # Dependencies
    # ------------------------------------------------------------------

    def analyze_dependencies(
        self,
        target_type: Optional[str] = None,
        max_depth: Optional[int] = None,
        include_circular_detection: bool = True,
        include_system_types: bool = False,
    ) -> AnalysisResult:
        def body(warnings: List[str]) -> DependencyAnalysis:
            depth = self._depth(max_depth)
            logger.debug("Starting dependency analysis (target=%s, depth=%d)", target_type, depth)

            records = self._fetch()
            if not records:
                raise EmptyCatalogError("types", "dependency analysis")
            target = self._resolve_target(target_type) if target_type else None

            graph = build_dependency_graph(
                records,
                include_system_types=include_system_types,
                system_prefixes=self.settings.system_prefixes,
            )
            if not graph.nodes:
                raise EmptyCatalogError("types", "dependency analysis")

            clusters = detect_clusters(graph) if include_circular_detection else []
            metrics = calculate_dependency_metrics(graph, clusters)

            focus = None
            if target is not None:
                focus = focus_subgraph(graph, target.qualified_name, depth)
                if focus is None:
                    warnings.append(
                        f"Target type '{target.qualified_name}' is not part of the analysed graph"
                    )

            logger.debug(
                "Dependency analysis completed: %d nodes, %d edges, %d clusters",
                len(graph.nodes), len(graph.edges), len(clusters),
            )
            return DependencyAnalysis(
                nodes=graph.nodes,
                edges=graph.edges,
                clusters=clusters,
                metrics=metrics,
                focus=focus,
                analysis_metadata=_metadata(
                    len(graph.nodes),
                    target_type=target.qualified_name if target else None,
                    max_depth=depth,
                    include_circular_detection=include_circular_detection,
                    include_system_types=include_system_types,
                ),
            )

        return self._run("analyze_dependencies", body)

    # ------------------------------------------------------------------
    # Hierarchies
    # ------------------------------------------------------------------

    def analyze_hierarchies(
        self,
        target_type: Optional[str] = None,
        include_interfaces: bool = True,
        max_depth: Optional[int] = None,
        namespace_filter: Optional[str] = None,
    ) -> AnalysisResult:
        def body(warnings: List[str]) -> HierarchyAnalysis:
            depth = self._depth(max_depth)
            logger.debug("Starting hierarchy analysis (target=%s, depth=%d)", target_type, depth)

            records = self._fetch()
            if namespace_filter:
                records = [r for r in records if namespace_filter in r.namespace]
            classes = [r for r in records if r.kind == "class"]
            if not classes:
                raise EmptyCatalogError("classes", "hierarchy analysis")
            target = self._resolve_target(target_type, kinds=("class",)) if target_type else None

            builder = HierarchyBuilder(classes, max_depth=depth, include_interfaces=include_interfaces)
            hierarchies = builder.build()

            implementations = analyze_interface_implementations(records) if include_interfaces else []

            target_hierarchy = None
            if target is not None:
                target_hierarchy = find_containing_hierarchy(hierarchies, target.qualified_name)
                if target_hierarchy is None:
                    warnings.append(
                        f"Target type '{target.qualified_name}' is outside the analysed hierarchies"
                    )

            logger.debug("Hierarchy analysis completed: %d hierarchies", len(hierarchies))
            return HierarchyAnalysis(
                hierarchies=hierarchies,
                multiple_inheritance_patterns=builder.multiple_inheritance_patterns(),
                orphaned_types=builder.orphaned_types(),
                max_depth=max((h.max_depth for h in hierarchies), default=0),
                total_hierarchies=len(hierarchies),
                interface_implementations=implementations,
                orphaned_interfaces=[i.interface for i in implementations if not i.implementation_count],
                target_hierarchy=target_hierarchy,
                analysis_metadata=_metadata(
                    len(classes),
                    target_type=target.qualified_name if target else None,
                    include_interfaces=include_interfaces,
                    max_depth_limit=depth,
                    namespace_filter=namespace_filter,
                ),
            )

        return self._run("analyze_hierarchies", body)

    # ------------------------------------------------------------------
    # Generics
    # ------------------------------------------------------------------

    def analyze_generic_types(
        self,
        target_type: Optional[str] = None,
        include_constraints: bool = True,
        include_instantiations: bool = False,
        complexity_threshold: int = 1,
    ) -> AnalysisResult:
        def body(warnings: List[str]) -> GenericAnalysis:
            _check_range("complexity_threshold", complexity_threshold, MIN_THRESHOLD, MAX_THRESHOLD)
            logger.debug("Starting generic type analysis (target=%s)", target_type)

            records = self._fetch()
            if not records:
                raise EmptyCatalogError("types", "generic type analysis")

            if target_type:
                target = self._resolve_target(target_type, role="Target generic type")
                if not target.generic_parameters:
                    raise InvalidParameterError(
                        f"Target type '{target_type}' is not a generic type", param="target_type",
                    )
                generic_records = [target]
            else:
                generic_records = [r for r in records if r.generic_parameters]
            if not generic_records:
                raise EmptyCatalogError("generic types", "analysis")

            definitions = generic_definitions(generic_records, complexity_threshold)
            relationships: List = []
            diagnostics: List[str] = []
            if include_constraints:
                relationships, diagnostics = constraint_relationships(generic_records)
                warnings.extend(diagnostics)

            instantiations: List = []
            if include_instantiations:
                members = self.accessor.find_members(kinds=MEMBER_KINDS, limit=self.settings.fetch_limit)
                instantiations = find_instantiations(members)

            metrics = complexity_metrics(definitions)
            logger.debug(
                "Generic type analysis completed: %d definitions, %d constraints, %d instantiations",
                len(definitions), len(relationships), len(instantiations),
            )
            return GenericAnalysis(
                generic_type_definitions=definitions,
                constraint_relationships=relationships,
                generic_instantiations=instantiations,
                complexity_metrics=metrics,
                diagnostics=diagnostics,
                analysis_metadata=_metadata(
                    len(generic_records),
                    target_type=target_type,
                    include_constraints=include_constraints,
                    include_instantiations=include_instantiations,
                    complexity_threshold=complexity_threshold,
                ),
            )

        return self._run("analyze_generic_types", body)

    # ------------------------------------------------------------------
    # Compatibility
    # ------------------------------------------------------------------

    def _compat_record(self, name: str, role: str) -> TypeRecord:
        record = self.accessor.find_by_name(name, kinds=TYPE_KINDS) or builtin_numeric_record(name)
        if record is None:
            raise NotFoundError(name, role=role)
        return record

    def analyze_compatibility(
        self,
        from_type: Optional[str] = None,
        to_type: Optional[str] = None,
        include_conversion_paths: bool = True,
        include_implicit_conversions: bool = True,
        limit: Optional[int] = None,
    ) -> AnalysisResult:
        def body(warnings: List[str]) -> CompatibilityAnalysis:
            if bool(from_type) != bool(to_type):
                raise InvalidParameterError(
                    "from_type and to_type must be provided together", param="from_type",
                )
            options = dict(
                include_conversion_paths=include_conversion_paths,
                include_implicit_conversions=include_implicit_conversions,
            )

            if from_type and to_type:
                logger.debug("Starting compatibility analysis %s -> %s", from_type, to_type)
                records = self._fetch()
                if not records:
                    raise EmptyCatalogError("types", "compatibility analysis")
                source = self._compat_record(from_type, "Source type")
                target = self._compat_record(to_type, "Target type")
                resolver = CompatibilityResolver(
                    records + [source, target],
                    include_conversion_paths=include_conversion_paths,
                    include_implicit=include_implicit_conversions,
                )
                verdict = resolver.resolve(source, target)
                logger.debug(
                    "Compatibility analysis completed: %s (%s)",
                    verdict.compatibility_type, verdict.confidence,
                )
                return CompatibilityAnalysis(
                    verdict=verdict,
                    analysis_metadata=_metadata(
                        2,
                        analysis_type="specific",
                        total_compatibility_checks=1,
                        **options,
                    ),
                )

            matrix_limit = self.settings.matrix_limit if limit is None else limit
            if not isinstance(matrix_limit, int) or matrix_limit < 1:
                raise InvalidParameterError("limit must be a positive integer", param="limit")

            records = self._fetch()
            if not records:
                raise EmptyCatalogError("types", "compatibility analysis")
            subset = records[:matrix_limit]
            if len(records) > matrix_limit:
                warnings.append(
                    f"Compatibility matrix limited to the first {matrix_limit} of {len(records)} types"
                )
            resolver = CompatibilityResolver(
                records,
                include_conversion_paths=include_conversion_paths,
                include_implicit=include_implicit_conversions,
            )
            matrix = resolver.matrix(subset)
            return CompatibilityAnalysis(
                compatibility_matrix=matrix,
                analysis_metadata=_metadata(
                    len(subset),
                    analysis_type="matrix",
                    total_compatibility_checks=len(matrix),
                    matrix_limit=matrix_limit,
                    **options,
                ),
            )

        return self._run("analyze_compatibility", body)
