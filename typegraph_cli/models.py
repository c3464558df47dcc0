"""Core data models shared by ingestion, storage, and the analysis layers."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple

TYPE_KINDS = ("class", "interface", "struct")
MEMBER_KINDS = ("field", "method")


def qualify(name: str, namespace: str) -> str:
    """Return *name* prefixed with *namespace* unless it already carries one.

    Dots inside generic arguments (``List<System.Int32>``) do not count as
    a namespace.
    """
    head = name.split("<", 1)[0]
    if "." in head or not namespace:
        return name
    return f"{namespace}.{name}"


def simple_name(name: str) -> str:
    """Strip the namespace from a (possibly generic) type name."""
    head, sep, tail = name.partition("<")
    return head.rsplit(".", 1)[-1] + sep + tail


def generic_base_name(name: str) -> str:
    """``List<int>`` / ``List`1`` -> ``List``."""
    return simple_name(name).split("<", 1)[0].split("`", 1)[0]


@dataclass(frozen=True)
class TypeRecord:
    """Immutable snapshot of one declared type from the catalog."""

    name: str
    namespace: str
    kind: str
    base_type: Optional[str] = None
    interfaces: Tuple[str, ...] = ()
    generic_parameters: Tuple[str, ...] = ()
    constraints: Tuple[str, ...] = ()
    catalog_index: int = 0

    @property
    def qualified_name(self) -> str:
        return f"{self.namespace}.{self.name}" if self.namespace else self.name

    @property
    def is_generic(self) -> bool:
        return bool(self.generic_parameters) or "<" in self.name

    @property
    def is_generic_instance(self) -> bool:
        return "<" in self.name and not self.generic_parameters

    @property
    def is_interface(self) -> bool:
        return self.kind == "interface"


@dataclass(frozen=True)
class MemberRecord:
    """A field or method signature, used for generic instantiation scanning."""

    name: str
    kind: str
    declaring_type: str
    type_name: str
    catalog_index: int = 0


# ===================================================================
# Dependency graph
# ===================================================================

@dataclass
class DependencyNode:
    type_name: str
    namespace: str
    kind: str
    catalog_index: int
    dependencies: List[str] = field(default_factory=list)
    dependents: List[str] = field(default_factory=list)
    centrality: float = 0.0
    unresolved_references: List[str] = field(default_factory=list)
    dependency_count: int = field(init=False)
    dependent_count: int = field(init=False)

    def __post_init__(self) -> None:
        self.dependency_count = len(self.dependencies)
        self.dependent_count = len(self.dependents)


@dataclass
class DependencyEdge:
    from_type: str
    to_type: str
    relationship_type: str  # "inheritance", "interface", "dependency"
    strength: int = 1


@dataclass
class ResolutionSuggestion:
    suggestion_type: str  # "interface_extraction", "dependency_injection", "refactoring"
    description: str
    effort: str


@dataclass
class CircularReference:
    cycle: List[str]
    cycle_type: str  # "inheritance", "interface", "generic", "composition"
    severity: str
    impact: List[str] = field(default_factory=list)
    suggestion: Optional[ResolutionSuggestion] = None


@dataclass
class TypeCluster:
    cluster_id: str
    types: List[str]
    is_circular: bool
    internal_edges: int
    external_edges: int
    circular_references: List[CircularReference] = field(default_factory=list)
    cluster_size: int = field(init=False)

    def __post_init__(self) -> None:
        self.cluster_size = len(self.types)


@dataclass
class DependencyMetrics:
    total_nodes: int = 0
    total_edges: int = 0
    average_dependencies: float = 0.0
    max_dependencies: int = 0
    circular_dependencies: int = 0
    max_depth: int = 0
    cluster_count: int = 0


@dataclass
class FocusSubgraph:
    """Neighbourhood of a requested target type within the dependency graph."""

    target: str
    depth: int
    types: List[str]
    edges: List[DependencyEdge]


@dataclass
class DependencyAnalysis:
    nodes: List[DependencyNode]
    edges: List[DependencyEdge]
    clusters: List[TypeCluster]
    metrics: DependencyMetrics
    focus: Optional[FocusSubgraph] = None
    analysis_metadata: Dict[str, Any] = field(default_factory=dict)


# ===================================================================
# Inheritance hierarchies
# ===================================================================

@dataclass
class HierarchyNode:
    type_name: str
    namespace: str
    catalog_index: int
    depth: int
    base_type: Optional[str] = None
    interfaces: List[str] = field(default_factory=list)
    derived_types: List["HierarchyNode"] = field(default_factory=list)

    @property
    def qualified_name(self) -> str:
        return f"{self.namespace}.{self.type_name}" if self.namespace else self.type_name


@dataclass
class InheritanceHierarchy:
    root_type: HierarchyNode
    total_nodes: int
    max_depth: int
    has_interfaces: bool


@dataclass
class MultipleInheritancePattern:
    type_name: str
    namespace: str
    base_type: str
    interfaces: List[str]
    complexity_score: int
    complexity: str  # "low", "medium", "high"


@dataclass
class InterfaceImplementation:
    interface: str
    implementing_types: List[str]
    implementation_count: int


@dataclass
class HierarchyAnalysis:
    hierarchies: List[InheritanceHierarchy]
    multiple_inheritance_patterns: List[MultipleInheritancePattern]
    orphaned_types: List[str]
    max_depth: int
    total_hierarchies: int
    interface_implementations: List[InterfaceImplementation] = field(default_factory=list)
    orphaned_interfaces: List[str] = field(default_factory=list)
    target_hierarchy: Optional[str] = None
    analysis_metadata: Dict[str, Any] = field(default_factory=dict)


# ===================================================================
# Generics
# ===================================================================

@dataclass
class GenericTypeDefinition:
    type_name: str
    namespace: str
    catalog_index: int
    generic_parameters: List[str]
    constraints: List[str]
    constraint_count: int
    complexity_score: int
    is_interface: bool


@dataclass
class ConstraintRelationship:
    source_type: str
    target_parameter: str
    constraint_type: str  # "class", "struct", "constructor", "notnull", "interface", "type"
    constraint_target: str
    is_type_constraint: bool
    is_interface_constraint: bool
    is_class_constraint: bool


@dataclass
class GenericInstantiation:
    base_type: str
    type_arguments: List[str]
    instantiation_context: str
    usage_location: str
    complexity_score: int


@dataclass
class GenericComplexityMetrics:
    total_generic_types: int = 0
    average_type_parameters: float = 0.0
    max_type_parameters: int = 0
    constraint_complexity: int = 0
    nesting_depth: int = 0


@dataclass
class GenericAnalysis:
    generic_type_definitions: List[GenericTypeDefinition]
    constraint_relationships: List[ConstraintRelationship]
    generic_instantiations: List[GenericInstantiation]
    complexity_metrics: GenericComplexityMetrics
    diagnostics: List[str] = field(default_factory=list)
    analysis_metadata: Dict[str, Any] = field(default_factory=dict)


# ===================================================================
# Compatibility
# ===================================================================

@dataclass
class AssignabilityRule:
    from_type: str
    to_type: str
    rule: str
    conditions: List[str] = field(default_factory=list)


@dataclass
class ConversionPath:
    from_type: str
    to_type: str
    path: List[str]
    conversion_type: str  # "implicit", "explicit"


@dataclass
class CompatibilityVerdict:
    from_type: str
    to_type: str
    is_compatible: bool
    compatibility_type: str  # "assignable", "convertible", "incompatible"
    confidence: float
    assignability_rule: Optional[AssignabilityRule] = None
    conversion_path: Optional[ConversionPath] = None
    reason: Optional[str] = None


@dataclass
class CompatibilityAnalysis:
    verdict: Optional[CompatibilityVerdict] = None
    compatibility_matrix: List[CompatibilityVerdict] = field(default_factory=list)
    analysis_metadata: Dict[str, Any] = field(default_factory=dict)


# ===================================================================
# Result envelope
# ===================================================================

@dataclass
class AnalysisResult:
    """Typed success/failure outcome of one analysis call."""

    success: bool
    operation: str
    data: Optional[Any] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    warnings: List[str] = field(default_factory=list)
    execution_time_ms: float = 0.0

    def __str__(self) -> str:
        if self.success:
            return f"✅ {self.operation} completed in {self.execution_time_ms:.1f} ms"
        return f"❌ {self.operation} failed: {self.error}"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def report_to_dict(report: Any) -> Dict[str, Any]:
    """Convert any analysis dataclass into plain JSON-ready data."""
    return asdict(report)
