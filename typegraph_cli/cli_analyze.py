"""Analysis and export commands for the active type catalog."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Callable, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from .analyzer import TypeAnalyzer
from .cli_groups import analyze_grp, export_grp
from .config import MAX_DEPTH, MIN_DEPTH
from .config_manager import load_settings
from .graph_export import export_dot, export_json
from .models import (
    AnalysisResult,
    CompatibilityAnalysis,
    CompatibilityVerdict,
    DependencyAnalysis,
    GenericAnalysis,
    HierarchyAnalysis,
    HierarchyNode,
    report_to_dict,
)
from .storage import CatalogStore, ProjectManager

console = Console()
err_console = Console(stderr=True)

_SEVERITY_COLORS = {"critical": "bold red", "high": "red", "medium": "yellow", "low": "dim"}


def open_current_store(pm: ProjectManager) -> CatalogStore:
    project = pm.get_current_project()
    if not project:
        raise typer.BadParameter("No catalog loaded. Use 'tg catalog load <name>' or 'tg catalog import <file>'.")
    if not pm.has_catalog(project):
        raise typer.BadParameter(f"Loaded catalog '{project}' does not exist in memory.")
    return CatalogStore(pm.project_dir(project))


def _run_analysis(call: Callable[[TypeAnalyzer], AnalysisResult]) -> AnalysisResult:
    store = open_current_store(ProjectManager())
    try:
        return call(TypeAnalyzer(store, load_settings()))
    finally:
        store.close()


def _finish(result: AnalysisResult, json_output: bool, render: Callable) -> None:
    for warning in result.warnings:
        err_console.print(f"[yellow]⚠[/yellow] {warning}")
    if not result.success:
        err_console.print(f"[red]✗[/red] {result.error}")
        raise typer.Exit(1)
    if json_output:
        typer.echo(json.dumps(report_to_dict(result.data), indent=2))
        return
    render(result.data)
    console.print(f"[dim]{result}[/dim]")


# ===================================================================
# Renderers
# ===================================================================

def _render_dependencies(report: DependencyAnalysis) -> None:
    m = report.metrics
    console.print(
        Panel.fit(
            f"Nodes: {m.total_nodes}  Edges: {m.total_edges}  Clusters: {m.cluster_count}\n"
            f"Avg deps: {m.average_dependencies:.2f}  Max deps: {m.max_dependencies}  "
            f"Max depth: {m.max_depth}  Circular clusters: {m.circular_dependencies}",
            title="[bold]Dependency Metrics[/bold]",
            border_style="cyan",
        )
    )

    table = Table(title="Most connected types", show_header=True)
    table.add_column("Type", style="cyan")
    table.add_column("Kind")
    table.add_column("Deps", justify="right")
    table.add_column("Dependents", justify="right")
    table.add_column("Centrality", justify="right")
    for node in sorted(report.nodes, key=lambda n: n.centrality, reverse=True)[:20]:
        table.add_row(
            node.type_name,
            node.kind,
            str(node.dependency_count),
            str(node.dependent_count),
            f"{node.centrality:.3f}",
        )
    console.print(table)

    for cluster in report.clusters:
        if not cluster.is_circular:
            continue
        console.print(f"\n[bold red]↻ {cluster.cluster_id}[/bold red] ({cluster.cluster_size} types)")
        for ref in cluster.circular_references:
            color = _SEVERITY_COLORS.get(ref.severity, "white")
            console.print(f"  [{color}]{ref.severity}[/{color}] {ref.cycle_type}: {' → '.join(ref.cycle)}")
            if ref.suggestion:
                console.print(f"    💡 {ref.suggestion.description} (effort: {ref.suggestion.effort})")

    if report.focus:
        console.print(
            f"\n[bold]Focus[/bold] {report.focus.target} (±{report.focus.depth} hops): "
            f"{len(report.focus.types)} types, {len(report.focus.edges)} edges"
        )
        for type_name in report.focus.types:
            console.print(f"  • {type_name}")


def _add_branch(tree: Tree, root: HierarchyNode) -> None:
    stack = [(tree, root)]
    while stack:
        parent, node = stack.pop()
        label = f"[cyan]{node.qualified_name}[/cyan]"
        if node.interfaces:
            label += f" [dim]: {', '.join(node.interfaces)}[/dim]"
        branch = parent.add(label)
        stack.extend((branch, child) for child in reversed(node.derived_types))


def _render_hierarchies(report: HierarchyAnalysis) -> None:
    tree = Tree(f"[bold]{report.total_hierarchies} hierarchies[/bold] (max depth {report.max_depth})")
    for hierarchy in report.hierarchies:
        if hierarchy.total_nodes > 1:
            _add_branch(tree, hierarchy.root_type)
    console.print(tree)

    if report.multiple_inheritance_patterns:
        table = Table(title="Multiple inheritance", show_header=True)
        table.add_column("Type", style="cyan")
        table.add_column("Base")
        table.add_column("Interfaces")
        table.add_column("Complexity")
        for p in report.multiple_inheritance_patterns:
            table.add_row(f"{p.namespace}.{p.type_name}" if p.namespace else p.type_name,
                          p.base_type, ", ".join(p.interfaces), f"{p.complexity} ({p.complexity_score})")
        console.print(table)

    if report.orphaned_types:
        console.print(f"\n[yellow]Orphaned types ({len(report.orphaned_types)}):[/yellow] {', '.join(report.orphaned_types)}")
    if report.orphaned_interfaces:
        console.print(f"[yellow]Unimplemented interfaces:[/yellow] {', '.join(report.orphaned_interfaces)}")
    if report.target_hierarchy:
        console.print(f"\n[bold]Target hierarchy root:[/bold] {report.target_hierarchy}")


def _render_generics(report: GenericAnalysis) -> None:
    m = report.complexity_metrics
    console.print(
        Panel.fit(
            f"Generic types: {m.total_generic_types}  Avg params: {m.average_type_parameters:.2f}  "
            f"Max params: {m.max_type_parameters}\n"
            f"Constraints: {m.constraint_complexity}  Nesting depth: {m.nesting_depth}",
            title="[bold]Generic Complexity[/bold]",
            border_style="cyan",
        )
    )

    table = Table(show_header=True)
    table.add_column("Type", style="cyan")
    table.add_column("Parameters")
    table.add_column("Constraints")
    table.add_column("Score", justify="right")
    for d in report.generic_type_definitions:
        table.add_row(
            f"{d.namespace}.{d.type_name}" if d.namespace else d.type_name,
            ", ".join(d.generic_parameters),
            "; ".join(d.constraints),
            str(d.complexity_score),
        )
    console.print(table)

    for rel in report.constraint_relationships:
        console.print(f"  {rel.source_type}: {rel.target_parameter} → {rel.constraint_target} [dim]({rel.constraint_type})[/dim]")

    if report.generic_instantiations:
        console.print(f"\n[bold]Instantiations ({len(report.generic_instantiations)})[/bold]")
        for inst in report.generic_instantiations:
            console.print(
                f"  {inst.base_type}<{', '.join(inst.type_arguments)}> "
                f"[dim]in {inst.instantiation_context} ({inst.usage_location})[/dim]"
            )


def _verdict_line(verdict: CompatibilityVerdict) -> str:
    if verdict.assignability_rule:
        evidence = verdict.assignability_rule.rule
    elif verdict.conversion_path:
        evidence = f"{verdict.conversion_path.conversion_type} conversion"
    else:
        evidence = verdict.reason or ""
    color = "green" if verdict.is_compatible else "red"
    return (
        f"[{color}]{verdict.compatibility_type}[/{color}] "
        f"{verdict.from_type} → {verdict.to_type} "
        f"[dim]({evidence}, confidence {verdict.confidence:.2f})[/dim]"
    )


def _render_compatibility(report: CompatibilityAnalysis) -> None:
    if report.verdict is not None:
        console.print(_verdict_line(report.verdict))
        return
    compatible = [v for v in report.compatibility_matrix if v.is_compatible]
    console.print(
        f"[bold]{len(report.compatibility_matrix)} checks[/bold], {len(compatible)} compatible pairs"
    )
    for verdict in compatible:
        console.print(f"  {_verdict_line(verdict)}")


# ===================================================================
# Analyze commands
# ===================================================================

_JSON_OPTION = typer.Option(False, "--json", help="Print the raw report as JSON.")


@analyze_grp.command("dependencies")
def analyze_dependencies(
    target: Optional[str] = typer.Option(None, "--target", "-t", help="Focus on one type."),
    max_depth: Optional[int] = typer.Option(None, "--max-depth", "-d", min=MIN_DEPTH, max=MAX_DEPTH, help="Focus radius."),
    no_cycles: bool = typer.Option(False, "--no-cycles", help="Skip cluster and cycle detection."),
    system: bool = typer.Option(False, "--system", help="Include System/Unity types."),
    json_output: bool = _JSON_OPTION,
):
    """Dependency graph, clusters, and circular references."""
    result = _run_analysis(lambda a: a.analyze_dependencies(
        target_type=target,
        max_depth=max_depth,
        include_circular_detection=not no_cycles,
        include_system_types=system,
    ))
    _finish(result, json_output, _render_dependencies)


@analyze_grp.command("hierarchies")
def analyze_hierarchies(
    target: Optional[str] = typer.Option(None, "--target", "-t", help="Locate one class's hierarchy."),
    no_interfaces: bool = typer.Option(False, "--no-interfaces", help="Ignore implemented interfaces."),
    max_depth: Optional[int] = typer.Option(None, "--max-depth", "-d", min=MIN_DEPTH, max=MAX_DEPTH, help="Tree depth limit."),
    namespace: Optional[str] = typer.Option(None, "--namespace", "-n", help="Only namespaces containing this text."),
    json_output: bool = _JSON_OPTION,
):
    """Inheritance trees, multiple inheritance, and orphaned types."""
    result = _run_analysis(lambda a: a.analyze_hierarchies(
        target_type=target,
        include_interfaces=not no_interfaces,
        max_depth=max_depth,
        namespace_filter=namespace,
    ))
    _finish(result, json_output, _render_hierarchies)


@analyze_grp.command("generics")
def analyze_generics(
    target: Optional[str] = typer.Option(None, "--target", "-t", help="Analyze one generic type."),
    no_constraints: bool = typer.Option(False, "--no-constraints", help="Skip constraint parsing."),
    instantiations: bool = typer.Option(False, "--instantiations", help="Scan members for generic instantiations."),
    threshold: int = typer.Option(1, "--threshold", min=1, max=10, help="Minimum generic parameter count."),
    json_output: bool = _JSON_OPTION,
):
    """Generic definitions, constraints, and instantiations."""
    result = _run_analysis(lambda a: a.analyze_generic_types(
        target_type=target,
        include_constraints=not no_constraints,
        include_instantiations=instantiations,
        complexity_threshold=threshold,
    ))
    _finish(result, json_output, _render_generics)


@analyze_grp.command("compatibility")
def analyze_compatibility(
    from_type: Optional[str] = typer.Argument(None, help="Source type (omit both for a matrix)."),
    to_type: Optional[str] = typer.Argument(None, help="Target type."),
    no_conversion_paths: bool = typer.Option(False, "--no-conversion-paths", help="Skip numeric conversion tables."),
    no_implicit: bool = typer.Option(False, "--no-implicit", help="Skip implicit conversions."),
    limit: Optional[int] = typer.Option(None, "--limit", "-l", min=1, help="Matrix size (types)."),
    json_output: bool = _JSON_OPTION,
):
    """Assignability / convertibility of a type pair, or a matrix."""
    result = _run_analysis(lambda a: a.analyze_compatibility(
        from_type=from_type,
        to_type=to_type,
        include_conversion_paths=not no_conversion_paths,
        include_implicit_conversions=not no_implicit,
        limit=limit,
    ))
    _finish(result, json_output, _render_compatibility)


# ===================================================================
# Export commands
# ===================================================================

_EXPORTS = {
    "dependencies": lambda a: a.analyze_dependencies(),
    "hierarchies": lambda a: a.analyze_hierarchies(),
    "generics": lambda a: a.analyze_generic_types(include_instantiations=True),
    "compatibility": lambda a: a.analyze_compatibility(),
}


@export_grp.command("dot")
def export_graph_dot(
    output: Path = typer.Argument(..., help="Output .dot file."),
    focus: str = typer.Option("", "--focus", "-f", help="Only types whose name contains this text, plus neighbours."),
    system: bool = typer.Option(False, "--system", help="Include System/Unity types."),
):
    """Export the dependency graph as Graphviz DOT."""
    result = _run_analysis(lambda a: a.analyze_dependencies(include_system_types=system))
    if not result.success:
        err_console.print(f"[red]✗[/red] {result.error}")
        raise typer.Exit(1)
    export_dot(result.data, output, focus=focus)
    typer.echo(f"Exported graph to {output}")


@export_grp.command("json")
def export_report_json(
    kind: str = typer.Argument(..., help="dependencies, hierarchies, generics, or compatibility."),
    output: Path = typer.Argument(..., help="Output .json file."),
):
    """Export an analysis report as JSON."""
    kind = kind.lower()
    if kind not in _EXPORTS:
        raise typer.BadParameter(f"Kind must be one of: {', '.join(_EXPORTS)}")
    result = _run_analysis(_EXPORTS[kind])
    if not result.success:
        err_console.print(f"[red]✗[/red] {result.error}")
        raise typer.Exit(1)
    export_json(result.data, output)
    typer.echo(f"Exported {kind} report to {output}")
