"""Graph export helpers for DOT and JSON outputs."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List

from .models import DependencyAnalysis, DependencyEdge, report_to_dict

_KIND_SHAPES = {"class": "box", "interface": "ellipse", "struct": "component"}
_EDGE_STYLES = {"inheritance": "solid", "interface": "dashed", "dependency": "dotted"}


def render_dot(analysis: DependencyAnalysis, focus: str = "") -> str:
    """Graphviz source for a dependency analysis; circular clusters are highlighted."""
    nodes = {node.type_name: node for node in analysis.nodes}
    selected = _focused_subgraph(list(nodes), analysis.edges, focus)
    circular = {
        type_name
        for cluster in analysis.clusters
        if cluster.is_circular
        for type_name in cluster.types
    }

    lines = ["digraph TypeGraph {"]
    lines.append("  rankdir=BT;")

    for type_name in selected["nodes"]:
        node = nodes[type_name]
        label = f"{node.kind}\\n{node.type_name}"
        attrs = f'label="{_esc(label)}", shape={_KIND_SHAPES.get(node.kind, "box")}'
        if type_name in circular:
            attrs += ', style=filled, fillcolor="#f8d7da", color="#c0392b"'
        lines.append(f'  "{_esc(type_name)}" [{attrs}];')

    for edge in selected["edges"]:
        style = _EDGE_STYLES.get(edge.relationship_type, "solid")
        lines.append(
            f'  "{_esc(edge.from_type)}" -> "{_esc(edge.to_type)}" '
            f'[label="{_esc(edge.relationship_type)}", style={style}];'
        )

    lines.append("}")
    return "\n".join(lines)


def export_dot(analysis: DependencyAnalysis, output_file: Path, focus: str = "") -> None:
    output_file.write_text(render_dot(analysis, focus), encoding="utf-8")


def export_json(report: Any, output_file: Path) -> None:
    """Write any analysis report dataclass as indented JSON."""
    output_file.write_text(json.dumps(report_to_dict(report), indent=2), encoding="utf-8")


def _focused_subgraph(nodes: List[str], edges: List[DependencyEdge], focus: str) -> Dict[str, List]:
    if not focus:
        return {"nodes": nodes, "edges": edges}

    focus_ids = {name for name in nodes if focus in name}
    if not focus_ids:
        return {"nodes": nodes, "edges": edges}

    edge_subset = [e for e in edges if e.from_type in focus_ids or e.to_type in focus_ids]
    node_subset = set(focus_ids)
    for e in edge_subset:
        node_subset.add(e.from_type)
        node_subset.add(e.to_type)
    return {"nodes": sorted(node_subset), "edges": edge_subset}


def _esc(text: str) -> str:
    return text.replace('"', '\\"')
