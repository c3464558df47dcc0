"""Tests for DOT and JSON export."""

import json
from pathlib import Path

from typegraph_cli.analyzer import TypeAnalyzer
from typegraph_cli.graph_export import export_dot, export_json, render_dot
from typegraph_cli.storage import InMemoryCatalog


def _dependencies(records):
    return TypeAnalyzer(InMemoryCatalog(records)).analyze_dependencies().data


class TestRenderDot:
    """Tests for Graphviz rendering."""

    def test_full_graph(self, sample_catalog):
        dot = render_dot(TypeAnalyzer(sample_catalog).analyze_dependencies().data)

        assert dot.startswith("digraph TypeGraph {")
        assert dot.endswith("}")
        assert '"Game.IEntity" [label="interface\\nGame.IEntity", shape=ellipse];' in dot
        assert '"Game.Enemy" -> "Game.Character" [label="inheritance", style=solid];' in dot
        assert '"Game.Enemy" -> "Game.IDamageable" [label="interface", style=dashed];' in dot

    def test_circular_members_highlighted(self, make_record):
        records = [
            make_record("A", kind="interface", interfaces=["B"]),
            make_record("B", kind="interface", interfaces=["A"]),
            make_record("C"),
        ]
        lines = render_dot(_dependencies(records)).splitlines()

        highlighted = [line for line in lines if "fillcolor" in line]
        assert len(highlighted) == 2
        assert not any(line.startswith('  "Game.C"') and "fillcolor" in line for line in lines)

    def test_focus_keeps_neighbours(self, sample_catalog):
        dot = render_dot(TypeAnalyzer(sample_catalog).analyze_dependencies().data, focus="Player")

        assert '"Game.Player"' in dot
        assert '"Game.Character" [' in dot
        assert '"Game.Standalone"' not in dot

    def test_unknown_focus_renders_everything(self, sample_catalog):
        data = TypeAnalyzer(sample_catalog).analyze_dependencies().data

        assert render_dot(data, focus="Nothing") == render_dot(data)


def test_export_files(sample_catalog, temp_dir: Path):
    analyzer = TypeAnalyzer(sample_catalog)
    dot_file = temp_dir / "graph.dot"
    json_file = temp_dir / "generics.json"

    export_dot(analyzer.analyze_dependencies().data, dot_file)
    export_json(analyzer.analyze_generic_types().data, json_file)

    assert dot_file.read_text(encoding="utf-8").startswith("digraph")
    report = json.loads(json_file.read_text(encoding="utf-8"))
    assert report["complexity_metrics"]["total_generic_types"] == 2
