"""Tests for catalog ingestion."""

import json
from pathlib import Path

import pytest

from typegraph_cli.errors import IngestError
from typegraph_cli.ingest import load_catalog, parse_catalog


class TestLoadCatalog:
    """Tests for reading the fixture dump."""

    def test_types_and_members(self, sample_catalog_path: Path):
        result = load_catalog(sample_catalog_path)

        assert len(result.types) == 14
        assert len(result.members) == 3
        names = [t.qualified_name for t in result.types]
        assert "Game.Player" in names
        assert "Game.Data.Repository" in names

    def test_key_aliases_normalised(self, sample_catalog_path: Path):
        result = load_catalog(sample_catalog_path)
        by_name = {t.qualified_name: t for t in result.types}

        assert by_name["Game.Player"].base_type == "Character"  # from baseClass
        assert by_name["Game.Data.Cache"].generic_parameters == ("TKey", "TValue")
        assert by_name["Game.Entity"].catalog_index == 0
        assert by_name["Game.GameManager"].catalog_index == 13

    def test_malformed_entries_reported(self, sample_catalog_path: Path):
        result = load_catalog(sample_catalog_path)
        reasons = [str(d) for d in result.diagnostics]

        assert len(result.diagnostics) == 4
        assert any("missing type name" in r for r in reasons)
        assert any("duplicate type 'Game.Standalone'" in r for r in reasons)
        assert any("unsupported kind" in r for r in reasons)
        assert any(r.startswith("members[3]") for r in reasons)

    def test_member_kind_under_type_key(self, sample_catalog_path: Path):
        result = load_catalog(sample_catalog_path)
        lookup = {m.name: m for m in result.members}

        assert lookup["GetLookup"].kind == "method"
        assert lookup["GetLookup"].type_name == "Dictionary<string, List<int>>"
        assert lookup["GetLookup"].declaring_type == "Game.GameManager"
        assert lookup["health"].type_name == "int"

    def test_missing_file(self, temp_dir: Path):
        with pytest.raises(IngestError):
            load_catalog(temp_dir / "absent.json")

    def test_invalid_json(self, temp_dir: Path):
        bad = temp_dir / "bad.json"
        bad.write_text("{not json", encoding="utf-8")

        with pytest.raises(IngestError) as exc_info:
            load_catalog(bad)
        assert exc_info.value.error_type == "ingest"


class TestParseCatalog:
    """Tests for in-memory payloads."""

    def test_bare_list(self):
        result = parse_catalog([{"name": "A", "namespace": "N", "type": "interface"}])

        assert result.types[0].kind == "interface"
        assert result.types[0].qualified_name == "N.A"
        assert result.members == []

    def test_empty_namespace(self):
        result = parse_catalog([{"name": "object"}])

        assert result.types[0].qualified_name == "object"
        assert result.types[0].kind == "class"

    def test_position_as_default_index(self):
        result = parse_catalog({"types": [{"name": "A"}, {"name": "B"}]})

        assert [t.catalog_index for t in result.types] == [0, 1]

    def test_non_list_interfaces_skipped(self):
        result = parse_catalog([{"name": "A", "interfaces": {"x": 1}}, {"name": "B"}])

        assert [t.name for t in result.types] == ["B"]
        assert "interfaces" in result.diagnostics[0].reason

    def test_blank_base_type_is_none(self):
        result = parse_catalog([{"name": "A", "baseType": "  "}])

        assert result.types[0].base_type is None

    def test_rejects_scalar_document(self):
        with pytest.raises(IngestError):
            parse_catalog(json.loads("42"))
