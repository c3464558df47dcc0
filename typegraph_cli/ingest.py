"""Catalog ingestion: turn an extracted metadata dump into typed records.

The dump is a JSON document of the form::

    {
      "types": [
        {"name": "Player", "namespace": "Game", "kind": "class",
         "baseType": "MonoBehaviour", "interfaces": ["IDamageable"],
         "genericParameters": [], "constraints": [], "typeDefIndex": 12}
      ],
      "members": [
        {"name": "items", "kind": "field", "declaringType": "Game.Player",
         "type": "List<Item>"}
      ]
    }

A bare list is accepted as the ``types`` array.  Key spellings used by the
different metadata extractors (``baseClass``/``baseType``/``base_type``,
``type``/``kind``, ``typeDefIndex``/``catalogIndex`` ...) are normalised
here, once, so the analysis layers only ever see :class:`TypeRecord` and
:class:`MemberRecord`.

Malformed entries never abort the import: they are skipped and reported as
:class:`IngestDiagnostic`.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .errors import IngestError
from .models import MEMBER_KINDS, TYPE_KINDS, MemberRecord, TypeRecord

logger = logging.getLogger(__name__)

_BASE_KEYS = ("baseType", "baseClass", "base_type", "base_class")
_KIND_KEYS = ("kind", "type")
_INDEX_KEYS = ("catalogIndex", "typeDefIndex", "catalog_index", "type_def_index")
_GENERIC_KEYS = ("genericParameters", "generic_parameters")
_MEMBER_TYPE_KEYS = ("type", "fieldType", "returnType", "type_name")
_DECLARING_KEYS = ("declaringType", "parentClass", "declaring_type")


@dataclass
class IngestDiagnostic:
    section: str
    index: int
    reason: str

    def __str__(self) -> str:
        return f"{self.section}[{self.index}]: {self.reason}"


@dataclass
class IngestResult:
    types: List[TypeRecord] = field(default_factory=list)
    members: List[MemberRecord] = field(default_factory=list)
    diagnostics: List[IngestDiagnostic] = field(default_factory=list)


def load_catalog(path: Path) -> IngestResult:
    """Read and normalise a catalog dump from *path*."""
    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as exc:
        raise IngestError(f"Cannot read catalog file '{path}': {exc}", details={"path": str(path)}) from exc
    except json.JSONDecodeError as exc:
        raise IngestError(f"Catalog file '{path}' is not valid JSON: {exc}", details={"path": str(path)}) from exc
    return parse_catalog(payload)


def parse_catalog(payload: Any) -> IngestResult:
    """Normalise an already-decoded catalog document."""
    if isinstance(payload, list):
        raw_types, raw_members = payload, []
    elif isinstance(payload, dict):
        raw_types = payload.get("types", [])
        raw_members = payload.get("members", [])
    else:
        raise IngestError("Catalog document must be a JSON object or array")

    if not isinstance(raw_types, list) or not isinstance(raw_members, list):
        raise IngestError("'types' and 'members' must be JSON arrays")

    result = IngestResult()
    seen: Dict[str, int] = {}

    for position, entry in enumerate(raw_types):
        record, problem = _parse_type(entry, position)
        if record is None:
            result.diagnostics.append(IngestDiagnostic("types", position, problem or "invalid entry"))
            continue
        if record.qualified_name in seen:
            result.diagnostics.append(
                IngestDiagnostic(
                    "types",
                    position,
                    f"duplicate type '{record.qualified_name}' (first seen at {seen[record.qualified_name]})",
                )
            )
            continue
        seen[record.qualified_name] = position
        result.types.append(record)

    for position, entry in enumerate(raw_members):
        member, problem = _parse_member(entry, position)
        if member is None:
            result.diagnostics.append(IngestDiagnostic("members", position, problem or "invalid entry"))
            continue
        result.members.append(member)

    for diagnostic in result.diagnostics:
        logger.warning("Skipped catalog entry %s", diagnostic)

    logger.debug(
        "Parsed catalog: %d types, %d members, %d skipped",
        len(result.types), len(result.members), len(result.diagnostics),
    )
    return result


# ===================================================================
# Helpers
# ===================================================================

def _first(entry: Dict[str, Any], keys: Sequence[str]) -> Any:
    for key in keys:
        if key in entry and entry[key] is not None:
            return entry[key]
    return None


def _string_list(value: Any) -> Optional[Tuple[str, ...]]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,) if value.strip() else ()
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        return None
    return tuple(v.strip() for v in value if v.strip())


def _parse_type(entry: Any, position: int) -> Tuple[Optional[TypeRecord], Optional[str]]:
    if not isinstance(entry, dict):
        return None, "entry is not an object"

    name = entry.get("name")
    if not isinstance(name, str) or not name.strip():
        return None, "missing type name"

    namespace = entry.get("namespace") or ""
    if not isinstance(namespace, str):
        return None, "namespace must be a string"

    kind = _first(entry, _KIND_KEYS) or "class"
    if not isinstance(kind, str) or kind.lower() not in TYPE_KINDS:
        return None, f"unsupported kind {kind!r}"

    base = _first(entry, _BASE_KEYS)
    if base is not None and not isinstance(base, str):
        return None, "base type must be a string"

    interfaces = _string_list(entry.get("interfaces"))
    if interfaces is None:
        return None, "interfaces must be a list of strings"

    generic_parameters = _string_list(_first(entry, _GENERIC_KEYS))
    if generic_parameters is None:
        return None, "generic parameters must be a list of strings"

    constraints = _string_list(entry.get("constraints"))
    if constraints is None:
        return None, "constraints must be a list of strings"

    index = _first(entry, _INDEX_KEYS)
    if index is None:
        index = position
    elif isinstance(index, bool) or not isinstance(index, int):
        return None, "catalog index must be an integer"

    if base is not None:
        base = base.strip() or None

    return (
        TypeRecord(
            name=name.strip(),
            namespace=namespace.strip(),
            kind=kind.lower(),
            base_type=base,
            interfaces=interfaces,
            generic_parameters=generic_parameters,
            constraints=constraints,
            catalog_index=index,
        ),
        None,
    )


def _parse_member(entry: Any, position: int) -> Tuple[Optional[MemberRecord], Optional[str]]:
    if not isinstance(entry, dict):
        return None, "entry is not an object"

    name = entry.get("name")
    if not isinstance(name, str) or not name.strip():
        return None, "missing member name"

    # Some extractors put the member kind under "type" and the signature
    # under fieldType/returnType.
    raw_type = entry.get("type")
    kind = entry.get("kind") or entry.get("memberType")
    if kind is None:
        kind = raw_type if raw_type in MEMBER_KINDS else "field"
    if kind not in MEMBER_KINDS:
        return None, f"unsupported member kind {kind!r}"

    type_name = _first(entry, _MEMBER_TYPE_KEYS[1:])
    if type_name is None and raw_type not in MEMBER_KINDS:
        type_name = raw_type
    if not isinstance(type_name, str) or not type_name.strip():
        return None, "missing member type"

    declaring = _first(entry, _DECLARING_KEYS) or "unknown"
    if not isinstance(declaring, str):
        return None, "declaring type must be a string"

    index = entry.get("catalogIndex", position)
    if isinstance(index, bool) or not isinstance(index, int):
        index = position

    return (
        MemberRecord(
            name=name.strip(),
            kind=kind,
            declaring_type=declaring,
            type_name=type_name.strip(),
            catalog_index=index,
        ),
        None,
    )
