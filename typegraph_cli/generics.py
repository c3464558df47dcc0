"""Generic type definitions, constraint relationships and instantiations."""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Sequence, Tuple

from .models import (
    ConstraintRelationship,
    GenericComplexityMetrics,
    GenericInstantiation,
    GenericTypeDefinition,
    MemberRecord,
    TypeRecord,
)

logger = logging.getLogger(__name__)

_CONSTRAINT_RE = re.compile(r"(\w+)\s*:\s*(.+)")
_INSTANTIATION_RE = re.compile(r"(\w+)<(.+)>")

# Substring rules, checked in order.
_KEYWORD_CONSTRAINTS = (
    ("class", "class"),
    ("struct", "struct"),
    ("new()", "constructor"),
    ("notnull", "notnull"),
)


def looks_like_interface(name: str) -> bool:
    """``IEntity`` yes, ``Item`` / ``IList<T>`` no."""
    return len(name) > 1 and name[0] == "I" and name[1].isupper() and "<" not in name


def classify_constraint(target: str) -> str:
    for keyword, constraint_type in _KEYWORD_CONSTRAINTS:
        if keyword in target:
            return constraint_type
    if looks_like_interface(target):
        return "interface"
    return "type"


def bracket_depth(text: str) -> int:
    """Deepest nesting of ``<...>`` in *text*."""
    depth = deepest = 0
    for char in text:
        if char == "<":
            depth += 1
            deepest = max(deepest, depth)
        elif char == ">" and depth:
            depth -= 1
    return deepest


def split_type_arguments(text: str) -> List[str]:
    """Split ``string, Dictionary<int, T>`` at top-level commas only."""
    parts: List[str] = []
    depth = 0
    current: List[str] = []
    for char in text:
        if char == "<":
            depth += 1
        elif char == ">" and depth:
            depth -= 1
        if char == "," and depth == 0:
            parts.append("".join(current).strip())
            current = []
            continue
        current.append(char)
    tail = "".join(current).strip()
    if tail or parts:
        parts.append(tail)
    return [part for part in parts if part]


# ===================================================================
# Definitions
# ===================================================================

def generic_definitions(
    records: Sequence[TypeRecord],
    complexity_threshold: int = 1,
) -> List[GenericTypeDefinition]:
    """Score generic records, keep those with enough parameters, most complex first."""
    definitions = []
    for record in records:
        if not record.generic_parameters:
            continue
        if len(record.generic_parameters) < complexity_threshold:
            continue
        definitions.append(
            GenericTypeDefinition(
                type_name=record.name,
                namespace=record.namespace,
                catalog_index=record.catalog_index,
                generic_parameters=list(record.generic_parameters),
                constraints=list(record.constraints),
                constraint_count=len(record.constraints),
                complexity_score=len(record.generic_parameters) + len(record.constraints),
                is_interface=record.is_interface,
            )
        )
    return sorted(definitions, key=lambda d: d.complexity_score, reverse=True)


def parse_constraint(raw: str, parameters: Sequence[str]) -> Tuple[Optional[Tuple[str, str]], Optional[str]]:
    """Return ``((parameter, target), None)`` or ``(None, reason)``."""
    match = _CONSTRAINT_RE.search(raw)
    if match is None:
        return None, f"unparseable constraint '{raw}'"
    parameter, target = match.group(1), match.group(2).strip()
    if parameter not in parameters:
        return None, f"constraint '{raw}' names unknown parameter '{parameter}'"
    return (parameter, target), None


def constraint_relationships(
    records: Sequence[TypeRecord],
) -> Tuple[List[ConstraintRelationship], List[str]]:
    """Parse every constraint string of every generic record.

    Returns the relationships plus diagnostics for constraints that were
    skipped.
    """
    relationships: List[ConstraintRelationship] = []
    diagnostics: List[str] = []

    for record in records:
        if not record.generic_parameters:
            continue
        for raw in record.constraints:
            parsed, problem = parse_constraint(raw, record.generic_parameters)
            if parsed is None:
                message = f"{record.qualified_name}: {problem}"
                logger.warning("Skipping %s", message)
                diagnostics.append(message)
                continue
            parameter, target = parsed
            relationships.append(
                ConstraintRelationship(
                    source_type=record.qualified_name,
                    target_parameter=parameter,
                    constraint_type=classify_constraint(target),
                    constraint_target=target,
                    is_type_constraint=not any(k in target for k, _ in _KEYWORD_CONSTRAINTS),
                    is_interface_constraint=looks_like_interface(target),
                    is_class_constraint="class" in target,
                )
            )
    return relationships, diagnostics


# ===================================================================
# Instantiations
# ===================================================================

def extract_instantiation(member: MemberRecord) -> Optional[GenericInstantiation]:
    match = _INSTANTIATION_RE.search(member.type_name or "")
    if match is None:
        return None
    arguments = split_type_arguments(match.group(2))
    if not arguments:
        return None
    return GenericInstantiation(
        base_type=match.group(1),
        type_arguments=arguments,
        instantiation_context=member.declaring_type or "unknown",
        usage_location=f"{member.kind}:{member.name}",
        complexity_score=len(arguments),
    )


def find_instantiations(members: Sequence[MemberRecord]) -> List[GenericInstantiation]:
    """Concrete generic usages in member type strings, most arguments first."""
    found = [inst for inst in (extract_instantiation(m) for m in members) if inst is not None]
    return sorted(found, key=lambda inst: inst.complexity_score, reverse=True)


# ===================================================================
# Metrics
# ===================================================================

def complexity_metrics(definitions: Sequence[GenericTypeDefinition]) -> GenericComplexityMetrics:
    if not definitions:
        return GenericComplexityMetrics()

    counts = [len(d.generic_parameters) for d in definitions]
    return GenericComplexityMetrics(
        total_generic_types=len(definitions),
        average_type_parameters=sum(counts) / len(counts),
        max_type_parameters=max(counts),
        constraint_complexity=sum(len(d.constraints) for d in definitions),
        nesting_depth=max(
            (bracket_depth(p) for d in definitions for p in d.generic_parameters),
            default=0,
        ),
    )
