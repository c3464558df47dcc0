"""Assignability and conversion rules between catalog types."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .graph_builder import TypeIndex
from .models import (
    AssignabilityRule,
    CompatibilityVerdict,
    ConversionPath,
    TypeRecord,
    generic_base_name,
)

logger = logging.getLogger(__name__)

# Built-in numeric conversions, keyed by C# keyword.
IMPLICIT_CONVERSIONS: Dict[str, Tuple[str, ...]] = {
    "byte": ("short", "ushort", "int", "uint", "long", "ulong", "float", "double", "decimal"),
    "sbyte": ("short", "int", "long", "float", "double", "decimal"),
    "short": ("int", "long", "float", "double", "decimal"),
    "ushort": ("int", "uint", "long", "ulong", "float", "double", "decimal"),
    "int": ("long", "float", "double", "decimal"),
    "uint": ("long", "ulong", "float", "double", "decimal"),
    "long": ("float", "double", "decimal"),
    "ulong": ("float", "double", "decimal"),
    "char": ("ushort", "int", "uint", "long", "ulong", "float", "double", "decimal"),
    "float": ("double",),
}

EXPLICIT_CONVERSIONS: Dict[str, Tuple[str, ...]] = {
    "double": ("float", "decimal", "long", "ulong", "int", "uint", "short", "ushort", "byte", "sbyte", "char"),
    "float": ("decimal", "long", "ulong", "int", "uint", "short", "ushort", "byte", "sbyte", "char"),
    "decimal": ("double", "float", "long", "ulong", "int", "uint", "short", "ushort", "byte", "sbyte", "char"),
    "long": ("int", "uint", "short", "ushort", "byte", "sbyte", "char"),
    "ulong": ("long", "int", "uint", "short", "ushort", "byte", "sbyte", "char"),
    "int": ("uint", "short", "ushort", "byte", "sbyte", "char"),
    "uint": ("int", "short", "ushort", "byte", "sbyte", "char"),
    "short": ("ushort", "byte", "sbyte", "char"),
    "ushort": ("short", "byte", "sbyte", "char"),
    "byte": ("sbyte",),
    "sbyte": ("byte", "char"),
}

CLR_ALIASES: Dict[str, str] = {
    "Byte": "byte",
    "SByte": "sbyte",
    "Int16": "short",
    "UInt16": "ushort",
    "Int32": "int",
    "UInt32": "uint",
    "Int64": "long",
    "UInt64": "ulong",
    "Char": "char",
    "Single": "float",
    "Double": "double",
    "Decimal": "decimal",
}

_KEYWORD_TO_CLR = {keyword: clr for clr, keyword in CLR_ALIASES.items()}


def numeric_keyword(name: str) -> Optional[str]:
    """``int`` / ``Int32`` / ``System.Int32`` -> ``int``; ``None`` for non-numeric names."""
    if name in _KEYWORD_TO_CLR:
        return name
    if name.startswith("System."):
        name = name[len("System."):]
    return CLR_ALIASES.get(name)


def _numeric_key(record: TypeRecord) -> Optional[str]:
    if record.namespace not in ("", "System"):
        return None
    return numeric_keyword(record.name)


def builtin_numeric_record(name: str) -> Optional[TypeRecord]:
    """Stand-in ``System`` struct for a numeric type the catalog does not list."""
    keyword = numeric_keyword(name.strip())
    if keyword is None:
        return None
    return TypeRecord(name=_KEYWORD_TO_CLR[keyword], namespace="System", kind="struct", catalog_index=-1)


class CompatibilityResolver:
    """Evaluate pairs of records against one catalog snapshot.

    Rules run in a fixed order and the first hit wins: identity,
    inheritance, interface, generic base equality, then the numeric
    conversion tables.
    """

    def __init__(
        self,
        records: Iterable[TypeRecord],
        include_conversion_paths: bool = True,
        include_implicit: bool = True,
    ) -> None:
        self.index = TypeIndex(records)
        self.include_conversion_paths = include_conversion_paths
        self.include_implicit = include_implicit

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    def _matches(self, reference: str, namespace: str, target: TypeRecord) -> bool:
        resolved = self.index.resolve(reference, namespace)
        if resolved is not None:
            return resolved.qualified_name == target.qualified_name
        return reference in (target.name, target.qualified_name) or reference.endswith(f".{target.name}")

    def _base_chain(self, record: TypeRecord) -> List[TypeRecord]:
        """*record* followed by its resolvable ancestors, stopping on cycles."""
        chain = [record]
        visited = {record.qualified_name}
        current = record
        while current.base_type:
            parent = self.index.resolve(current.base_type, current.namespace)
            if parent is None or parent.qualified_name in visited:
                break
            visited.add(parent.qualified_name)
            chain.append(parent)
            current = parent
        return chain

    def inherits_from(self, source: TypeRecord, target: TypeRecord) -> bool:
        for record in self._base_chain(source):
            if record.base_type and self._matches(record.base_type, record.namespace, target):
                return True
        return False

    def implements(self, source: TypeRecord, target: TypeRecord) -> bool:
        """Direct or inherited interface implementation of *target*."""
        if not target.is_interface:
            return False
        for record in self._base_chain(source):
            for name in record.interfaces:
                if self._matches(name, record.namespace, target):
                    return True
        return False

    @staticmethod
    def same_generic_base(source: TypeRecord, target: TypeRecord) -> bool:
        if not (source.is_generic and target.is_generic):
            return False
        return generic_base_name(source.name) == generic_base_name(target.name)

    def numeric_conversion(self, source: TypeRecord, target: TypeRecord) -> Optional[str]:
        """``"implicit"``, ``"explicit"`` or ``None`` per the built-in tables."""
        from_key = _numeric_key(source)
        to_key = _numeric_key(target)
        if from_key is None or to_key is None:
            return None
        if self.include_implicit and to_key in IMPLICIT_CONVERSIONS.get(from_key, ()):
            return "implicit"
        if to_key in EXPLICIT_CONVERSIONS.get(from_key, ()):
            return "explicit"
        return None

    @staticmethod
    def incompatibility_reason(source: TypeRecord, target: TypeRecord) -> str:
        if source.namespace != target.namespace:
            return f"Different namespaces: {source.namespace} vs {target.namespace}"
        if bool(source.generic_parameters) != bool(target.generic_parameters):
            return "Generic definition mismatch"
        return f"No conversion path available from {source.qualified_name} to {target.qualified_name}"

    # ------------------------------------------------------------------
    # Verdicts
    # ------------------------------------------------------------------

    def resolve(self, source: TypeRecord, target: TypeRecord) -> CompatibilityVerdict:
        from_name = source.qualified_name
        to_name = target.qualified_name

        def assignable(rule: str, condition: str, confidence: float) -> CompatibilityVerdict:
            return CompatibilityVerdict(
                from_type=from_name,
                to_type=to_name,
                is_compatible=True,
                compatibility_type="assignable",
                confidence=confidence,
                assignability_rule=AssignabilityRule(from_name, to_name, rule, [condition]),
            )

        def convertible(conversion_type: str, confidence: float) -> CompatibilityVerdict:
            return CompatibilityVerdict(
                from_type=from_name,
                to_type=to_name,
                is_compatible=True,
                compatibility_type="convertible",
                confidence=confidence,
                conversion_path=ConversionPath(from_name, to_name, [from_name, to_name], conversion_type),
            )

        if from_name == to_name:
            return assignable("identity", "fromType and toType are the same type", 1.0)
        if self.inherits_from(source, target):
            return assignable("inheritance_assignability", "fromType inherits from toType", 0.95)
        if self.implements(source, target):
            return assignable("interface_assignability", "fromType implements toType interface", 0.90)
        if self.same_generic_base(source, target):
            return convertible("explicit", 0.75)
        if self.include_conversion_paths:
            conversion = self.numeric_conversion(source, target)
            if conversion == "implicit":
                return convertible("implicit", 0.85)
            if conversion == "explicit":
                return convertible("explicit", 0.70)

        return CompatibilityVerdict(
            from_type=from_name,
            to_type=to_name,
            is_compatible=False,
            compatibility_type="incompatible",
            confidence=0.95,
            reason=self.incompatibility_reason(source, target),
        )

    def matrix(self, records: Sequence[TypeRecord]) -> List[CompatibilityVerdict]:
        """Verdicts for every ordered pair of distinct positions in *records*."""
        verdicts = [
            self.resolve(source, target)
            for i, source in enumerate(records)
            for j, target in enumerate(records)
            if i != j
        ]
        logger.debug(
            "Compatibility matrix: %d types, %d checks, %d compatible",
            len(records), len(verdicts), sum(1 for v in verdicts if v.is_compatible),
        )
        return verdicts
