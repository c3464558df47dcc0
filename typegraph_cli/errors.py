"""Exception hierarchy for catalog access and type analysis.

Analysis entry points convert these into failed
:class:`~typegraph_cli.models.AnalysisResult` objects; they only escape to
callers that use the lower-level builders or the catalog store directly.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class TypeGraphError(Exception):
    """Base exception for all typegraph errors."""

    error_type = "typegraph_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class NotFoundError(TypeGraphError):
    """A named type is absent from the catalog."""

    error_type = "not_found"

    def __init__(self, type_name: str, role: str = "Target type"):
        super().__init__(
            f"{role} '{type_name}' not found in type catalog",
            details={"type_name": type_name},
        )


class EmptyCatalogError(TypeGraphError):
    """Zero types remained after fetching and filtering."""

    error_type = "empty_catalog"

    def __init__(self, what: str = "types", purpose: str = "analysis"):
        super().__init__(
            f"No {what} found in type catalog for {purpose}",
            details={"what": what},
        )


class InvalidParameterError(TypeGraphError):
    """A request parameter is out of range or inconsistent."""

    error_type = "invalid_parameter"

    def __init__(self, message: str, param: Optional[str] = None):
        super().__init__(message, details={"param": param} if param else {})
        self.param = param


class CatalogAccessError(TypeGraphError):
    """The catalog backend failed while reading or writing."""

    error_type = "catalog_access"


class IngestError(TypeGraphError):
    """A catalog dump could not be read as a whole."""

    error_type = "ingest"
