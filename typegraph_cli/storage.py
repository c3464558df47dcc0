"""Persistence layer for project-specific type catalogs.

Architecture:
- :class:`CatalogAccessor` is the narrow read interface the analysis core
  consumes (``find_by_name`` / ``find_all`` / ``find_members``).
- :class:`CatalogStore` implements it on **SQLite**, one database per
  imported catalog under ``~/.typegraph/memory/<project>/``.
- :class:`InMemoryCatalog` implements it over plain lists, for tests and
  direct library use.
"""

from __future__ import annotations

import json
import logging
import shutil
import sqlite3
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .config import MEMORY_DIR, STATE_FILE, ensure_base_dirs
from .errors import CatalogAccessError
from .models import MemberRecord, TypeRecord

logger = logging.getLogger(__name__)

CATALOG_DB = "catalog.db"


# ===================================================================
# ProjectManager  (manages directories / active catalog)
# ===================================================================

class ProjectManager:
    """Imported catalogs under ``MEMORY_DIR`` and the active one in ``state.json``."""

    def __init__(self) -> None:
        ensure_base_dirs()

    def list_projects(self) -> List[str]:
        if not MEMORY_DIR.exists():
            return []
        return sorted(p.name for p in MEMORY_DIR.iterdir() if p.is_dir())

    def project_dir(self, project_name: str) -> Path:
        return MEMORY_DIR / project_name

    def catalog_path(self, project_name: str) -> Path:
        return self.project_dir(project_name) / CATALOG_DB

    def has_catalog(self, project_name: str) -> bool:
        """True once a catalog database has been imported for *project_name*."""
        return self.catalog_path(project_name).is_file()

    def create_or_get_project(self, project_name: str) -> Path:
        path = self.project_dir(project_name)
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _write_state(self, current: Optional[str]) -> None:
        ensure_base_dirs()
        STATE_FILE.write_text(json.dumps({"current_project": current}, indent=2), encoding="utf-8")

    def set_current_project(self, project_name: str) -> None:
        self._write_state(project_name)

    def unload_project(self) -> None:
        self._write_state(None)

    def get_current_project(self) -> Optional[str]:
        if not STATE_FILE.exists():
            return None
        try:
            payload = json.loads(STATE_FILE.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning("Ignoring unreadable state file %s", STATE_FILE)
            return None
        return payload.get("current_project")

    def delete_project(self, project_name: str) -> bool:
        """Remove a catalog directory; unloads it first when it is the active one."""
        path = self.project_dir(project_name)
        if not path.is_dir():
            return False
        if self.get_current_project() == project_name:
            self.unload_project()
        shutil.rmtree(path)
        logger.info("Deleted catalog %s", project_name)
        return True


# ===================================================================
# Catalog accessor interface
# ===================================================================

class CatalogAccessor(ABC):
    """Read-only access to the type records of one catalog."""

    @abstractmethod
    def find_by_name(self, name: str, kinds: Optional[Sequence[str]] = None) -> Optional[TypeRecord]:
        """Resolve *name* to a single record, or ``None`` when absent.

        Resolution order: exact qualified name, exact simple name, then the
        same two comparisons case-insensitively.  Ties go to the lowest
        ``catalog_index``.
        """
        ...

    @abstractmethod
    def find_all(
        self,
        kinds: Optional[Sequence[str]] = None,
        limit: Optional[int] = None,
    ) -> List[TypeRecord]:
        """Return records of *kinds* in catalog order, at most *limit* of them."""
        ...

    @abstractmethod
    def find_members(
        self,
        kinds: Optional[Sequence[str]] = None,
        limit: Optional[int] = None,
    ) -> List[MemberRecord]:
        """Return field/method member records in catalog order."""
        ...


def _match_by_name(records: Iterable[TypeRecord], name: str) -> Optional[TypeRecord]:
    wanted = name.strip()
    lowered = wanted.lower()
    ordered = sorted(records, key=lambda r: r.catalog_index)
    checks = (
        lambda r: r.qualified_name == wanted,
        lambda r: r.name == wanted,
        lambda r: r.qualified_name.lower() == lowered,
        lambda r: r.name.lower() == lowered,
    )
    for check in checks:
        for record in ordered:
            if check(record):
                return record
    return None


class InMemoryCatalog(CatalogAccessor):
    """Catalog accessor over in-memory record lists."""

    def __init__(
        self,
        types: Iterable[TypeRecord],
        members: Iterable[MemberRecord] = (),
    ) -> None:
        self._types = sorted(types, key=lambda r: r.catalog_index)
        self._members = sorted(members, key=lambda m: m.catalog_index)

    def find_by_name(self, name: str, kinds: Optional[Sequence[str]] = None) -> Optional[TypeRecord]:
        candidates = [r for r in self._types if not kinds or r.kind in kinds]
        return _match_by_name(candidates, name)

    def find_all(
        self,
        kinds: Optional[Sequence[str]] = None,
        limit: Optional[int] = None,
    ) -> List[TypeRecord]:
        selected = [r for r in self._types if not kinds or r.kind in kinds]
        return selected[:limit] if limit is not None else selected

    def find_members(
        self,
        kinds: Optional[Sequence[str]] = None,
        limit: Optional[int] = None,
    ) -> List[MemberRecord]:
        selected = [m for m in self._members if not kinds or m.kind in kinds]
        return selected[:limit] if limit is not None else selected


# ===================================================================
# CatalogStore  (SQLite)
# ===================================================================

class CatalogStore(CatalogAccessor):
    """SQLite-backed catalog for one imported metadata dump."""

    def __init__(self, project_dir: Path) -> None:
        self.project_dir = project_dir
        self.db_path = project_dir / CATALOG_DB
        self.meta_path = project_dir / "project.json"
        try:
            self.conn = sqlite3.connect(str(self.db_path))
            self.conn.row_factory = sqlite3.Row
            self._init_schema()
        except sqlite3.Error as exc:
            raise CatalogAccessError(
                f"Cannot open catalog database '{self.db_path}': {exc}",
                details={"db_path": str(self.db_path)},
            ) from exc

    def close(self) -> None:
        self.conn.close()

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    def _init_schema(self) -> None:
        cur = self.conn.cursor()
        cur.execute("""
            CREATE TABLE IF NOT EXISTS types (
                qualified_name     TEXT PRIMARY KEY,
                name               TEXT NOT NULL,
                namespace          TEXT NOT NULL,
                kind               TEXT NOT NULL,
                base_type          TEXT,
                interfaces         TEXT NOT NULL,
                generic_parameters TEXT NOT NULL,
                constraints        TEXT NOT NULL,
                catalog_index      INTEGER NOT NULL
            )
        """)
        cur.execute("""
            CREATE TABLE IF NOT EXISTS members (
                name           TEXT NOT NULL,
                kind           TEXT NOT NULL,
                declaring_type TEXT NOT NULL,
                type_name      TEXT NOT NULL,
                catalog_index  INTEGER NOT NULL
            )
        """)
        cur.execute("CREATE INDEX IF NOT EXISTS idx_types_name ON types(name)")
        cur.execute("CREATE INDEX IF NOT EXISTS idx_types_kind ON types(kind)")
        cur.execute("CREATE INDEX IF NOT EXISTS idx_types_order ON types(catalog_index)")
        self.conn.commit()

    # ------------------------------------------------------------------
    # Clear / metadata
    # ------------------------------------------------------------------

    def clear(self) -> None:
        cur = self.conn.cursor()
        cur.execute("DELETE FROM members")
        cur.execute("DELETE FROM types")
        self.conn.commit()

    def set_metadata(self, payload: Dict[str, Any]) -> None:
        self.meta_path.write_text(
            json.dumps(payload, indent=2), encoding="utf-8",
        )

    def get_metadata(self) -> Dict[str, Any]:
        if not self.meta_path.exists():
            return {}
        try:
            return json.loads(self.meta_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            return {}

    # ------------------------------------------------------------------
    # Insert
    # ------------------------------------------------------------------

    def import_catalog(
        self,
        types: Iterable[TypeRecord],
        members: Iterable[MemberRecord] = (),
    ) -> Dict[str, int]:
        """Replace the stored catalog with *types* and *members*."""
        type_rows = [
            (
                r.qualified_name,
                r.name,
                r.namespace,
                r.kind,
                r.base_type,
                json.dumps(list(r.interfaces)),
                json.dumps(list(r.generic_parameters)),
                json.dumps(list(r.constraints)),
                r.catalog_index,
            )
            for r in types
        ]
        member_rows = [
            (m.name, m.kind, m.declaring_type, m.type_name, m.catalog_index)
            for m in members
        ]
        try:
            self.clear()
            cur = self.conn.cursor()
            cur.executemany(
                """
                INSERT OR REPLACE INTO types (
                    qualified_name, name, namespace, kind, base_type,
                    interfaces, generic_parameters, constraints, catalog_index
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                type_rows,
            )
            cur.executemany(
                "INSERT INTO members (name, kind, declaring_type, type_name, catalog_index) "
                "VALUES (?, ?, ?, ?, ?)",
                member_rows,
            )
            self.conn.commit()
        except sqlite3.Error as exc:
            self.conn.rollback()
            raise CatalogAccessError(f"Failed to import catalog: {exc}") from exc

        logger.info("Imported %d types and %d members into %s", len(type_rows), len(member_rows), self.db_path)
        return {"types": len(type_rows), "members": len(member_rows)}

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def _query(self, sql: str, params: Sequence[Any] = ()) -> List[sqlite3.Row]:
        try:
            return self.conn.execute(sql, tuple(params)).fetchall()
        except sqlite3.Error as exc:
            raise CatalogAccessError(f"Catalog query failed: {exc}") from exc

    @staticmethod
    def _kind_clause(kinds: Optional[Sequence[str]]) -> tuple:
        if not kinds:
            return "", []
        placeholders = ",".join("?" * len(kinds))
        return f" WHERE kind IN ({placeholders})", list(kinds)

    def find_by_name(self, name: str, kinds: Optional[Sequence[str]] = None) -> Optional[TypeRecord]:
        clause, params = self._kind_clause(kinds)
        extra = " AND" if clause else " WHERE"
        wanted = name.strip()
        rows = self._query(
            f"SELECT * FROM types{clause}{extra} "
            "(qualified_name = ? COLLATE NOCASE OR name = ? COLLATE NOCASE) "
            "ORDER BY catalog_index",
            params + [wanted, wanted],
        )
        return _match_by_name((_row_to_record(row) for row in rows), wanted)

    def find_all(
        self,
        kinds: Optional[Sequence[str]] = None,
        limit: Optional[int] = None,
    ) -> List[TypeRecord]:
        clause, params = self._kind_clause(kinds)
        sql = f"SELECT * FROM types{clause} ORDER BY catalog_index"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)
        return [_row_to_record(row) for row in self._query(sql, params)]

    def find_members(
        self,
        kinds: Optional[Sequence[str]] = None,
        limit: Optional[int] = None,
    ) -> List[MemberRecord]:
        clause, params = self._kind_clause(kinds)
        sql = f"SELECT * FROM members{clause} ORDER BY catalog_index"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)
        return [
            MemberRecord(
                name=row["name"],
                kind=row["kind"],
                declaring_type=row["declaring_type"],
                type_name=row["type_name"],
                catalog_index=row["catalog_index"],
            )
            for row in self._query(sql, params)
        ]

    def count_types(self) -> Dict[str, int]:
        rows = self._query("SELECT kind, COUNT(*) AS n FROM types GROUP BY kind")
        return {row["kind"]: row["n"] for row in rows}


# ===================================================================
# Helpers
# ===================================================================

def _row_to_record(row: sqlite3.Row) -> TypeRecord:
    return TypeRecord(
        name=row["name"],
        namespace=row["namespace"],
        kind=row["kind"],
        base_type=row["base_type"],
        interfaces=tuple(json.loads(row["interfaces"])),
        generic_parameters=tuple(json.loads(row["generic_parameters"])),
        constraints=tuple(json.loads(row["constraints"])),
        catalog_index=row["catalog_index"],
    )
