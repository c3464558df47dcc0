"""Command hierarchy groups for organized CLI experience.

Provides logical grouping of commands under:
  tg catalog  — Catalog import and management
  tg analyze  — Type relationship analysis
  tg export   — DOT / JSON export
  tg config   — Analysis settings
"""

from __future__ import annotations

import typer

# ── Catalog management group ─────────────────────────────────
catalog_grp = typer.Typer(
    help="📂 Catalogs — import, load, and manage type catalogs.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# ── Analysis group ───────────────────────────────────────────
analyze_grp = typer.Typer(
    help="🔍 Analysis — dependencies, hierarchies, generics, and compatibility.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# ── Export group ─────────────────────────────────────────────
export_grp = typer.Typer(
    help="📄 Export — dependency graph as DOT, reports as JSON.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# ── Configuration group ──────────────────────────────────────
config_grp = typer.Typer(
    help="⚙️  Configuration — analysis defaults in config.toml.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
