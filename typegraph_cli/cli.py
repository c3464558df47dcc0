"""Typer-based CLI for TypeGraph type catalog analysis."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from . import __version__, config_manager
from .cli_analyze import open_current_store
from .cli_groups import analyze_grp, catalog_grp, config_grp, export_grp
from .errors import TypeGraphError
from .ingest import load_catalog
from .storage import CatalogStore, ProjectManager

console = Console()

app = typer.Typer(
    help="🧬 TypeGraph CLI — relationship analysis for extracted type catalogs.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.add_typer(catalog_grp, name="catalog")
app.add_typer(analyze_grp, name="analyze")
app.add_typer(export_grp, name="export")
app.add_typer(config_grp, name="config")


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"TypeGraph CLI v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
):
    """TypeGraph CLI: dependency, hierarchy, generic, and compatibility analysis."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


# ===================================================================
# Catalog commands
# ===================================================================

@catalog_grp.command("import")
def import_catalog(
    catalog_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON catalog dump."),
    catalog_name: Optional[str] = typer.Option(None, "--name", "-n", help="Explicit name for the catalog."),
):
    """Ingest a JSON type catalog and make it the active one."""
    try:
        result = load_catalog(catalog_file)
    except TypeGraphError as exc:
        console.print(f"[red]✗[/red] {exc}")
        raise typer.Exit(1)

    pm = ProjectManager()
    name = catalog_name or catalog_file.stem.replace(" ", "_")
    try:
        store = CatalogStore(pm.create_or_get_project(name))
        try:
            stats = store.import_catalog(result.types, result.members)
            store.set_metadata({
                "catalog_name": name,
                "source_path": str(catalog_file.resolve()),
                "imported_at": datetime.now().isoformat(),
                "skipped_entries": len(result.diagnostics),
            })
        finally:
            store.close()
    except TypeGraphError as exc:
        console.print(f"[red]✗[/red] {exc}")
        raise typer.Exit(1)

    pm.set_current_project(name)
    typer.echo(f"Imported '{catalog_file}' as catalog '{name}'.")
    typer.echo(f"Types: {stats['types']} | Members: {stats['members']}")

    if result.diagnostics:
        console.print(f"[yellow]⚠ Skipped {len(result.diagnostics)} entries:[/yellow]")
        for diagnostic in result.diagnostics:
            console.print(f"  • {diagnostic}")


@catalog_grp.command("list")
def list_catalogs():
    """List all imported catalogs."""
    pm = ProjectManager()
    projects = pm.list_projects()
    current = pm.get_current_project()

    if not projects:
        typer.echo("No catalogs imported yet.")
        raise typer.Exit(code=0)

    for p in projects:
        marker = "*" if p == current else " "
        typer.echo(f"{marker} {p}")


@catalog_grp.command("load")
def load(catalog_name: str = typer.Argument(..., help="Name of catalog to load.")):
    """Switch the active catalog."""
    pm = ProjectManager()
    if catalog_name not in pm.list_projects():
        raise typer.BadParameter(f"Catalog '{catalog_name}' not found.")
    pm.set_current_project(catalog_name)
    typer.echo(f"Loaded catalog '{catalog_name}'.")


@catalog_grp.command("unload")
def unload():
    """Unload the active catalog without deleting data."""
    pm = ProjectManager()
    pm.unload_project()
    typer.echo("Unloaded active catalog.")


@catalog_grp.command("delete")
def delete(catalog_name: str = typer.Argument(..., help="Catalog to delete.")):
    """Delete an imported catalog."""
    pm = ProjectManager()
    deleted = pm.delete_project(catalog_name)
    if not deleted:
        raise typer.BadParameter(f"Catalog '{catalog_name}' not found.")
    typer.echo(f"Deleted catalog '{catalog_name}'.")


@catalog_grp.command("show")
def show(limit: int = typer.Option(20, "--limit", "-l", min=1, help="Number of types to list.")):
    """Summarize the active catalog."""
    pm = ProjectManager()
    store = open_current_store(pm)
    try:
        counts = store.count_types()
        records = store.find_all(limit=limit)
        metadata = store.get_metadata()
    finally:
        store.close()

    summary = ", ".join(f"{n} {kind}" for kind, n in sorted(counts.items())) or "empty"
    console.print(f"[bold cyan]{pm.get_current_project()}[/bold cyan]: {summary}")
    if metadata.get("source_path"):
        console.print(f"[dim]Imported from {metadata['source_path']} at {metadata.get('imported_at', '?')}[/dim]")

    table = Table(show_header=True, show_lines=False)
    table.add_column("#", style="dim", justify="right")
    table.add_column("Type", style="cyan")
    table.add_column("Kind")
    table.add_column("Base")
    table.add_column("Interfaces")
    for record in records:
        table.add_row(
            str(record.catalog_index),
            record.qualified_name,
            record.kind,
            record.base_type or "",
            ", ".join(record.interfaces),
        )
    console.print(table)


# ===================================================================
# Config commands
# ===================================================================

@config_grp.command("show")
def config_show():
    """Show effective analysis settings."""
    settings = config_manager.load_settings()
    overrides = config_manager.load_analysis_config()

    table = Table(title="Analysis settings", show_header=True)
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    table.add_column("Source", style="dim")
    for key in config_manager.ANALYSIS_KEYS:
        value = getattr(settings, key)
        if isinstance(value, (list, tuple)):
            value = ", ".join(value)
        table.add_row(key, str(value), "config.toml" if key in overrides else "default")
    console.print(table)
    console.print(f"[dim]{config_manager.CONFIG_FILE}[/dim]")


@config_grp.command("set")
def config_set(
    key: str = typer.Argument(..., help="Setting name."),
    value: str = typer.Argument(..., help="New value (comma-separated for system_prefixes)."),
):
    """Persist one analysis setting."""
    try:
        saved = config_manager.save_analysis_value(key, value)
    except KeyError:
        raise typer.BadParameter(
            f"Unknown setting '{key}'. Choose from: {', '.join(config_manager.ANALYSIS_KEYS)}"
        )
    except ValueError:
        raise typer.BadParameter(f"Invalid value for {key}: {value!r}")
    if not saved:
        console.print(f"[red]✗[/red] Could not write {config_manager.CONFIG_FILE}")
        raise typer.Exit(1)
    console.print(f"[green]✓[/green] {key} = {value}")


@config_grp.command("reset")
def config_reset():
    """Drop all analysis overrides."""
    if not config_manager.reset_analysis_config():
        console.print(f"[red]✗[/red] Could not write {config_manager.CONFIG_FILE}")
        raise typer.Exit(1)
    console.print("[green]✓[/green] Analysis settings reset to defaults.")


if __name__ == "__main__":
    app()
