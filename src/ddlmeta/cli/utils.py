"""
CLI utility helpers: output formatting.
"""

from __future__ import annotations

import json
from enum import Enum

import typer
from rich.console import Console
from rich.table import Table

from ddlmeta.core.errors import DDLMetaError
from ddlmeta.ddl.snapshot import Snapshot, TableSnapshot

console = Console()
err_console = Console(stderr=True)


class OutputFormat(str, Enum):
    """Snapshot output formats."""

    TABLE = "table"
    JSON = "json"


class ConfigFormat(str, Enum):
    """Settings output formats."""

    TABLE = "table"
    JSON = "json"
    ENV = "env"


def fail(error: DDLMetaError) -> None:
    """Print *error* on stderr and exit with code 1."""
    err_console.print(f"[bold red]Error[/bold red] ({type(error).__name__}): {error.message}")
    context = error.context.to_dict()
    if context:
        for key, value in context.items():
            err_console.print(f"  [cyan]{key}[/cyan]: {value}")
    raise typer.Exit(code=1)


def output_snapshot(snapshot: Snapshot, *, as_json: bool = False) -> None:
    """Render a snapshot to the terminal."""
    if as_json:
        console.print_json(json.dumps(snapshot.to_dict(), default=str))
        return

    console.print(f"[bold]Interpreter:[/bold] {snapshot.dialect}")
    for schema in snapshot.schemas:
        if not schema.tables and not schema.views:
            console.print(f"\n[bold]{schema.name}[/bold] [dim](empty)[/dim]")
            continue
        console.print(f"\n[bold]{schema.name}[/bold]")
        for table in schema.tables:
            _print_table(schema.name, table)
        for view in schema.views:
            console.print(f"  [cyan]view[/cyan] {view.name}: {view.definition or ''}")


# ── Private helpers ──────────────────────────────────────────────────────


def _print_table(schema: str, table: TableSnapshot) -> None:
    pk = set(table.primary_key.columns) if table.primary_key else set()
    grid = Table(title=f"{schema}.{table.name}", show_lines=False, pad_edge=False)
    grid.add_column("column", overflow="fold")
    grid.add_column("type")
    grid.add_column("null")
    grid.add_column("default")
    grid.add_column("key")
    for column in table.columns:
        grid.add_row(
            column.name,
            column.type,
            "yes" if column.nullable else "no",
            column.default or "",
            "PK" if column.name in pk else "",
        )
    console.print(grid)

    for fk in table.foreign_keys:
        target = ".".join(p for p in (fk.referred_schema, fk.referred_table) if p)
        console.print(
            f"  [cyan]fk[/cyan] ({', '.join(fk.columns)}) -> {target} ({', '.join(fk.referred_columns)})"
        )
    for uc in table.unique_constraints:
        console.print(f"  [cyan]unique[/cyan] {uc.name or ''} ({', '.join(uc.columns)})")
    for cc in table.check_constraints:
        console.print(f"  [cyan]check[/cyan] {cc.name or ''} {cc.sqltext}")
    for ix in table.indexes:
        kind = "unique index" if ix.unique else "index"
        columns = ", ".join(c or "<expr>" for c in ix.columns)
        console.print(f"  [cyan]{kind}[/cyan] {ix.name or ''} ({columns})")
