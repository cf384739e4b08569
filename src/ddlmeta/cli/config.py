"""
CLI: ``ddlmeta config``: configuration inspection.
"""

from __future__ import annotations

import typer

from ddlmeta.cli.utils import ConfigFormat, console

app = typer.Typer(no_args_is_help=True)


@app.command("show")
def show_config(
    format: ConfigFormat = typer.Option(ConfigFormat.TABLE, "--format", "-f", help="Output format."),
) -> None:
    """Show the effective settings (defaults, .env and DDLMETA_* variables)."""
    from ddlmeta.core.settings import get_settings

    settings = get_settings()

    if format is ConfigFormat.JSON:
        console.print_json(settings.model_dump_json())
        return

    if format is ConfigFormat.ENV:
        for key, value in sorted(settings.model_dump(mode="json").items()):
            console.print(f"DDLMETA_{key.upper()}={'' if value is None else value}")
        return

    from rich.table import Table

    table = Table(title="Settings")
    table.add_column("Setting")
    table.add_column("Value")
    for key, value in settings.model_dump(mode="json").items():
        table.add_row(key, str(value))
    console.print(table)
