"""
CLI: ``ddlmeta snapshot``: replay scripts and print the resulting structure.
"""

from __future__ import annotations

from pathlib import Path

import typer

from ddlmeta.cli.utils import OutputFormat, fail, output_snapshot
from ddlmeta.core.errors import DDLMetaError
from ddlmeta.core.logging import configure_logging
from ddlmeta.core.settings import RenderNameCase, get_settings
from ddlmeta.ddl.provider import TranslatingMetaProvider
from ddlmeta.ddl.sources import FileSource


def snapshot(
    scripts: list[Path] = typer.Argument(..., help="DDL scripts, replayed in the order given."),
    dialect: str | None = typer.Option(  # noqa: UP007
        None, "--dialect", "-d", help="SQL dialect the scripts are written in (sqlglot name)."
    ),
    name_case: RenderNameCase | None = typer.Option(  # noqa: UP007
        None, "--name-case", "-n", help="Identifier case policy."
    ),
    ignore_comments: bool = typer.Option(
        False, "--ignore-comments", help="Skip regions between ignore-comment markers."
    ),
    format: OutputFormat = typer.Option(OutputFormat.TABLE, "--format", "-f", help="Output format."),
) -> None:
    """Replay SCRIPTS on a scratch database and print the resulting structure."""
    overrides: dict[str, object] = {}
    if dialect is not None:
        overrides["parse_dialect"] = dialect
    if name_case is not None:
        overrides["render_name_case"] = name_case
    if ignore_comments:
        overrides["parse_ignore_comments"] = True
    settings = get_settings().model_copy(update=overrides)

    configure_logging(level=settings.log_level, json_format=settings.log_json)

    try:
        provider = TranslatingMetaProvider(
            *(FileSource(path) for path in scripts),
            settings=settings,
        )
        result = provider.provide()
    except DDLMetaError as e:
        fail(e)
        return

    output_snapshot(result, as_json=format is OutputFormat.JSON)
