"""
Root Typer application for the ddl-meta CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

app = Typer(
    name="ddlmeta",
    help="ddl-meta: structural snapshots of DDL scripts without a live database.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        try:
            v = pkg_version("ddl-meta")
        except PackageNotFoundError:
            from ddlmeta import __version__ as v
        typer.echo(f"ddl-meta {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """ddl-meta CLI: replay DDL scripts and inspect the resulting structure."""


# ── Sub-command registration ─────────────────────────────────────────────

from ddlmeta.cli.config import app as config_app  # noqa: E402
from ddlmeta.cli.snapshot import snapshot  # noqa: E402

app.command("snapshot")(snapshot)
app.add_typer(config_app, name="config", help="Configuration inspection.")


if __name__ == "__main__":
    app()
