"""Main Typer application: imports and registers all CLI commands.

Entry point: ``recipeforge`` (configured via pyproject.toml scripts).
"""

from __future__ import annotations

import logging

import typer
from rich.logging import RichHandler

from recipeforge.cli.commands.deploy import deploy_cmd
from recipeforge.cli.commands.push import push_cmd
from recipeforge.cli.commands.resolve import resolve_cmd
from recipeforge.config import settings

app = typer.Typer(
    name="recipeforge",
    help="recipeforge: deploy infrastructure recipes pulled from an artifact registry.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        None, "--log-level", help="Logging level (defaults to RECIPEFORGE_LOG_LEVEL)."
    ),
) -> None:
    """Configure logging for every command."""
    level = (log_level or settings.log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=False, show_path=False)],
        force=True,
    )


# Register subcommands
app.command(name="push", help="Publish a template to the local registry.")(push_cmd)
app.command(name="resolve", help="Resolve a reference to its template layer digest.")(resolve_cmd)
app.command(name="deploy", help="Deploy a recipe and list its output resources.")(deploy_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
