"""``recipeforge resolve REFERENCE``: show the template layer a tag points at."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from recipeforge.cli.clients import build_registry, release
from recipeforge.config import settings
from recipeforge.core.manifest import resolve_layer_digest
from recipeforge.core.reference import parse_reference
from recipeforge.errors import RecipeError

console = Console()


def resolve_cmd(
    reference: str = typer.Argument(..., help="Template reference, repository:tag."),
    registry_kind: str = typer.Option(
        "local", "--registry", "-r", help="Registry kind: local or oci."
    ),
    registry_dir: Path = typer.Option(
        None, "--registry-dir", "-d", help="Local registry directory."
    ),
) -> None:
    """Resolve a reference to its manifest layer digest without deploying."""
    registry = build_registry(registry_kind, settings, registry_dir)
    try:
        parsed = parse_reference(reference)
        repo = registry.repository(parsed.repository)
        digest = resolve_layer_digest(repo, parsed.tag)
    except (RecipeError, ValueError) as exc:
        console.print(f"[bold red]Cannot resolve:[/bold red] {exc}")
        raise typer.Exit(code=1)
    finally:
        release(registry)

    table = Table(show_header=False, box=None)
    table.add_column("Field", style="bold cyan")
    table.add_column("Value")
    table.add_row("Registry", parsed.registry_host or "-")
    table.add_row("Repository", parsed.repository_path)
    table.add_row("Tag", parsed.tag)
    table.add_row("Layer digest", digest)
    console.print(table)
