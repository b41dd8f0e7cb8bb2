"""``recipeforge push REFERENCE TEMPLATE``: publish a template to the local registry.

Stores the template as the single layer of an OCI artifact manifest and
points the reference's tag at it.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel

from recipeforge.bridge.local_registry import LocalRegistry
from recipeforge.config import settings
from recipeforge.core.reference import parse_reference
from recipeforge.core.template import decode_template
from recipeforge.errors import RecipeError

console = Console()


def push_cmd(
    reference: str = typer.Argument(..., help="Target reference, repository:tag."),
    template_file: Path = typer.Argument(
        ..., exists=True, dir_okay=False, readable=True, help="JSON template file."
    ),
    registry_dir: Path = typer.Option(
        None,
        "--registry-dir",
        "-d",
        help="Local registry directory (defaults to RECIPEFORGE_LOCAL_REGISTRY_PATH).",
    ),
) -> None:
    """Publish a recipe template to the local registry."""
    data = template_file.read_bytes()
    try:
        parsed = parse_reference(reference)
        decode_template(data)
    except RecipeError as exc:
        console.print(f"[bold red]Cannot push:[/bold red] {exc}")
        raise typer.Exit(code=1)

    registry = LocalRegistry(registry_dir or settings.local_registry_path)
    manifest = registry.push_template(parsed.repository, parsed.tag, data)

    console.print()
    console.print(
        Panel(
            "\n".join([
                "[bold green]Template pushed.[/bold green]",
                "",
                f"[bold]Reference:[/bold]  {parsed}",
                f"[bold]Manifest:[/bold]   {manifest.digest}",
                f"[bold]Size:[/bold]       {len(data):,} bytes",
            ]),
            title="[bold]recipeforge[/bold]",
            border_style="green",
            padding=(1, 2),
        )
    )
    console.print()
    # Manifest digest plainly for scripting
    console.print(manifest.digest)
