"""``recipeforge deploy REFERENCE``: deploy a recipe and list its resources.

Pulls the template from the registry, deploys it incrementally into the
given subscription and resource group, waits for provisioning, and prints
the output resource ids in backend order.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from recipeforge.cli.clients import build_backend, build_registry, release
from recipeforge.config import settings
from recipeforge.core.cancellation import CancellationToken
from recipeforge.core.engine import RecipeDeploymentEngine
from recipeforge.errors import DeploymentFailedError, RecipeError

console = Console()


def _parse_parameters(values: list[str]) -> dict[str, Any]:
    """``key=value`` pairs; values that parse as JSON keep their JSON type."""
    parameters: dict[str, Any] = {}
    for item in values:
        key, sep, raw = item.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"expected key=value, got {item!r}", param_hint="--param")
        try:
            parameters[key] = json.loads(raw)
        except json.JSONDecodeError:
            parameters[key] = raw
    return parameters


def deploy_cmd(
    reference: str = typer.Argument(..., help="Template reference, repository:tag."),
    subscription: str = typer.Option(..., "--subscription", "-s", help="Subscription ID."),
    resource_group: str = typer.Option(..., "--resource-group", "-g", help="Resource group."),
    param: list[str] = typer.Option(
        [], "--param", "-p", help="Recipe parameter as key=value (repeatable)."
    ),
    registry_kind: str = typer.Option(
        "local", "--registry", "-r", help="Registry kind: local or oci."
    ),
    registry_dir: Path = typer.Option(
        None, "--registry-dir", "-d", help="Local registry directory."
    ),
    backend_kind: str = typer.Option(
        "simulated", "--backend", "-b", help="Deployment backend: simulated or arm."
    ),
    timeout: float = typer.Option(
        None, "--timeout", "-t", help="Give up waiting after this many seconds."
    ),
) -> None:
    """Deploy a recipe template and print the resources it produced."""
    parameters = _parse_parameters(param)
    registry = build_registry(registry_kind, settings, registry_dir)
    try:
        backend = build_backend(backend_kind, settings)
    except typer.BadParameter:
        release(registry)
        raise
    engine = RecipeDeploymentEngine(registry, backend, settings=settings)
    token = CancellationToken(timeout if timeout is not None else settings.deployment_timeout_seconds)

    try:
        outcome = engine.run(
            reference, subscription, resource_group, parameters=parameters, token=token
        )
    except RecipeError as exc:
        lines = [f"[bold red]{type(exc).__name__}[/bold red]", "", str(exc)]
        if isinstance(exc, DeploymentFailedError) and exc.error_detail is not None:
            lines += ["", f"[dim]{exc.error_detail.code}: {exc.error_detail.message}[/dim]"]
        console.print(Panel("\n".join(lines), title="[bold]Deployment failed[/bold]", border_style="red"))
        raise typer.Exit(code=1)
    finally:
        release(registry, backend)

    table = Table(title=f"Deployment {outcome.deployment_name}", expand=True)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Resource ID", style="cyan")
    for index, resource_id in enumerate(outcome.output_resources, start=1):
        table.add_row(str(index), resource_id)

    console.print()
    console.print(f"[bold]Recipe:[/bold] {outcome.reference}  [dim]{outcome.layer_digest}[/dim]")
    console.print(table)
    console.print()
