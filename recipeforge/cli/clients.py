"""Build registry and deployment collaborators from CLI options."""

from __future__ import annotations

from pathlib import Path

import typer

from recipeforge.bridge.arm_backend import ArmDeploymentsClient
from recipeforge.bridge.deployments import DeploymentsClient
from recipeforge.bridge.local_registry import LocalRegistry
from recipeforge.bridge.oci_http import OciHttpRegistry
from recipeforge.bridge.registry import RegistryClient
from recipeforge.bridge.simulated_backend import SimulatedDeploymentBackend
from recipeforge.config import EngineSettings

REGISTRY_KINDS = ("local", "oci")
BACKEND_KINDS = ("simulated", "arm")


def build_registry(kind: str, settings: EngineSettings, registry_dir: Path | None) -> RegistryClient:
    if kind == "local":
        return LocalRegistry(registry_dir or settings.local_registry_path)
    if kind == "oci":
        return OciHttpRegistry(settings)
    raise typer.BadParameter(
        f"unknown registry {kind!r}; choose one of {', '.join(REGISTRY_KINDS)}",
        param_hint="--registry",
    )


def build_backend(kind: str, settings: EngineSettings) -> DeploymentsClient:
    if kind == "simulated":
        return SimulatedDeploymentBackend()
    if kind == "arm":
        if not settings.arm_token:
            raise typer.BadParameter(
                "the arm backend needs RECIPEFORGE_ARM_TOKEN", param_hint="--backend"
            )
        return ArmDeploymentsClient(settings)
    raise typer.BadParameter(
        f"unknown backend {kind!r}; choose one of {', '.join(BACKEND_KINDS)}",
        param_hint="--backend",
    )


def release(*clients: object) -> None:
    """Close every collaborator that holds a connection pool."""
    for client in clients:
        close = getattr(client, "close", None)
        if close is not None:
            close()
