"""Deployment bridge: the provisioning backend contract.

Bridge boundary
---------------
Provisioning is a long-running operation.  Submitting returns a poller
that the driver refreshes until the backend reports a terminal state:

    poller = client.begin_create_or_update(request)
    while not poller.done():
        sleep(poller.retry_after or default_interval)
        poller.refresh()
    result = poller.result()

The driver owns the wait loop so cancellation and deadlines apply the same
way to every backend.  Concrete backends: ``simulated_backend`` (in-process)
and ``arm_backend`` (Azure Resource Manager over HTTP).
"""

from __future__ import annotations

from typing import Protocol

from recipeforge.models.deployment import DeploymentRequest, DeploymentResult


class DeploymentPoller(Protocol):
    """Handle on a submitted deployment."""

    @property
    def deployment_name(self) -> str: ...

    @property
    def retry_after(self) -> float | None:
        """Backend-suggested seconds before the next refresh, if any."""
        ...

    def done(self) -> bool:
        """True once the last refresh observed a terminal state."""
        ...

    def refresh(self) -> None:
        """Poll the backend once for the current status."""
        ...

    def result(self) -> DeploymentResult:
        """Final deployment result; only valid once ``done()``."""
        ...


class DeploymentsClient(Protocol):
    """Submits deployments to a provisioning backend."""

    def begin_create_or_update(self, request: DeploymentRequest) -> DeploymentPoller: ...
