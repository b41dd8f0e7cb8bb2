"""In-process deployment backend for local runs and tests.

Provisioning is simulated: a deployment stays ``Running`` for a fixed
number of refreshes, then succeeds with one output resource per entry in
the template's ``resources`` list, in template order:

    /subscriptions/{sub}/resourceGroups/{rg}/providers/{type}/{name}

Resource names of the form ``[parameters('x')]`` are resolved from the
request parameters, falling back to the template's ``defaultValue``.
"""

from __future__ import annotations

import logging
import re
import threading
from typing import Any

from recipeforge.models.deployment import (
    BackendErrorDetail,
    DeploymentRequest,
    DeploymentResult,
    OutputResource,
    ProvisioningState,
)

logger = logging.getLogger(__name__)

_PARAMETER_EXPRESSION = re.compile(r"^\[parameters\('([A-Za-z0-9_]+)'\)\]$")


class InvalidTemplateError(ValueError):
    """Raised while planning a template the simulated backend cannot apply."""

    def __init__(self, message: str, target: str | None = None) -> None:
        super().__init__(message)
        self.target = target


def _resolve_value(value: Any, template: dict[str, Any], parameters: dict[str, Any]) -> Any:
    if not isinstance(value, str):
        return value
    match = _PARAMETER_EXPRESSION.match(value)
    if not match:
        return value
    name = match.group(1)
    if name in parameters:
        return parameters[name]
    declared = (template.get("parameters") or {}).get(name)
    if isinstance(declared, dict) and "defaultValue" in declared:
        return declared["defaultValue"]
    raise InvalidTemplateError(f"parameter '{name}' has no value", target=name)


def plan_output_resources(request: DeploymentRequest) -> list[str]:
    """Resource ids the template would produce in the request scope."""
    resources = request.template.get("resources")
    if not isinstance(resources, list):
        raise InvalidTemplateError("template must contain a 'resources' list")
    ids: list[str] = []
    for index, resource in enumerate(resources):
        if not isinstance(resource, dict):
            raise InvalidTemplateError(f"resource {index} is not an object", target=str(index))
        resource_type = resource.get("type")
        name = _resolve_value(resource.get("name"), request.template, request.parameters)
        if not isinstance(resource_type, str) or not isinstance(name, str) or not name:
            raise InvalidTemplateError(
                f"resource {index} needs a string 'type' and 'name'", target=str(index)
            )
        ids.append(f"{request.scope.resource_group_id}/providers/{resource_type}/{name}")
    return ids


class SimulatedPoller:
    """Poller over a simulated deployment."""

    def __init__(
        self, request: DeploymentRequest, polls_to_complete: int, retry_after: float | None
    ) -> None:
        self._request = request
        self._remaining = polls_to_complete
        self._retry_after = retry_after
        self._state = ProvisioningState.ACCEPTED
        self._result: DeploymentResult | None = None
        self._lock = threading.Lock()
        if polls_to_complete <= 0:
            self._finish()

    @property
    def deployment_name(self) -> str:
        return self._request.name

    @property
    def retry_after(self) -> float | None:
        return self._retry_after

    @property
    def state(self) -> ProvisioningState:
        return self._state

    def done(self) -> bool:
        return self._state.is_terminal

    def refresh(self) -> None:
        with self._lock:
            if self._state.is_terminal:
                return
            self._remaining -= 1
            if self._remaining <= 0:
                self._finish()
            else:
                self._state = ProvisioningState.RUNNING

    def result(self) -> DeploymentResult:
        if self._result is None:
            raise RuntimeError(f"deployment {self._request.name} has not finished")
        return self._result

    def _finish(self) -> None:
        try:
            ids = plan_output_resources(self._request)
        except InvalidTemplateError as exc:
            self._state = ProvisioningState.FAILED
            self._result = DeploymentResult(
                name=self._request.name,
                provisioning_state=self._state,
                error=BackendErrorDetail(
                    code="InvalidTemplate", message=str(exc), target=exc.target
                ),
            )
            logger.info("Simulated deployment %s failed: %s", self._request.name, exc)
            return
        self._state = ProvisioningState.SUCCEEDED
        self._result = DeploymentResult(
            name=self._request.name,
            provisioning_state=self._state,
            output_resources=[OutputResource(id=resource_id) for resource_id in ids],
            outputs=dict(self._request.template.get("outputs") or {}),
        )
        logger.info(
            "Simulated deployment %s succeeded with %d resources", self._request.name, len(ids)
        )


class SimulatedDeploymentBackend:
    """Deployments client that provisions nothing.

    Parameters
    ----------
    polls_to_complete:
        Refreshes a deployment takes to reach a terminal state.
    retry_after:
        Poll delay suggested to the driver; None defers to its interval.
    """

    def __init__(self, *, polls_to_complete: int = 1, retry_after: float | None = 0.0) -> None:
        self._polls_to_complete = polls_to_complete
        self._retry_after = retry_after
        self._lock = threading.Lock()
        self.submissions: list[DeploymentRequest] = []

    def begin_create_or_update(self, request: DeploymentRequest) -> SimulatedPoller:
        with self._lock:
            if any(existing.name == request.name for existing in self.submissions):
                logger.info("Simulated deployment %s updated in place", request.name)
            self.submissions.append(request)
        return SimulatedPoller(request, self._polls_to_complete, self._retry_after)
