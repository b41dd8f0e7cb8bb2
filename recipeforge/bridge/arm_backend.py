"""Azure Resource Manager deployments over HTTP (httpx).

    PUT {endpoint}/subscriptions/{sub}/resourcegroups/{rg}/providers/
        Microsoft.Resources/deployments/{name}?api-version=...
    GET  (same URL) until properties.provisioningState is terminal

The bearer token comes from settings; acquiring it is the caller's job.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from recipeforge.config import EngineSettings
from recipeforge.models.deployment import (
    BackendErrorDetail,
    DeploymentRequest,
    DeploymentResult,
    OutputResource,
    ProvisioningState,
)

logger = logging.getLogger(__name__)


class ArmRequestError(RuntimeError):
    """Raised when ARM answers with an error status."""

    def __init__(self, status_code: int, code: str, message: str) -> None:
        prefix = f"ARM HTTP {status_code} {code}" if code else f"ARM HTTP {status_code}"
        super().__init__(f"{prefix}: {message}" if message else prefix)
        self.status_code = status_code
        self.code = code


def _raise_for_arm_error(response: httpx.Response) -> None:
    if response.status_code < 400:
        return
    code, message = "", response.text[:240]
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
        code = str(payload["error"].get("code") or "")
        message = str(payload["error"].get("message") or message)
    raise ArmRequestError(response.status_code, code, message)


def _retry_after(response: httpx.Response) -> float | None:
    value = response.headers.get("Retry-After")
    if not value:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        return None


def deployment_body(request: DeploymentRequest) -> dict[str, Any]:
    """ARM request body for a deployment."""
    return {
        "properties": {
            "template": request.template,
            "mode": request.mode.value,
            "parameters": {key: {"value": value} for key, value in request.parameters.items()},
        }
    }


def parse_deployment(name: str, payload: dict[str, Any]) -> DeploymentResult:
    """Build a DeploymentResult from an ARM deployment resource."""
    properties = payload.get("properties") or {}
    output_resources = [
        OutputResource(id=item["id"])
        for item in properties.get("outputResources") or []
        if isinstance(item, dict) and isinstance(item.get("id"), str)
    ]
    return DeploymentResult(
        name=payload.get("name") or name,
        provisioning_state=ProvisioningState.parse(properties.get("provisioningState")),
        output_resources=output_resources,
        outputs=properties.get("outputs") or {},
        error=BackendErrorDetail.from_payload(properties.get("error")),
    )


class ArmDeploymentPoller:
    """Polls one ARM deployment resource."""

    def __init__(
        self,
        client: httpx.Client,
        url: str,
        api_version: str,
        name: str,
        initial: httpx.Response,
    ) -> None:
        self._client = client
        self._url = url
        self._api_version = api_version
        self._name = name
        self._apply(initial)

    @property
    def deployment_name(self) -> str:
        return self._name

    @property
    def retry_after(self) -> float | None:
        return self._retry_after

    def done(self) -> bool:
        return self._state.is_terminal

    def refresh(self) -> None:
        response = self._client.get(self._url, params={"api-version": self._api_version})
        _raise_for_arm_error(response)
        self._apply(response)

    def result(self) -> DeploymentResult:
        if not self.done():
            raise RuntimeError(f"deployment {self._name} has not finished")
        return parse_deployment(self._name, self._payload)

    def _apply(self, response: httpx.Response) -> None:
        try:
            payload = response.json() if response.content else {}
        except ValueError:
            payload = {}
        self._payload = payload if isinstance(payload, dict) else {}
        properties = self._payload.get("properties") or {}
        self._state = ProvisioningState.parse(properties.get("provisioningState"))
        self._retry_after = _retry_after(response)
        logger.debug("ARM deployment %s state=%s", self._name, self._state.value)


class ArmDeploymentsClient:
    """Deployments client for Azure Resource Manager.

    Parameters
    ----------
    settings:
        Supplies ``arm_endpoint``, ``arm_api_version``, ``arm_token`` and
        ``arm_timeout_seconds``.
    client:
        Pre-built httpx client (tests pass one with a MockTransport).
    """

    def __init__(
        self,
        settings: EngineSettings | None = None,
        *,
        client: httpx.Client | None = None,
    ) -> None:
        self._settings = settings or EngineSettings()
        self._client = client or httpx.Client(timeout=self._settings.arm_timeout_seconds)
        if self._settings.arm_token:
            self._client.headers["Authorization"] = f"Bearer {self._settings.arm_token}"

    def deployment_url(self, request: DeploymentRequest) -> str:
        scope = request.scope
        return (
            f"{self._settings.arm_endpoint.rstrip('/')}/subscriptions/{scope.subscription_id}"
            f"/resourcegroups/{scope.resource_group}"
            f"/providers/Microsoft.Resources/deployments/{request.name}"
        )

    def begin_create_or_update(self, request: DeploymentRequest) -> ArmDeploymentPoller:
        url = self.deployment_url(request)
        response = self._client.put(
            url,
            params={"api-version": self._settings.arm_api_version},
            json=deployment_body(request),
        )
        _raise_for_arm_error(response)
        logger.info("ARM accepted deployment %s (HTTP %s)", request.name, response.status_code)
        return ArmDeploymentPoller(
            self._client, url, self._settings.arm_api_version, request.name, response
        )

    def close(self) -> None:
        self._client.close()
