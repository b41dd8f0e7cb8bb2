"""Deployment request/result models for the provisioning backend."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class DeploymentMode(str, Enum):
    """How the backend treats resources already in the target scope.

    INCREMENTAL leaves undeclared resources untouched; only resources in the
    template are created or updated.
    """

    INCREMENTAL = "Incremental"


class ProvisioningState(str, Enum):
    """Provisioning state reported by the deployment backend."""

    NOT_SPECIFIED = "NotSpecified"
    ACCEPTED = "Accepted"
    RUNNING = "Running"
    READY = "Ready"
    CREATING = "Creating"
    CREATED = "Created"
    UPDATING = "Updating"
    DELETING = "Deleting"
    DELETED = "Deleted"
    CANCELED = "Canceled"
    FAILED = "Failed"
    SUCCEEDED = "Succeeded"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATES

    @classmethod
    def parse(cls, value: str | None) -> "ProvisioningState":
        """Case-insensitive lookup; unknown values map to NOT_SPECIFIED."""
        if not value:
            return cls.NOT_SPECIFIED
        for state in cls:
            if state.value.lower() == str(value).lower():
                return state
        return cls.NOT_SPECIFIED


_TERMINAL_STATES = frozenset(
    {ProvisioningState.SUCCEEDED, ProvisioningState.FAILED, ProvisioningState.CANCELED}
)


class DeploymentScope(BaseModel):
    """Subscription and resource group the template is deployed into."""

    model_config = ConfigDict(frozen=True)

    subscription_id: str = Field(min_length=1)
    resource_group: str = Field(min_length=1)

    @property
    def resource_group_id(self) -> str:
        return f"/subscriptions/{self.subscription_id}/resourceGroups/{self.resource_group}"


class DeploymentRequest(BaseModel):
    """A single create-or-update submission."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    scope: DeploymentScope
    template: dict[str, Any]
    mode: DeploymentMode = DeploymentMode.INCREMENTAL
    parameters: dict[str, Any] = {}


class OutputResource(BaseModel):
    """A concrete resource produced by applying the template."""

    model_config = ConfigDict(frozen=True)

    id: str


class BackendErrorDetail(BaseModel):
    """Structured error attached by the backend to a failed deployment."""

    model_config = ConfigDict(frozen=True)

    code: str = ""
    message: str = ""
    target: str | None = None
    details: list["BackendErrorDetail"] = []

    @classmethod
    def from_payload(cls, payload: Any) -> "BackendErrorDetail | None":
        """Build from a backend JSON error object, tolerating missing fields."""
        if not isinstance(payload, dict):
            return None
        details = [
            detail
            for detail in (cls.from_payload(item) for item in payload.get("details") or [])
            if detail is not None
        ]
        return cls(
            code=str(payload.get("code") or ""),
            message=str(payload.get("message") or ""),
            target=payload.get("target"),
            details=details,
        )


class DeploymentResult(BaseModel):
    """Final observation of a deployment, read-only from the engine's side."""

    model_config = ConfigDict(frozen=True)

    name: str
    provisioning_state: ProvisioningState
    output_resources: list[OutputResource] = []
    outputs: dict[str, Any] = {}
    error: BackendErrorDetail | None = None

    @property
    def succeeded(self) -> bool:
        return self.provisioning_state == ProvisioningState.SUCCEEDED
