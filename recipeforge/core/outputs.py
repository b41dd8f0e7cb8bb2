"""Result extractor: output resource ids from a terminal deployment."""

from __future__ import annotations

from recipeforge.errors import DeploymentFailedError, ProvisioningError
from recipeforge.models.deployment import DeploymentResult


def extract_outputs(result: DeploymentResult, deployment_name: str) -> list[str]:
    """Return output resource ids in backend order, or raise on failure.

    A non-success result raises DeploymentFailedError naming the deployment;
    the backend's structured error rides along as ``error_detail`` and as
    the chained ProvisioningError cause.
    """
    if not result.succeeded:
        failure = DeploymentFailedError(
            deployment_name,
            provisioning_state=result.provisioning_state.value,
            error_detail=result.error,
        )
        if result.error is not None:
            raise failure from ProvisioningError(
                result.error.code,
                result.error.message,
                [detail.model_dump() for detail in result.error.details],
            )
        raise failure
    return [resource.id for resource in result.output_resources]
