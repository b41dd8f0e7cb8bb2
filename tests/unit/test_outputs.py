"""Tests for the result extractor."""

from __future__ import annotations

import pytest

from recipeforge.core.outputs import extract_outputs
from recipeforge.errors import DeploymentFailedError, ProvisioningError
from recipeforge.models.deployment import (
    BackendErrorDetail,
    DeploymentResult,
    OutputResource,
    ProvisioningState,
)


def _result(state: ProvisioningState, ids=(), error=None) -> DeploymentResult:
    return DeploymentResult(
        name="recipe42",
        provisioning_state=state,
        output_resources=[OutputResource(id=i) for i in ids],
        error=error,
    )


class TestExtractOutputs:
    def test_ids_in_backend_order(self):
        ids = ["/subscriptions/s/resourceGroups/rg/providers/b/2", "/subscriptions/s/a/1"]
        assert extract_outputs(_result(ProvisioningState.SUCCEEDED, ids), "recipe42") == ids

    def test_empty_success(self):
        assert extract_outputs(_result(ProvisioningState.SUCCEEDED), "recipe42") == []

    def test_failed_names_deployment(self):
        with pytest.raises(DeploymentFailedError, match="recipe42") as exc_info:
            extract_outputs(_result(ProvisioningState.FAILED), "recipe42")
        assert exc_info.value.deployment_name == "recipe42"
        assert exc_info.value.provisioning_state == "Failed"
        assert exc_info.value.retryable is False

    def test_canceled_is_failure(self):
        with pytest.raises(DeploymentFailedError, match="state=Canceled"):
            extract_outputs(_result(ProvisioningState.CANCELED), "recipe42")

    def test_backend_error_attached(self):
        error = BackendErrorDetail(
            code="QuotaExceeded",
            message="namespace quota reached",
            details=[BackendErrorDetail(code="Inner", message="limit 10")],
        )
        with pytest.raises(DeploymentFailedError) as exc_info:
            extract_outputs(_result(ProvisioningState.FAILED, error=error), "recipe42")
        assert exc_info.value.error_detail == error
        cause = exc_info.value.__cause__
        assert isinstance(cause, ProvisioningError)
        assert cause.code == "QuotaExceeded"
        assert cause.details[0]["code"] == "Inner"

    def test_failure_without_error_has_no_cause(self):
        with pytest.raises(DeploymentFailedError) as exc_info:
            extract_outputs(_result(ProvisioningState.FAILED), "recipe42")
        assert exc_info.value.__cause__ is None
        assert exc_info.value.error_detail is None
