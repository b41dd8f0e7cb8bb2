"""Tests for the in-process simulated deployment backend."""

from __future__ import annotations

import pytest

from recipeforge.bridge.simulated_backend import (
    InvalidTemplateError,
    SimulatedDeploymentBackend,
    plan_output_resources,
)
from recipeforge.models.deployment import (
    DeploymentRequest,
    DeploymentScope,
    ProvisioningState,
)

from _doubles import RESOURCE_GROUP, SUBSCRIPTION_ID

RG_ID = f"/subscriptions/{SUBSCRIPTION_ID}/resourceGroups/{RESOURCE_GROUP}"


def _request(template: dict, name: str = "recipe5", **parameters) -> DeploymentRequest:
    return DeploymentRequest(
        name=name,
        scope=DeploymentScope(subscription_id=SUBSCRIPTION_ID, resource_group=RESOURCE_GROUP),
        template=template,
        parameters=parameters,
    )


class TestPlanOutputResources:
    def test_default_parameter_value(self, template: dict):
        assert plan_output_resources(_request(template)) == [
            f"{RG_ID}/providers/Microsoft.ServiceBus/namespaces/bus1"
        ]

    def test_parameter_override(self, template: dict):
        ids = plan_output_resources(_request(template, namespace="orders"))
        assert ids[0].endswith("/namespaces/orders")

    def test_template_order_preserved(self):
        template = {
            "resources": [
                {"type": "Microsoft.Storage/storageAccounts", "name": "zeta"},
                {"type": "Microsoft.Cache/redis", "name": "alpha"},
            ]
        }
        ids = plan_output_resources(_request(template))
        assert [i.rsplit("/", 1)[1] for i in ids] == ["zeta", "alpha"]

    def test_missing_parameter(self):
        template = {"resources": [{"type": "T/x", "name": "[parameters('nope')]"}]}
        with pytest.raises(InvalidTemplateError, match="nope") as exc_info:
            plan_output_resources(_request(template))
        assert exc_info.value.target == "nope"

    def test_resources_must_be_list(self):
        with pytest.raises(InvalidTemplateError):
            plan_output_resources(_request({"resources": {}}))


class TestSimulatedBackend:
    def test_runs_to_success(self, template: dict):
        backend = SimulatedDeploymentBackend(polls_to_complete=2)
        poller = backend.begin_create_or_update(_request(template))
        assert poller.state == ProvisioningState.ACCEPTED
        poller.refresh()
        assert poller.state == ProvisioningState.RUNNING
        poller.refresh()
        assert poller.done()
        result = poller.result()
        assert result.succeeded
        assert result.name == "recipe5"
        assert len(result.output_resources) == 1

    def test_immediate_completion(self, template: dict):
        poller = SimulatedDeploymentBackend(polls_to_complete=0).begin_create_or_update(
            _request(template)
        )
        assert poller.done()

    def test_result_before_done(self, template: dict):
        poller = SimulatedDeploymentBackend(polls_to_complete=3).begin_create_or_update(
            _request(template)
        )
        with pytest.raises(RuntimeError):
            poller.result()

    def test_invalid_template_fails_deployment(self):
        poller = SimulatedDeploymentBackend(polls_to_complete=0).begin_create_or_update(
            _request({"parameters": {}})
        )
        result = poller.result()
        assert result.provisioning_state == ProvisioningState.FAILED
        assert result.error.code == "InvalidTemplate"

    def test_outputs_copied(self, template: dict):
        template["outputs"] = {"endpoint": {"type": "string", "value": "amqp://bus1"}}
        poller = SimulatedDeploymentBackend(polls_to_complete=0).begin_create_or_update(
            _request(template)
        )
        assert poller.result().outputs["endpoint"]["value"] == "amqp://bus1"

    def test_submissions_recorded(self, template: dict):
        backend = SimulatedDeploymentBackend()
        backend.begin_create_or_update(_request(template, name="a"))
        backend.begin_create_or_update(_request(template, name="b"))
        assert [r.name for r in backend.submissions] == ["a", "b"]

    def test_retry_after_hint(self, template: dict):
        poller = SimulatedDeploymentBackend(retry_after=None).begin_create_or_update(
            _request(template)
        )
        assert poller.retry_after is None
