"""Recipe deployment engine: the central coordinator for recipe deployments.

Chains the artifact locator, manifest resolver, blob fetcher, template
decoder, deployment driver and result extractor into one call:

    deploy_recipe("myregistry.example/recipes/rabbitmq:v1", sub, rg)
        -> ["/subscriptions/.../providers/.../bus1", ...]

Each stage is a single fallible step tracked by a StageMachine.  The first
failure short-circuits the rest; a RecipeError keeps its type and gains a
stage label, and any other exception is wrapped in a labelled RecipeError.
Nothing is retried here and no partial result is returned.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from recipeforge.bridge.deployments import DeploymentsClient
from recipeforge.bridge.registry import RegistryClient, Repository
from recipeforge.config import EngineSettings
from recipeforge.core.blobs import fetch_blob
from recipeforge.core.cancellation import CancellationToken
from recipeforge.core.driver import DeploymentDriver, NameGenerator, name_generator_for
from recipeforge.core.manifest import resolve_layer_digest
from recipeforge.core.outputs import extract_outputs
from recipeforge.core.reference import parse_reference
from recipeforge.core.stage_machine import StageMachine
from recipeforge.core.template import decode_template
from recipeforge.errors import RecipeError, RegistryError
from recipeforge.models.stages import RecipeDeployment, RecipeStage

logger = logging.getLogger(__name__)

# What the engine is doing while heading into each stage; used as the error label.
STAGE_ACTIONS: dict[RecipeStage, str] = {
    RecipeStage.REFERENCE_PARSED: "parse template reference",
    RecipeStage.MANIFEST_RESOLVED: "resolve recipe manifest",
    RecipeStage.BLOB_FETCHED: "fetch recipe template",
    RecipeStage.TEMPLATE_DECODED: "decode recipe template",
    RecipeStage.DEPLOYMENT_SUBMITTED: "submit deployment",
    RecipeStage.DEPLOYMENT_TERMINAL: "wait for deployment",
    RecipeStage.OUTPUTS_EXTRACTED: "extract output resources",
}


class RecipeHandler(Protocol):
    """What a resource-provider controller calls to provision a recipe."""

    def deploy_recipe(
        self, template_reference: str, subscription_id: str, resource_group_name: str
    ) -> list[str]: ...


class RecipeDeploymentEngine:
    """Deploys recipe templates pulled from a registry.

    Holds no per-call state, so one engine can serve concurrent calls.

    Parameters
    ----------
    registry:
        Hands out repository handles for template references.
    deployments:
        The provisioning backend.
    settings:
        Poll interval, default deadline and naming strategy.
    name_generator:
        Overrides the settings-selected deployment name generator.
    """

    def __init__(
        self,
        registry: RegistryClient,
        deployments: DeploymentsClient,
        *,
        settings: EngineSettings | None = None,
        name_generator: NameGenerator | None = None,
    ) -> None:
        self.settings = settings or EngineSettings()
        self._registry = registry
        self._driver = DeploymentDriver(
            deployments,
            name_generator=name_generator
            or name_generator_for(
                self.settings.deployment_name_strategy,
                self.settings.deployment_name_prefix,
            ),
            poll_interval=self.settings.poll_interval_seconds,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def deploy_recipe(
        self,
        template_reference: str,
        subscription_id: str,
        resource_group_name: str,
        *,
        parameters: dict[str, Any] | None = None,
        token: CancellationToken | None = None,
    ) -> list[str]:
        """Deploy the recipe at ``template_reference`` and return output resource ids."""
        return self.run(
            template_reference,
            subscription_id,
            resource_group_name,
            parameters=parameters,
            token=token,
        ).output_resources

    def run(
        self,
        template_reference: str,
        subscription_id: str,
        resource_group_name: str,
        *,
        parameters: dict[str, Any] | None = None,
        token: CancellationToken | None = None,
    ) -> RecipeDeployment:
        """Deploy a recipe and return the detailed outcome.

        Lifecycle:
        1. Parse ``repository:tag``
        2. Resolve the tag to the template layer digest
        3. Fetch and verify the layer blob
        4. Decode it as a JSON template
        5. Submit an incremental deployment and wait for a terminal state
        6. Extract output resource ids (or raise DeploymentFailedError)
        """
        token = token or self._default_token()
        machine = StageMachine(template_reference)
        attempting = RecipeStage.REFERENCE_PARSED

        def _submitted(name: str) -> None:
            nonlocal attempting
            machine.transition(RecipeStage.DEPLOYMENT_SUBMITTED, name)
            attempting = RecipeStage.DEPLOYMENT_TERMINAL

        try:
            reference = parse_reference(template_reference)
            machine.transition(attempting, str(reference))

            attempting = RecipeStage.MANIFEST_RESOLVED
            token.raise_if_cancelled()
            repo = self._repository(reference.repository)
            layer_digest = resolve_layer_digest(repo, reference.tag, token=token)
            machine.transition(attempting, layer_digest)

            attempting = RecipeStage.BLOB_FETCHED
            token.raise_if_cancelled()
            data = fetch_blob(repo, layer_digest, token=token)
            machine.transition(attempting, f"{len(data)} bytes")

            attempting = RecipeStage.TEMPLATE_DECODED
            template = decode_template(data)
            machine.transition(attempting)

            attempting = RecipeStage.DEPLOYMENT_SUBMITTED
            deployment_name, result = self._driver.submit_and_wait(
                template,
                subscription_id,
                resource_group_name,
                parameters=parameters,
                token=token,
                on_submitted=_submitted,
            )
            machine.transition(
                RecipeStage.DEPLOYMENT_TERMINAL, result.provisioning_state.value
            )

            attempting = RecipeStage.OUTPUTS_EXTRACTED
            output_resources = extract_outputs(result, deployment_name)
            machine.transition(attempting, f"{len(output_resources)} resources")
        except RecipeError as exc:
            if exc.stage is None:
                exc.stage = STAGE_ACTIONS[attempting]
            machine.fail(exc.message)
            raise
        except Exception as exc:
            machine.fail(str(exc))
            raise RecipeError(
                f"unexpected failure: {exc}", stage=STAGE_ACTIONS[attempting]
            ) from exc

        return RecipeDeployment(
            reference=reference,
            layer_digest=layer_digest,
            deployment_name=deployment_name,
            output_resources=output_resources,
            transitions=machine.history,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _default_token(self) -> CancellationToken:
        return CancellationToken(self.settings.deployment_timeout_seconds)

    def _repository(self, name: str) -> Repository:
        try:
            return self._registry.repository(name)
        except RecipeError:
            raise
        except Exception as exc:
            raise RegistryError(f"failed to create client to registry {name}: {exc}") from exc
