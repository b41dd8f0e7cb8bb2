"""Deployment driver: submit a template and wait for a terminal state."""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Callable
from typing import Any

from pydantic import ValidationError

from recipeforge.bridge.deployments import DeploymentPoller, DeploymentsClient
from recipeforge.core.cancellation import CancellationToken
from recipeforge.errors import DeploymentError, RecipeCancelledError, RecipeError
from recipeforge.models.deployment import (
    DeploymentMode,
    DeploymentRequest,
    DeploymentResult,
    DeploymentScope,
)

logger = logging.getLogger(__name__)

DEFAULT_NAME_PREFIX = "recipe"

NameGenerator = Callable[[], str]


def timestamp_name_generator(prefix: str = DEFAULT_NAME_PREFIX) -> NameGenerator:
    """Names of the form ``recipe1700000000123456789`` (prefix + Unix ns)."""

    def _generate() -> str:
        return f"{prefix}{time.time_ns()}"

    return _generate


def uuid_name_generator(prefix: str = DEFAULT_NAME_PREFIX) -> NameGenerator:
    """Names of the form ``recipe-<32 hex>``; unique without relying on the clock."""

    def _generate() -> str:
        return f"{prefix}-{uuid.uuid4().hex}"

    return _generate


def name_generator_for(strategy: str, prefix: str = DEFAULT_NAME_PREFIX) -> NameGenerator:
    """Pick a name generator by settings strategy name."""
    if strategy == "timestamp":
        return timestamp_name_generator(prefix)
    if strategy == "uuid":
        return uuid_name_generator(prefix)
    raise ValueError(f"Unknown deployment name strategy: {strategy}")


def _describe_validation(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in error['loc']) or 'request'}: {error['msg']}"
        for error in exc.errors()
    )


def _poll_call(name: str, action: str, call: Callable[[], Any]) -> Any:
    try:
        return call()
    except RecipeError:
        raise
    except Exception as exc:
        raise DeploymentError(
            f"failed to {action} deployment {name}: {exc}", deployment_name=name
        ) from exc


class DeploymentDriver:
    """Submits recipe templates and blocks until provisioning finishes.

    Parameters
    ----------
    client:
        The provisioning backend.
    name_generator:
        Produces a unique deployment name per submission.
    poll_interval:
        Seconds between status refreshes when the backend gives no hint.
    """

    def __init__(
        self,
        client: DeploymentsClient,
        *,
        name_generator: NameGenerator | None = None,
        poll_interval: float = 5.0,
    ) -> None:
        self._client = client
        self._name_generator = name_generator or timestamp_name_generator()
        self._poll_interval = poll_interval

    def _next_name(self) -> str:
        try:
            return self._name_generator()
        except Exception as exc:
            raise DeploymentError(f"failed to generate a deployment name: {exc}") from exc

    def submit_and_wait(
        self,
        template: dict[str, Any],
        subscription_id: str,
        resource_group: str,
        *,
        parameters: dict[str, Any] | None = None,
        token: CancellationToken | None = None,
        on_submitted: Callable[[str], None] | None = None,
    ) -> tuple[str, DeploymentResult]:
        """Deploy ``template`` incrementally and return ``(name, result)``.

        ``on_submitted`` is called with the deployment name as soon as the
        backend accepts the submission.
        """
        token = token or CancellationToken.none()
        name = self._next_name()
        try:
            request = DeploymentRequest(
                name=name,
                scope=DeploymentScope(
                    subscription_id=subscription_id, resource_group=resource_group
                ),
                template=template,
                mode=DeploymentMode.INCREMENTAL,
                parameters=parameters or {},
            )
        except ValidationError as exc:
            raise DeploymentError(
                f"invalid deployment request {name!r}: {_describe_validation(exc)}",
                deployment_name=name or None,
            ) from exc

        token.raise_if_cancelled()
        try:
            poller = self._client.begin_create_or_update(request)
        except RecipeError:
            raise
        except Exception as exc:
            raise DeploymentError(
                f"deployment {name} was rejected: {exc}", deployment_name=name
            ) from exc
        logger.info(
            "Submitted deployment %s to %s (mode=%s)",
            name,
            request.scope.resource_group_id,
            request.mode.value,
        )
        if on_submitted is not None:
            on_submitted(name)

        self._wait_for_completion(poller, name, token)

        try:
            result = poller.result()
        except RecipeError:
            raise
        except Exception as exc:
            raise DeploymentError(
                f"failed to read result of deployment {name}: {exc}", deployment_name=name
            ) from exc
        logger.info(
            "Deployment %s finished with state %s", name, result.provisioning_state.value
        )
        return name, result

    def _wait_for_completion(
        self, poller: DeploymentPoller, name: str, token: CancellationToken
    ) -> None:
        polls = 0
        try:
            while not _poll_call(name, "check status of", poller.done):
                interval = _poll_call(
                    name, "read poll interval of", lambda: poller.retry_after
                )
                token.wait(
                    self._poll_interval if interval is None else interval,
                    deployment_name=name,
                )
                _poll_call(name, "poll", poller.refresh)
                polls += 1
                logger.debug("Polled deployment %s (%d)", name, polls)
        except RecipeCancelledError:
            logger.warning(
                "Stopped waiting for deployment %s after %d polls; "
                "the backend continues to track it",
                name,
                polls,
            )
            raise
