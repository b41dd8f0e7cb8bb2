"""Error taxonomy for recipe deployments.

Every failure a caller can see is a ``RecipeError``.  The engine sets
``stage`` on the error before re-raising it, so the message always names the
pipeline stage that failed:

    InvalidReferenceError     malformed "repository:tag" input
    RegistryError             registry or transport fault
    ManifestDecodeError       manifest is not a usable artifact manifest
    TemplateDecodeError       template bytes are not a JSON object
    DeploymentError           submission / polling / result retrieval fault
    DeploymentFailedError     backend finished with a non-success state
    RecipeCancelledError      caller cancelled the call
    RecipeTimeoutError        caller deadline expired
"""

from __future__ import annotations

from typing import Any


class RecipeError(RuntimeError):
    """Base class for every error raised by the recipe deployment pipeline."""

    #: Whether re-running the same call may succeed.
    retryable: bool = False

    def __init__(self, message: str, *, stage: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.stage = stage

    def __str__(self) -> str:
        if self.stage:
            return f"{self.stage}: {self.message}"
        return self.message


class InvalidReferenceError(RecipeError, ValueError):
    """The template reference is empty or not of the form ``repository:tag``."""


class RegistryError(RecipeError):
    """The registry could not resolve or deliver content."""

    retryable = True


class ManifestDecodeError(RecipeError):
    """The manifest is malformed; fetching the same tag again will not help."""


class TemplateDecodeError(RecipeError):
    """The template blob is not a JSON object."""


class DeploymentError(RecipeError):
    """The deployment backend rejected the submission or could not be polled."""

    retryable = True

    def __init__(
        self,
        message: str,
        *,
        deployment_name: str | None = None,
        stage: str | None = None,
    ) -> None:
        super().__init__(message, stage=stage)
        self.deployment_name = deployment_name


class ProvisioningError(RuntimeError):
    """Structured error reported by the backend for a failed deployment.

    Raised only as the ``__cause__`` of a ``DeploymentFailedError``.
    """

    def __init__(self, code: str, message: str, details: list[Any] | None = None) -> None:
        super().__init__(f"{code}: {message}" if code else message)
        self.code = code
        self.details = details or []


class DeploymentFailedError(DeploymentError):
    """The deployment reached a terminal state other than ``Succeeded``."""

    retryable = False

    def __init__(
        self,
        deployment_name: str,
        *,
        provisioning_state: str = "Failed",
        error_detail: Any = None,
        stage: str | None = None,
    ) -> None:
        super().__init__(
            f"failed to deploy recipe - {deployment_name} (state={provisioning_state})",
            deployment_name=deployment_name,
            stage=stage,
        )
        self.provisioning_state = provisioning_state
        self.error_detail = error_detail


class RecipeCancelledError(RecipeError):
    """The caller cancelled the operation before it finished.

    ``deployment_name`` is set when a deployment had already been submitted;
    the backend keeps tracking it, nothing is rolled back.
    """

    def __init__(
        self,
        message: str,
        *,
        deployment_name: str | None = None,
        stage: str | None = None,
    ) -> None:
        super().__init__(message, stage=stage)
        self.deployment_name = deployment_name


class RecipeTimeoutError(RecipeCancelledError, TimeoutError):
    """The caller's deadline expired before the operation finished."""

    retryable = True
