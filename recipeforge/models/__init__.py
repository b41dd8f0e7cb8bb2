"""recipeforge data models: all Pydantic v2, all frozen (immutable)."""

from recipeforge.models.deployment import (
    BackendErrorDetail,
    DeploymentMode,
    DeploymentRequest,
    DeploymentResult,
    DeploymentScope,
    OutputResource,
    ProvisioningState,
)
from recipeforge.models.reference import TemplateReference
from recipeforge.models.registry import (
    MANIFEST_MEDIA_TYPES,
    OCI_MANIFEST_MEDIA_TYPE,
    TEMPLATE_LAYER_MEDIA_TYPE,
    Descriptor,
)
from recipeforge.models.stages import (
    PIPELINE_ORDER,
    VALID_TRANSITIONS,
    RecipeDeployment,
    RecipeStage,
    StageTransition,
)

__all__ = [
    # reference
    "TemplateReference",
    # registry
    "Descriptor",
    "MANIFEST_MEDIA_TYPES",
    "OCI_MANIFEST_MEDIA_TYPE",
    "TEMPLATE_LAYER_MEDIA_TYPE",
    # deployment
    "BackendErrorDetail",
    "DeploymentMode",
    "DeploymentRequest",
    "DeploymentResult",
    "DeploymentScope",
    "OutputResource",
    "ProvisioningState",
    # stages
    "PIPELINE_ORDER",
    "VALID_TRANSITIONS",
    "RecipeDeployment",
    "RecipeStage",
    "StageTransition",
]
