"""recipeforge: deploy infrastructure recipes stored in an artifact registry.

Pulls a template by ``repository:tag`` (tag -> manifest -> layer -> blob),
submits it to a provisioning backend as an incremental deployment, waits
for a terminal state and returns the ids of the resources it produced.
"""

__version__ = "0.1.0"
__description__ = "Recipe deployment engine: registry-backed templates to provisioned resources"

from recipeforge.core.engine import RecipeDeploymentEngine, RecipeHandler
from recipeforge.errors import (
    DeploymentError,
    DeploymentFailedError,
    InvalidReferenceError,
    ManifestDecodeError,
    RecipeCancelledError,
    RecipeError,
    RecipeTimeoutError,
    RegistryError,
    TemplateDecodeError,
)

__all__ = [
    "RecipeDeploymentEngine",
    "RecipeHandler",
    "RecipeError",
    "InvalidReferenceError",
    "RegistryError",
    "ManifestDecodeError",
    "TemplateDecodeError",
    "DeploymentError",
    "DeploymentFailedError",
    "RecipeCancelledError",
    "RecipeTimeoutError",
    "__version__",
]
