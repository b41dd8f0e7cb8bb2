"""Recipe pipeline stage models: deterministic, linear transitions."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from recipeforge.models.reference import TemplateReference


class RecipeStage(str, Enum):
    """Progress of a single recipe deployment."""

    IDLE = "idle"
    REFERENCE_PARSED = "reference_parsed"
    MANIFEST_RESOLVED = "manifest_resolved"
    BLOB_FETCHED = "blob_fetched"
    TEMPLATE_DECODED = "template_decoded"
    DEPLOYMENT_SUBMITTED = "deployment_submitted"
    DEPLOYMENT_TERMINAL = "deployment_terminal"
    OUTPUTS_EXTRACTED = "outputs_extracted"
    FAILED = "failed"


# The happy path, in order.
PIPELINE_ORDER: list[RecipeStage] = [
    RecipeStage.IDLE,
    RecipeStage.REFERENCE_PARSED,
    RecipeStage.MANIFEST_RESOLVED,
    RecipeStage.BLOB_FETCHED,
    RecipeStage.TEMPLATE_DECODED,
    RecipeStage.DEPLOYMENT_SUBMITTED,
    RecipeStage.DEPLOYMENT_TERMINAL,
    RecipeStage.OUTPUTS_EXTRACTED,
]

# Valid transitions: enforced structurally by StageMachine.
# Every non-terminal stage may fail; OUTPUTS_EXTRACTED and FAILED are terminal.
VALID_TRANSITIONS: dict[RecipeStage, set[RecipeStage]] = {
    stage: {nxt, RecipeStage.FAILED}
    for stage, nxt in zip(PIPELINE_ORDER, PIPELINE_ORDER[1:])
}
VALID_TRANSITIONS[RecipeStage.OUTPUTS_EXTRACTED] = set()
VALID_TRANSITIONS[RecipeStage.FAILED] = set()


class StageTransition(BaseModel):
    """Records a single stage transition for the run history."""

    model_config = ConfigDict(frozen=True)

    from_stage: RecipeStage
    to_stage: RecipeStage
    at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    detail: str = ""


class RecipeDeployment(BaseModel):
    """Outcome of one successful recipe deployment."""

    model_config = ConfigDict(frozen=True)

    reference: TemplateReference
    layer_digest: str
    deployment_name: str
    output_resources: list[str]
    transitions: list[StageTransition] = []
