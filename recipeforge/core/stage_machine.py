"""Deterministic recipe stage machine.

Enforces:
- Valid stage transitions only (VALID_TRANSITIONS table)
- A single linear path from IDLE to OUTPUTS_EXTRACTED
- FAILED reachable from every non-terminal stage
- Every transition recorded in the run history
"""

from __future__ import annotations

import logging

from recipeforge.models.stages import VALID_TRANSITIONS, RecipeStage, StageTransition

logger = logging.getLogger(__name__)


class InvalidTransitionError(RuntimeError):
    """Raised when a requested stage transition is not valid."""


class StageMachine:
    """Tracks one recipe deployment through its stages.

    Parameters
    ----------
    run_label:
        Included in log lines to tell concurrent runs apart.
    """

    def __init__(self, run_label: str = "") -> None:
        self._label = run_label
        self._current = RecipeStage.IDLE
        self._history: list[StageTransition] = []

    @property
    def current(self) -> RecipeStage:
        return self._current

    @property
    def history(self) -> list[StageTransition]:
        """Snapshot of the transitions recorded so far."""
        return list(self._history)

    def transition(self, target: RecipeStage, detail: str = "") -> StageTransition:
        """Move to ``target``, recording the transition.

        Raises InvalidTransitionError if the move is not allowed from the
        current stage.
        """
        allowed = VALID_TRANSITIONS.get(self._current, set())
        if target not in allowed:
            raise InvalidTransitionError(
                f"Cannot transition from {self._current.value} to {target.value}. "
                f"Allowed: {sorted(s.value for s in allowed)}"
            )
        record = StageTransition(from_stage=self._current, to_stage=target, detail=detail)
        self._history.append(record)
        self._current = target

        if target == RecipeStage.FAILED:
            logger.warning(
                "recipe %s: %s -> failed (%s)", self._label, record.from_stage.value, detail
            )
        else:
            logger.info("recipe %s: %s -> %s", self._label, record.from_stage.value, target.value)
        return record

    def fail(self, detail: str = "") -> StageTransition:
        """Transition to FAILED from wherever the run is."""
        return self.transition(RecipeStage.FAILED, detail)
