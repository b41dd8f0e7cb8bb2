"""Cooperative cancellation and deadlines for blocking pipeline steps.

A ``CancellationToken`` is handed down from the caller into every blocking
step (registry reads, the deployment wait).  Steps call
``raise_if_cancelled()`` at their yield points and sleep through ``wait()``
so that ``cancel()`` from another thread interrupts them promptly.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable

from recipeforge.errors import RecipeCancelledError, RecipeTimeoutError


class CancellationToken:
    """Thread-safe cancel flag with an optional monotonic deadline.

    Parameters
    ----------
    timeout:
        Seconds from construction until the deadline expires.  ``None``
        means no deadline; the token can still be cancelled explicitly.
    clock:
        Monotonic clock, injectable for tests.
    """

    def __init__(
        self,
        timeout: float | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._event = threading.Event()
        self._clock = clock
        self._deadline = None if timeout is None else clock() + timeout
        self._reason = ""

    @classmethod
    def none(cls) -> "CancellationToken":
        """A token that never expires unless cancelled."""
        return cls()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def cancel(self, reason: str = "cancelled by caller") -> None:
        self._reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def expired(self) -> bool:
        return self._deadline is not None and self._clock() >= self._deadline

    def remaining(self) -> float | None:
        """Seconds until the deadline, or None without a deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - self._clock())

    # ------------------------------------------------------------------
    # Yield points
    # ------------------------------------------------------------------

    def raise_if_cancelled(self, *, deployment_name: str | None = None) -> None:
        """Raise RecipeCancelledError / RecipeTimeoutError if the call must stop."""
        if self.cancelled:
            raise RecipeCancelledError(self._reason, deployment_name=deployment_name)
        if self.expired:
            raise RecipeTimeoutError("deadline expired", deployment_name=deployment_name)

    def wait(self, seconds: float, *, deployment_name: str | None = None) -> None:
        """Sleep up to ``seconds``, waking early on cancel; raise if stopped."""
        self.raise_if_cancelled(deployment_name=deployment_name)
        remaining = self.remaining()
        if remaining is not None:
            seconds = min(seconds, remaining)
        self._event.wait(max(0.0, seconds))
        self.raise_if_cancelled(deployment_name=deployment_name)
