"""Planner limits."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_TIMEOUT_MS = 5000
DEFAULT_MAX_RECURSION = 100


@dataclass(frozen=True)
class PlannerBudgets:
    """
    Hard limits for one planning call.

    max_recursion counts tasks popped from the queue, not methods tried;
    reaching it stops decomposition of cyclic domains.
    """

    max_recursion: int = DEFAULT_MAX_RECURSION
    timeout_ms: int = DEFAULT_TIMEOUT_MS

    def __post_init__(self) -> None:
        if self.max_recursion <= 0:
            raise ValueError("max_recursion must be positive")
        if self.timeout_ms <= 0:
            raise ValueError("timeout_ms must be positive")
