"""Planner result types."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, NamedTuple, Optional

from ..errors import PlanningError
from .background import BackgroundHandle
from .mtr import MethodTraversalRecord
from .trace import DiagnosticNode


class PlanStep(NamedTuple):
    """One plan entry: the workflow to run and the parameters to run it with."""

    workflow: Any
    params: Mapping[str, Any]


@dataclass
class DecompositionResult:
    """Successful outcome of decompose()."""

    plan: tuple[PlanStep, ...]
    world_state: dict[str, Any]
    mtr: MethodTraversalRecord
    tree: DiagnosticNode
    steps: int = 0
    background: tuple[BackgroundHandle, ...] = ()


@dataclass
class PlannerStats:
    """Statistics from one planning call."""

    tasks_processed: int = 0
    background_dispatched: int = 0
    elapsed_ms: int = 0
    # First decision point where the new MTR differs from current_plan_mtr
    mtr_diverged_at: Optional[int] = None


@dataclass
class PlannerResult:
    """Final result of plan(). ``tree`` is only populated in debug mode."""

    success: bool = True
    plan: tuple[PlanStep, ...] = ()
    mtr: MethodTraversalRecord = field(default_factory=MethodTraversalRecord)
    world_state: dict[str, Any] = field(default_factory=dict)
    tree: Optional[DiagnosticNode] = None
    error: Optional[PlanningError] = None
    stats: PlannerStats = field(default_factory=PlannerStats)

    def raise_for_error(self) -> PlannerResult:
        """Re-raise the planning error, if any; returns self otherwise."""
        if self.error is not None:
            raise self.error
        return self
