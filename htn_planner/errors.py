"""Exception hierarchy for domain construction and planning."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Iterable, Optional

if TYPE_CHECKING:
    from .planner.trace import DiagnosticNode


class HTNError(Exception):
    """Base class for all planner errors."""


class DomainValidationError(HTNError):
    """Raised when a domain (or the roots requested from it) is malformed."""

    def __init__(self, errors: Iterable[str] | str) -> None:
        if isinstance(errors, str):
            errors = [errors]
        self.errors: list[str] = list(errors)
        super().__init__("; ".join(self.errors) or "Invalid domain")


class RootTaskError(DomainValidationError):
    """Explicit root task list does not fit the domain."""


class PlanningErrorKind(str, Enum):
    """Terminal outcomes of a planning call."""

    NO_APPLICABLE_METHOD = "no_applicable_method"
    PRECONDITION_NOT_MET = "precondition_not_met"
    WORKFLOW_NOT_PERMITTED = "workflow_not_permitted"
    RECURSION_LIMIT_EXCEEDED = "recursion_limit_exceeded"
    TASK_FAILURE = "task_failure"
    PLANNING_TIMEOUT = "planning_timeout"
    UNKNOWN_TASK = "unknown_task"


class PlanningError(HTNError):
    """
    A planning call ended without a plan.

    Every kind is terminal for the call; retrying is up to the caller.
    The partial diagnostic tree is attached once the planner has one.
    """

    kind: PlanningErrorKind = PlanningErrorKind.TASK_FAILURE

    def __init__(
        self,
        message: str,
        task_name: Optional[str] = None,
        tree: Optional["DiagnosticNode"] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.task_name = task_name
        self.tree = tree

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "task": self.task_name,
        }


class NoApplicableMethod(PlanningError):
    kind = PlanningErrorKind.NO_APPLICABLE_METHOD


class PreconditionNotMet(PlanningError):
    kind = PlanningErrorKind.PRECONDITION_NOT_MET


class WorkflowNotPermitted(PlanningError):
    kind = PlanningErrorKind.WORKFLOW_NOT_PERMITTED


class RecursionLimitExceeded(PlanningError):
    kind = PlanningErrorKind.RECURSION_LIMIT_EXCEEDED


class TaskFailure(PlanningError):
    """A condition, effect, or workflow raised, or the planning worker died."""

    kind = PlanningErrorKind.TASK_FAILURE


class PlanningTimeout(PlanningError):
    kind = PlanningErrorKind.PLANNING_TIMEOUT


class UnknownTask(PlanningError):
    """A task name did not resolve in the domain."""

    kind = PlanningErrorKind.UNKNOWN_TASK
