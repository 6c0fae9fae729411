"""Hierarchical Task Network planning and execution engine."""

__version__ = "0.1.0"

from .domain import (
    CompoundTask,
    Domain,
    DomainBuilder,
    Method,
    PrimitiveTask,
    merge_domains,
)
from .errors import (
    DomainValidationError,
    HTNError,
    NoApplicableMethod,
    PlanningError,
    PlanningErrorKind,
    PlanningTimeout,
    PreconditionNotMet,
    RecursionLimitExceeded,
    RootTaskError,
    TaskFailure,
    UnknownTask,
    WorkflowNotPermitted,
)
from .planner import (
    BackgroundDispatcher,
    HTNPlanner,
    MethodTraversalRecord,
    PlannerBudgets,
    PlannerConfig,
    PlannerResult,
    PlanOptions,
    PlanStep,
    decompose,
    plan,
)

__all__ = [
    "BackgroundDispatcher",
    "CompoundTask",
    "Domain",
    "DomainBuilder",
    "DomainValidationError",
    "HTNError",
    "HTNPlanner",
    "Method",
    "MethodTraversalRecord",
    "NoApplicableMethod",
    "PlanOptions",
    "PlanStep",
    "PlannerBudgets",
    "PlannerConfig",
    "PlannerResult",
    "PlanningError",
    "PlanningErrorKind",
    "PlanningTimeout",
    "PreconditionNotMet",
    "PrimitiveTask",
    "RecursionLimitExceeded",
    "RootTaskError",
    "TaskFailure",
    "UnknownTask",
    "WorkflowNotPermitted",
    "decompose",
    "merge_domains",
    "plan",
]
