"""HTN domain model: tasks, methods, and the immutable domain registry."""

from .builder import BuildResult, DomainBuilder
from .domain import Domain
from .merge import merge_domains
from .task import (
    CompoundTask,
    Condition,
    Effect,
    Method,
    PrimitiveTask,
    Task,
    Workflow,
)
from .validation import validate

__all__ = [
    "BuildResult",
    "CompoundTask",
    "Condition",
    "Domain",
    "DomainBuilder",
    "Effect",
    "Method",
    "PrimitiveTask",
    "Task",
    "Workflow",
    "merge_domains",
    "validate",
]
