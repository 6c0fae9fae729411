"""Immutable HTN domain registry."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional

from .task import CompoundTask, PrimitiveTask, Task, WorkflowRef


def _empty() -> Mapping[str, Any]:
    return MappingProxyType({})


@dataclass(frozen=True)
class Domain:
    """
    Validated registry of tasks, root names, callbacks and permitted workflows.

    Built once through DomainBuilder and then shared read-only; tasks refer to
    each other by name so cyclic domains need no special representation.
    """

    name: str
    tasks: Mapping[str, Task] = field(default_factory=_empty)
    root_tasks: tuple[str, ...] = ()
    allowed_workflows: Mapping[str, WorkflowRef] = field(default_factory=_empty)
    callbacks: Mapping[str, Callable[[Mapping[str, Any]], Any]] = field(default_factory=_empty)

    def __post_init__(self) -> None:
        # Freeze whatever mappings the caller handed in
        for attr in ("tasks", "allowed_workflows", "callbacks"):
            value = getattr(self, attr)
            if not isinstance(value, MappingProxyType):
                object.__setattr__(self, attr, MappingProxyType(dict(value)))
        object.__setattr__(self, "root_tasks", tuple(dict.fromkeys(self.root_tasks)))

    def get_task(self, name: str) -> Optional[Task]:
        return self.tasks.get(name)

    def is_compound(self, name: str) -> bool:
        return isinstance(self.tasks.get(name), CompoundTask)

    def resolve_workflow(self, workflow: WorkflowRef) -> Optional[WorkflowRef]:
        """
        Map a primitive's workflow reference onto the allow-list.

        A reference is permitted either by alias (a registered name) or by
        equality with a registered workflow, so two accesses of the same bound
        method match. Returns None when not permitted.
        """
        if isinstance(workflow, str):
            return self.allowed_workflows.get(workflow)
        for allowed in self.allowed_workflows.values():
            if allowed == workflow:
                return allowed
        return None

    def workflow_alias(self, workflow: WorkflowRef) -> Optional[str]:
        for alias, allowed in self.allowed_workflows.items():
            if allowed == workflow:
                return alias
        return None

    def primitive_tasks(self) -> list[PrimitiveTask]:
        return [t for t in self.tasks.values() if isinstance(t, PrimitiveTask)]

    def compound_tasks(self) -> list[CompoundTask]:
        return [t for t in self.tasks.values() if isinstance(t, CompoundTask)]

    def replace_task(self, name: str, task: Task) -> Domain:
        """Return a copy of the domain with one task swapped out (no validation)."""
        if name not in self.tasks:
            raise KeyError(f"Task '{name}' not found")
        tasks = dict(self.tasks)
        tasks[name] = task
        return dataclasses.replace(self, tasks=tasks)

    def __repr__(self) -> str:
        return f"Domain({self.name!r}, tasks={len(self.tasks)}, roots={list(self.root_tasks)})"
