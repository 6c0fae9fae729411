"""Domain validation checks run by DomainBuilder.build()."""

from __future__ import annotations

from typing import Any, Callable, Iterable

from .domain import Domain
from .task import CompoundTask, Effect, PrimitiveTask


def validate(domain: Domain) -> list[str]:
    """
    Run every check and return the collected error messages.

    An empty list means the domain is safe to plan against.
    """
    errors: list[str] = []
    for check in CHECKS:
        errors.extend(check(domain))
    return errors


def validate_non_empty(domain: Domain) -> list[str]:
    if not domain.tasks:
        return ["Domain must contain at least one task"]
    return []


def validate_subtasks(domain: Domain) -> list[str]:
    """Every method subtask must name a task in the domain."""
    errors = []
    for task in domain.compound_tasks():
        for index, method in enumerate(task.methods):
            for subtask in method.subtasks:
                if subtask not in domain.tasks:
                    errors.append(
                        f"Subtask '{subtask}' of '{task.name}' ({method.label(index)}) "
                        "does not refer to a valid task"
                    )
    return errors


def validate_allowed_workflows(domain: Domain) -> list[str]:
    """Every primitive must reference a workflow registered with allow()."""
    errors = []
    for task in domain.primitive_tasks():
        if domain.resolve_workflow(task.workflow) is None:
            errors.append(
                f"Workflow {_describe(task.workflow)} of '{task.name}' is not allowed"
            )
    return errors


def validate_workflow_interface(domain: Domain) -> list[str]:
    errors = []
    for alias, workflow in domain.allowed_workflows.items():
        if not (callable(getattr(workflow, "run", None)) or callable(workflow)):
            errors.append(f"Workflow '{alias}' is neither callable nor implements run()")
    return errors


def validate_root_tasks(domain: Domain) -> list[str]:
    errors = []
    for name in domain.root_tasks:
        task = domain.tasks.get(name)
        if task is None:
            errors.append(f"Root task '{name}' is not defined")
        elif not isinstance(task, CompoundTask):
            errors.append(f"Root task '{name}' must be a compound task")
    return errors


def validate_conditions(domain: Domain) -> list[str]:
    """Conditions must be well-formed and named callbacks must exist."""
    errors = []
    for owner, conditions in _all_conditions(domain):
        for condition in conditions:
            if isinstance(condition, str):
                if condition not in domain.callbacks:
                    errors.append(f"Unknown callback '{condition}' used by '{owner}'")
            elif not (isinstance(condition, bool) or _is_predicate(condition)):
                errors.append(f"Invalid condition {condition!r} in '{owner}'")
    return errors


def validate_effects(domain: Domain) -> list[str]:
    errors = []
    for task in domain.primitive_tasks():
        for effect in task.effects:
            if not (isinstance(effect, Effect) or callable(effect)):
                errors.append(f"Invalid effect {effect!r} in '{task.name}'")
    return errors


def validate_callbacks(domain: Domain) -> list[str]:
    errors = []
    for name, fn in domain.callbacks.items():
        if not callable(fn):
            errors.append(f"Callback '{name}' is not callable")
        if name in domain.tasks:
            errors.append(f"Callback '{name}' conflicts with a task of the same name")
    return errors


CHECKS: tuple[Callable[[Domain], list[str]], ...] = (
    validate_non_empty,
    validate_subtasks,
    validate_allowed_workflows,
    validate_workflow_interface,
    validate_root_tasks,
    validate_conditions,
    validate_effects,
    validate_callbacks,
)


def _all_conditions(domain: Domain) -> Iterable[tuple[str, tuple[Any, ...]]]:
    for task in domain.tasks.values():
        if isinstance(task, CompoundTask):
            for index, method in enumerate(task.methods):
                yield f"{task.name}.{method.label(index)}", method.conditions
        elif isinstance(task, PrimitiveTask):
            yield task.name, task.preconditions


def _is_predicate(value: Any) -> bool:
    return callable(getattr(value, "holds", None)) or callable(value)


def _describe(workflow: Any) -> str:
    if isinstance(workflow, str):
        return f"'{workflow}'"
    return f"'{getattr(workflow, '__name__', repr(workflow))}'"
