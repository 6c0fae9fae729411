"""Combining domains."""

from __future__ import annotations

import dataclasses

from .domain import Domain
from .task import CompoundTask, Task


def merge_domains(first: Domain, second: Domain) -> Domain:
    """
    Merge two domains into a new one.

    Tasks of ``second`` whose names clash with ``first`` are renamed to
    ``<name>_from_<kind>`` (plus a numeric suffix if that name is taken too)
    and every method of ``second`` that referenced them is rewritten.
    Workflows and callbacks of ``second`` win on alias clashes. Root tasks
    keep declaration order, ``first`` before ``second``.
    """
    taken = set(first.tasks) | set(second.tasks)
    renamed: dict[str, str] = {}
    for name, task in second.tasks.items():
        if name in first.tasks:
            renamed[name] = _free_name(f"{name}_from_{task.kind}", taken)
            taken.add(renamed[name])

    tasks: dict[str, Task] = dict(first.tasks)
    for name, task in second.tasks.items():
        new_name = renamed.get(name, name)
        tasks[new_name] = _rename_references(task, new_name, renamed)

    roots = list(first.root_tasks) + [renamed.get(r, r) for r in second.root_tasks]

    return Domain(
        name=f"{first.name}_merged_{second.name}",
        tasks=tasks,
        root_tasks=tuple(roots),
        allowed_workflows={**first.allowed_workflows, **second.allowed_workflows},
        callbacks={**first.callbacks, **second.callbacks},
    )


def _free_name(candidate: str, taken: set[str]) -> str:
    """First of candidate, candidate_2, candidate_3, ... not already taken."""
    name, suffix = candidate, 2
    while name in taken:
        name = f"{candidate}_{suffix}"
        suffix += 1
    return name


def _rename_references(task: Task, new_name: str, renamed: dict[str, str]) -> Task:
    if isinstance(task, CompoundTask):
        methods = tuple(
            dataclasses.replace(m, subtasks=tuple(renamed.get(s, s) for s in m.subtasks))
            for m in task.methods
        )
        return dataclasses.replace(task, name=new_name, methods=methods)
    return dataclasses.replace(task, name=new_name)
