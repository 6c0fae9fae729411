"""Fluent builder for HTN domains."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional, Sequence

from ..errors import DomainValidationError
from .domain import Domain
from .task import (
    CompoundTask,
    ConditionLike,
    EffectLike,
    Method,
    PrimitiveTask,
    Task,
    WorkflowRef,
)
from .validation import validate

logger = logging.getLogger(__name__)


@dataclass
class BuildResult:
    """Outcome of DomainBuilder.build(): a domain or the reasons there is none."""

    domain: Optional[Domain] = None
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.domain is not None and not self.errors


class DomainBuilder:
    """
    Accumulates tasks, workflows and callbacks, then freezes them into a Domain.

    Usage:
        domain = (
            DomainBuilder("robot")
            .compound("root", [{"conditions": [], "subtasks": ["charge"]}])
            .primitive("charge", Charger, preconditions=[low_battery])
            .allow("Charger", Charger)
            .build_or_raise()
        )

    The first structural error (duplicate name, bad argument) is remembered and
    every later call becomes a no-op, so chains never raise midway; build()
    reports the error.
    """

    def __init__(self, name: str) -> None:
        self.error: Optional[str] = None
        self.name = name
        self._tasks: dict[str, Task] = {}
        self._roots: list[str] = []
        self._workflows: dict[str, WorkflowRef] = {}
        self._callbacks: dict[str, Callable[[Mapping[str, Any]], Any]] = {}

        if not isinstance(name, str) or not name:
            self._fail(f"Domain name must be a non-empty string: {name!r}")

    def compound(self, name: str, methods: Sequence[Any] = ()) -> DomainBuilder:
        """Add a compound task whose methods are tried in declaration order."""
        if not self._check_new_task(name):
            return self
        try:
            normalized = tuple(Method.coerce(m) for m in methods)
        except TypeError as e:
            return self._fail(f"Invalid methods for '{name}': {e}")

        self._tasks[name] = CompoundTask(name=name, methods=normalized)
        logger.debug(f"Added compound task {name} with {len(normalized)} method(s)")
        return self

    def primitive(
        self,
        name: str,
        workflow: WorkflowRef,
        preconditions: Sequence[ConditionLike] = (),
        effects: Sequence[EffectLike] = (),
        background: bool = False,
        params: Optional[Mapping[str, Any]] = None,
    ) -> DomainBuilder:
        """
        Add a primitive task.

        ``workflow`` is an alias registered with allow(), a workflow reference,
        or a ``(workflow, params)`` pair.
        """
        if not self._check_new_task(name):
            return self

        if isinstance(workflow, tuple):
            if len(workflow) != 2 or not isinstance(workflow[1], Mapping):
                return self._fail(f"Invalid workflow for '{name}': {workflow!r}")
            workflow, tuple_params = workflow
            params = {**tuple_params, **(params or {})}

        if workflow is None:
            return self._fail(f"Invalid workflow for '{name}': None")
        if params is not None and not isinstance(params, Mapping):
            return self._fail(f"Invalid params for '{name}': {params!r}")

        self._tasks[name] = PrimitiveTask.create(
            name,
            workflow,
            params=params,
            preconditions=preconditions,
            effects=effects,
            background=background,
        )
        logger.debug(f"Added primitive task {name} (background={background})")
        return self

    def allow(self, alias: str, workflow: WorkflowRef) -> DomainBuilder:
        """Permit a workflow to be referenced by primitive tasks."""
        if self.error:
            return self
        if not isinstance(alias, str) or not alias:
            return self._fail(f"Invalid workflow name: {alias!r}")
        if workflow is None or isinstance(workflow, str):
            return self._fail(f"Invalid workflow reference for '{alias}': {workflow!r}")

        self._workflows[alias] = workflow
        return self

    def root(self, name: str) -> DomainBuilder:
        """Declare a compound task as a default entry point."""
        if self.error:
            return self
        if not isinstance(name, str) or not name:
            return self._fail(f"Invalid task name: {name!r}")
        if name not in self._roots:
            self._roots.append(name)
        return self

    def callback(self, name: str, fn: Callable[[Mapping[str, Any]], Any]) -> DomainBuilder:
        """Register a named predicate that conditions may refer to by name."""
        if self.error:
            return self
        if not isinstance(name, str) or not name:
            return self._fail(f"Invalid callback name: {name!r}")
        if not callable(fn):
            return self._fail(f"Invalid callback function: {fn!r}")

        self._callbacks[name] = fn
        return self

    def build(self, validate_domain: bool = True) -> BuildResult:
        """Freeze the domain; runs the validation suite unless told not to."""
        if self.error:
            return BuildResult(errors=[self.error])

        domain = Domain(
            name=self.name,
            tasks=self._tasks,
            root_tasks=tuple(self._roots),
            allowed_workflows=self._workflows,
            callbacks=self._callbacks,
        )

        if validate_domain:
            errors = validate(domain)
            if errors:
                logger.debug(f"Domain {self.name} failed validation: {errors}")
                return BuildResult(errors=errors)

        return BuildResult(domain=domain)

    def build_or_raise(self, validate_domain: bool = True) -> Domain:
        """Like build() but aborts with DomainValidationError."""
        result = self.build(validate_domain=validate_domain)
        if not result.ok:
            raise DomainValidationError(result.errors)
        return result.domain

    def _check_new_task(self, name: str) -> bool:
        if self.error:
            return False
        if not isinstance(name, str) or not name:
            self._fail(f"Invalid task name: {name!r}")
            return False
        if name in self._tasks:
            self._fail(f"Task name '{name}' already exists in the domain")
            return False
        return True

    def _fail(self, message: str) -> DomainBuilder:
        if self.error is None:
            self.error = message
        return self


# Functional spelling of the builder surface.


def new(name: str) -> DomainBuilder:
    return DomainBuilder(name)


def compound(builder: DomainBuilder, name: str, methods: Sequence[Any] = ()) -> DomainBuilder:
    return builder.compound(name, methods)


def primitive(
    builder: DomainBuilder,
    name: str,
    workflow: WorkflowRef,
    preconditions: Sequence[ConditionLike] = (),
    effects: Sequence[EffectLike] = (),
    background: bool = False,
    params: Optional[Mapping[str, Any]] = None,
) -> DomainBuilder:
    return builder.primitive(name, workflow, preconditions, effects, background, params)


def allow(builder: DomainBuilder, alias: str, workflow: WorkflowRef) -> DomainBuilder:
    return builder.allow(alias, workflow)


def root(builder: DomainBuilder, name: str) -> DomainBuilder:
    return builder.root(name)


def callback(builder: DomainBuilder, name: str, fn: Callable[[Mapping[str, Any]], Any]) -> DomainBuilder:
    return builder.callback(name, fn)


def build(builder: DomainBuilder, validate_domain: bool = True) -> BuildResult:
    return builder.build(validate_domain)


def build_or_raise(builder: DomainBuilder, validate_domain: bool = True) -> Domain:
    return builder.build_or_raise(validate_domain)
