"""Task definitions for the HTN domain model."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional, Protocol, Sequence, Union, runtime_checkable


@runtime_checkable
class Condition(Protocol):
    """Predicate over world state. Must not mutate the state it is given."""

    def holds(self, state: Mapping[str, Any]) -> bool:
        ...


@runtime_checkable
class Effect(Protocol):
    """Pure world-state transform: returns the next state."""

    def apply(self, state: Mapping[str, Any]) -> Mapping[str, Any]:
        ...


class Workflow(Protocol):
    """Executable handle invoked for a primitive task."""

    def run(self, params: Mapping[str, Any]) -> Any:
        ...


# A condition may also be a literal, the name of a domain callback, or a bare
# callable taking the state.
ConditionLike = Union[bool, str, Condition, Callable[[Mapping[str, Any]], bool]]
EffectLike = Union[Effect, Callable[[Mapping[str, Any]], Mapping[str, Any]]]
WorkflowRef = Any


def _freeze(params: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    return MappingProxyType(dict(params or {}))


@dataclass(frozen=True)
class Method:
    """
    One ordered alternative for decomposing a compound task.

    Conditions are a conjunction; an empty list always matches, which is how
    fallback methods are written. Subtask names are resolved against the
    owning domain at decomposition time.
    """

    subtasks: tuple[str, ...] = ()
    conditions: tuple[ConditionLike, ...] = ()
    name: Optional[str] = None

    def label(self, index: int) -> str:
        """Display name used in diagnostics."""
        return self.name or f"method{index + 1}"

    @classmethod
    def create(
        cls,
        subtasks: Sequence[str] = (),
        conditions: Sequence[ConditionLike] = (),
        name: Optional[str] = None,
    ) -> Method:
        if isinstance(subtasks, str):
            raise TypeError("Method subtasks must be a list of task names, not a string")
        return cls(subtasks=tuple(subtasks), conditions=tuple(conditions), name=name)

    @classmethod
    def coerce(cls, value: Any) -> Method:
        """Accept a Method or a plain dict with conditions/subtasks/name."""
        if isinstance(value, Method):
            return value
        if isinstance(value, Mapping):
            unknown = set(value) - {"conditions", "subtasks", "name"}
            if unknown:
                raise TypeError(f"Unknown method keys: {sorted(unknown)}")
            return cls.create(
                subtasks=value.get("subtasks", ()),
                conditions=value.get("conditions", ()),
                name=value.get("name"),
            )
        raise TypeError(f"Invalid method: {value!r}")


@dataclass(frozen=True)
class CompoundTask:
    """Task decomposed by the first applicable method."""

    name: str
    methods: tuple[Method, ...] = ()

    kind = "compound"


@dataclass(frozen=True)
class PrimitiveTask:
    """Leaf task: a workflow invocation guarded by preconditions."""

    name: str
    workflow: WorkflowRef
    params: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    preconditions: tuple[ConditionLike, ...] = ()
    effects: tuple[EffectLike, ...] = ()
    background: bool = False

    kind = "primitive"

    @classmethod
    def create(
        cls,
        name: str,
        workflow: WorkflowRef,
        params: Optional[Mapping[str, Any]] = None,
        preconditions: Sequence[ConditionLike] = (),
        effects: Sequence[EffectLike] = (),
        background: bool = False,
    ) -> PrimitiveTask:
        return cls(
            name=name,
            workflow=workflow,
            params=_freeze(params),
            preconditions=tuple(preconditions),
            effects=tuple(effects),
            background=bool(background),
        )

    def __repr__(self) -> str:
        return f"PrimitiveTask({self.name}, background={self.background})"


Task = Union[CompoundTask, PrimitiveTask]
