"""Evaluation of conditions, effects and workflow invocations against world state."""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Mapping, Sequence

from ..domain.domain import Domain
from ..domain.task import ConditionLike, EffectLike, WorkflowRef
from ..errors import TaskFailure

logger = logging.getLogger(__name__)


def evaluate_condition(domain: Domain, condition: ConditionLike, state: Mapping[str, Any]) -> bool:
    """Evaluate one condition against a read-only view of the state."""
    if isinstance(condition, bool):
        return condition

    view = MappingProxyType(dict(state))
    if isinstance(condition, str):
        fn = domain.callbacks.get(condition)
        if fn is None:
            raise LookupError(f"Unknown callback '{condition}'")
        return bool(fn(view))

    holds = getattr(condition, "holds", None)
    if callable(holds):
        return bool(holds(view))
    return bool(condition(view))


def evaluate_conditions(
    domain: Domain,
    conditions: Sequence[ConditionLike],
    state: Mapping[str, Any],
    task_name: str,
) -> tuple[bool, list[bool]]:
    """
    Conjunction with short-circuit on the first failure.

    Returns the overall outcome and the individual results evaluated so far.
    An empty list always holds.
    """
    results: list[bool] = []
    for condition in conditions:
        try:
            outcome = evaluate_condition(domain, condition, state)
        except Exception as e:
            raise TaskFailure(
                f"Condition {condition!r} of {task_name!r} raised: {e}", task_name
            ) from e
        results.append(outcome)
        if not outcome:
            return False, results
    return True, results


def apply_effects(
    effects: Sequence[EffectLike], state: Mapping[str, Any], task_name: str
) -> dict[str, Any]:
    """Thread the state through each effect in order; the input is never mutated."""
    current = dict(state)
    for effect in effects:
        try:
            apply = getattr(effect, "apply", None)
            updated = apply(dict(current)) if callable(apply) else effect(dict(current))
        except Exception as e:
            raise TaskFailure(f"Effect of {task_name!r} raised: {e}", task_name) from e

        if not isinstance(updated, Mapping):
            raise TaskFailure(
                f"Effect of {task_name!r} returned {type(updated).__name__}, expected a mapping",
                task_name,
            )
        current = dict(updated)
    return current


def invoke_workflow(workflow: WorkflowRef, params: Mapping[str, Any]) -> Any:
    """Call a workflow: its run(params) if it has one, else the callable itself."""
    run = getattr(workflow, "run", None)
    if callable(run):
        return run(dict(params))
    return workflow(dict(params))
