"""Single-task dispatch against a domain."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from ..domain.domain import Domain
from ..domain.task import CompoundTask, PrimitiveTask
from ..errors import (
    NoApplicableMethod,
    PlanningError,
    PreconditionNotMet,
    TaskFailure,
    UnknownTask,
    WorkflowNotPermitted,
)
from .background import BACKGROUND_TASKS_KEY, BackgroundDispatcher, BackgroundHandle
from .conditions import apply_effects, evaluate_conditions, invoke_workflow
from .result import PlanStep
from .trace import DiagnosticNode, NodeKind

logger = logging.getLogger(__name__)


@dataclass
class TaskOutcome:
    """
    Result of decomposing one task name.

    Compound tasks yield the chosen method index and its subtasks (world state
    unchanged); primitive tasks yield a plan step and the next world state.
    """

    node: DiagnosticNode
    world_state: dict[str, Any]
    step: Optional[PlanStep] = None
    method_index: Optional[int] = None
    subtasks: tuple[str, ...] = ()
    handle: Optional[BackgroundHandle] = None


class TaskDecomposer:
    """
    Dispatches one task name to the compound or primitive branch.

    Method choice is committed: the first method whose conditions hold is
    returned, and a later failure among its subtasks fails the whole call
    rather than trying the next method.
    """

    def __init__(self, domain: Domain, dispatcher: BackgroundDispatcher) -> None:
        self.domain = domain
        self.dispatcher = dispatcher

    def decompose_task(self, task_name: str, world_state: Mapping[str, Any]) -> TaskOutcome:
        task = self.domain.get_task(task_name)

        if isinstance(task, CompoundTask):
            return self._decompose_compound(task, world_state)
        if isinstance(task, PrimitiveTask):
            return self._decompose_primitive(task, world_state)

        raise UnknownTask(
            f"Unknown task: {task_name!r}",
            task_name,
            DiagnosticNode(NodeKind.EMPTY, task_name, success=False, detail="unknown task"),
        )

    def _decompose_compound(self, task: CompoundTask, world_state: Mapping[str, Any]) -> TaskOutcome:
        node = DiagnosticNode(NodeKind.COMPOUND, task.name)

        for index, method in enumerate(task.methods):
            try:
                met, results = evaluate_conditions(
                    self.domain, method.conditions, world_state, task.name
                )
            except PlanningError as e:
                node.success = False
                node.method_index, node.method_name = index, method.label(index)
                node.detail = str(e)
                e.tree = node
                raise

            if met:
                node.method_index = index
                node.method_name = method.label(index)
                node.conditions = results
                logger.debug(f"Task {task.name}: selected {method.label(index)} (index {index})")
                return TaskOutcome(
                    node=node,
                    world_state=dict(world_state),
                    method_index=index,
                    subtasks=method.subtasks,
                )

        node.success = False
        node.detail = "no applicable method"
        raise NoApplicableMethod(f"No valid method found for {task.name!r}", task.name, node)

    def _decompose_primitive(self, task: PrimitiveTask, world_state: Mapping[str, Any]) -> TaskOutcome:
        node = DiagnosticNode(NodeKind.PRIMITIVE, task.name)

        workflow = self.domain.resolve_workflow(task.workflow)
        if workflow is None:
            node.success = False
            node.detail = "workflow not permitted"
            raise WorkflowNotPermitted(
                f"Workflow {task.workflow!r} of {task.name!r} is not in the allow-list",
                task.name,
                node,
            )

        try:
            met, results = evaluate_conditions(
                self.domain, task.preconditions, world_state, task.name
            )
        except PlanningError as e:
            node.success = False
            node.detail = str(e)
            e.tree = node
            raise

        node.conditions = results
        if not met:
            node.success = False
            node.detail = "precondition not met"
            raise PreconditionNotMet(f"Precondition not met for {task.name!r}", task.name, node)

        params = dict(task.params)
        state = dict(world_state)
        handle = None

        if task.background:
            handle = self.dispatcher.dispatch(task.name, workflow, params)
            pending = frozenset(state.get(BACKGROUND_TASKS_KEY, frozenset()))
            state[BACKGROUND_TASKS_KEY] = pending | {handle}
            node.detail = f"dispatched {handle.handle_id}"
        else:
            try:
                invoke_workflow(workflow, params)
            except Exception as e:
                node.success = False
                node.detail = f"workflow raised: {e}"
                raise TaskFailure(
                    f"Workflow of {task.name!r} raised: {e}", task.name, node
                ) from e

        try:
            # Background effects are applied optimistically, as if the
            # invocation had already succeeded.
            state = apply_effects(task.effects, state, task.name)
        except PlanningError as e:
            node.success = False
            node.detail = str(e)
            e.tree = node
            raise

        return TaskOutcome(
            node=node, world_state=state, step=PlanStep(workflow, params), handle=handle
        )
