"""HTN Planner - stack-based decomposition inside a time-bounded worker."""

from __future__ import annotations

import concurrent.futures
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Optional, Sequence, Union

from ..domain.domain import Domain
from ..domain.task import CompoundTask
from ..errors import (
    PlanningError,
    PlanningTimeout,
    RecursionLimitExceeded,
    RootTaskError,
    TaskFailure,
)
from .background import (
    BACKGROUND_TASKS_KEY,
    BackgroundDispatcher,
    BackgroundHandle,
    get_default_dispatcher,
)
from .budgets import PlannerBudgets
from .decomposer import TaskDecomposer
from .mtr import MethodTraversalRecord
from .options import PlanOptions
from .result import DecompositionResult, PlannerResult, PlannerStats, PlanStep
from .trace import DiagnosticNode, NodeKind

if TYPE_CHECKING:
    from ..utils.config import ConfigManager

logger = logging.getLogger(__name__)

# Used when neither options nor the domain name any root task
FALLBACK_ROOT_TASK = "root"


@dataclass
class PlannerConfig:
    """Configuration for HTN planner."""

    budgets: PlannerBudgets = field(default_factory=PlannerBudgets)
    dispatcher: Optional[BackgroundDispatcher] = None
    debug: bool = False

    @classmethod
    def from_config_manager(cls, manager: "ConfigManager") -> PlannerConfig:
        return cls(
            budgets=PlannerBudgets(
                max_recursion=int(manager.get("planner.max_recursion")),
                timeout_ms=int(manager.get("planner.timeout_ms")),
            ),
            dispatcher=BackgroundDispatcher(max_workers=int(manager.get("background.max_workers"))),
            debug=bool(manager.get("planner.debug", False)),
        )


def resolve_root_tasks(domain: Domain, root_tasks: Optional[Sequence[str]] = None) -> list[str]:
    """
    Pick the entry tasks for a planning call.

    Explicit names are validated against the domain; otherwise the domain's
    declared roots are used, and failing that the conventional "root".
    """
    if root_tasks is None:
        if domain.root_tasks:
            return list(domain.root_tasks)
        return [FALLBACK_ROOT_TASK]

    if isinstance(root_tasks, str):
        raise RootTaskError("root_tasks must be a list of task names, not a string")

    errors = []
    for name in root_tasks:
        task = domain.get_task(name)
        if task is None:
            errors.append(f"Root task '{name}' not found in domain")
        elif not isinstance(task, CompoundTask):
            errors.append(f"Root task '{name}' must be a compound task")
    if errors:
        raise RootTaskError(errors)
    return list(root_tasks)


class HTNPlanner:
    """
    Total-order HTN planner.

    Decomposition is depth-first over a task stack: a compound task's chosen
    subtasks are pushed so they complete, in order, before anything queued
    after their parent. Primitive workflows are invoked as they are reached.
    The whole decomposition runs on one worker thread so plan() never blocks
    past its timeout.
    """

    def __init__(self, config: Optional[PlannerConfig] = None) -> None:
        self.config = config or PlannerConfig()
        self.budgets = self.config.budgets

    @property
    def dispatcher(self) -> BackgroundDispatcher:
        return self.config.dispatcher or get_default_dispatcher()

    def plan(
        self,
        domain: Domain,
        world_state: Mapping[str, Any],
        options: Optional[PlanOptions] = None,
        **overrides: Any,
    ) -> PlannerResult:
        """
        Plan (and execute) from the domain's root tasks.

        Args:
            domain: Built domain
            world_state: Initial state; never mutated
            options: PlanOptions, or pass the same fields as keyword arguments

        Returns:
            PlannerResult; planning errors are reported in ``result.error``.
            Malformed root tasks raise RootTaskError instead.
        """
        options = self._resolve_options(options, overrides)
        debug = options.debug or self.config.debug
        roots = resolve_root_tasks(domain, options.root_tasks)
        timeout_ms = options.timeout if "timeout" in options.model_fields_set else self.budgets.timeout_ms

        state = dict(world_state)
        state.setdefault(BACKGROUND_TASKS_KEY, frozenset())

        logger.debug(f"Planning {domain.name} from {roots} (timeout {timeout_ms}ms)")

        cancel_event = threading.Event()
        start = time.monotonic()
        executor = concurrent.futures.ThreadPoolExecutor(max_workers=1, thread_name_prefix="htn-plan")
        try:
            future = executor.submit(
                self.decompose,
                domain,
                roots,
                state,
                debug=debug,
                current_plan_mtr=options.current_plan_mtr,
                cancel_event=cancel_event,
            )
            outcome = self._await(future, timeout_ms, cancel_event)
        except PlanningError as e:
            elapsed_ms = int((time.monotonic() - start) * 1000)
            logger.debug(f"Planning {domain.name} failed after {elapsed_ms}ms: {e}")
            if not debug:
                e.tree = None
            return PlannerResult(
                success=False,
                world_state=state,
                tree=e.tree,
                error=e,
                stats=PlannerStats(elapsed_ms=elapsed_ms),
            )
        finally:
            # The worker may still be winding down after a timeout
            executor.shutdown(wait=False)

        stats = PlannerStats(
            tasks_processed=outcome.steps,
            background_dispatched=len(outcome.background),
            elapsed_ms=int((time.monotonic() - start) * 1000),
        )
        if options.current_plan_mtr is not None:
            stats.mtr_diverged_at = outcome.mtr.first_divergence(options.current_plan_mtr)

        logger.debug(
            f"Planned {len(outcome.plan)} step(s) for {domain.name} in {stats.elapsed_ms}ms, "
            f"mtr={outcome.mtr.to_list()}"
        )
        return PlannerResult(
            success=True,
            plan=outcome.plan,
            mtr=outcome.mtr,
            world_state=outcome.world_state,
            tree=outcome.tree if debug else None,
            stats=stats,
        )

    def decompose(
        self,
        domain: Domain,
        tasks: Iterable[str],
        world_state: Mapping[str, Any],
        current_plan: Sequence[PlanStep] = (),
        mtr: Union[MethodTraversalRecord, Iterable[int], None] = None,
        recursion_count: int = 0,
        debug: bool = False,
        current_plan_mtr: Union[MethodTraversalRecord, Iterable[int], None] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> DecompositionResult:
        """
        Decompose a task list, continuing from an already partial plan.

        Runs synchronously with no timeout. ``recursion_count`` carries over
        the steps already spent, so resumed decompositions share one ceiling.

        Raises:
            PlanningError: with ``tree`` set to the partial diagnostic tree
        """
        if isinstance(tasks, str):
            raise TypeError("tasks must be a list of task names, not a string")

        decomposer = TaskDecomposer(domain, self.dispatcher)
        record = MethodTraversalRecord.coerce(mtr) or MethodTraversalRecord()
        state = dict(world_state)
        state.setdefault(BACKGROUND_TASKS_KEY, frozenset())
        steps: list[PlanStep] = [PlanStep(*s) for s in current_plan]
        background: list[BackgroundHandle] = []
        count = recursion_count
        limit = self.budgets.max_recursion

        root = DiagnosticNode(NodeKind.ROOT, domain.name)
        # LIFO stack of (task name, parent node); the next task is on top
        stack: list[tuple[str, DiagnosticNode]] = [(name, root) for name in reversed(list(tasks))]

        while stack:
            name, parent = stack[-1]

            if cancel_event is not None and cancel_event.is_set():
                parent.add_child(DiagnosticNode(NodeKind.EMPTY, "cancelled")).mark_failed()
                raise PlanningTimeout("Planning cancelled", name, root)

            if count >= limit:
                parent.add_child(DiagnosticNode(NodeKind.EMPTY, "max recursion")).mark_failed()
                logger.debug(f"Max recursion depth reached at {name!r} ({count} tasks)")
                raise RecursionLimitExceeded(
                    f"Max recursion depth reached ({limit} tasks)", name, root
                )

            stack.pop()
            count += 1

            try:
                outcome = decomposer.decompose_task(name, state)
            except PlanningError as e:
                failed = e.tree or DiagnosticNode(NodeKind.EMPTY, name)
                parent.add_child(failed).mark_failed()
                e.tree = root
                logger.debug(f"Task {name!r} failed: {e}")
                raise

            parent.add_child(outcome.node)
            state = outcome.world_state

            if outcome.step is not None:
                steps.append(outcome.step)
            if outcome.handle is not None:
                background.append(outcome.handle)

            if outcome.method_index is not None:
                record = record.append(outcome.method_index)
                for subtask in reversed(outcome.subtasks):
                    stack.append((subtask, outcome.node))

        # Prior MTR is advisory: selection above never consults it
        previous = MethodTraversalRecord.coerce(current_plan_mtr)
        if previous is not None:
            diverged = record.first_divergence(previous)
            if diverged is not None:
                logger.debug(f"MTR {record.to_list()} diverges from {previous.to_list()} at {diverged}")

        if debug and logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"Decomposition tree for {domain.name}:\n{root.export_json()}")

        return DecompositionResult(
            plan=tuple(steps),
            world_state=state,
            mtr=record,
            tree=root,
            steps=count,
            background=tuple(background),
        )

    @staticmethod
    def _resolve_options(options: Optional[PlanOptions], overrides: Mapping[str, Any]) -> PlanOptions:
        if options is None:
            return PlanOptions(**overrides)
        if overrides:
            return PlanOptions(**{**{k: getattr(options, k) for k in options.model_fields_set}, **overrides})
        return options

    @staticmethod
    def _await(
        future: concurrent.futures.Future, timeout_ms: int, cancel_event: threading.Event
    ) -> DecompositionResult:
        try:
            return future.result(timeout=timeout_ms / 1000)
        except concurrent.futures.TimeoutError as e:
            if future.done():
                raise TaskFailure(f"Planning failed: {e!r}") from e
            cancel_event.set()
            logger.warning(f"Planning timed out after {timeout_ms}ms")
            raise PlanningTimeout(f"Planning timed out after {timeout_ms}ms") from None
        except PlanningError:
            raise
        except Exception as e:
            logger.warning(f"Planning worker terminated abnormally: {e!r}")
            raise TaskFailure(f"Planning failed: {e!r}") from e


_default_planner = HTNPlanner()


def plan(
    domain: Domain,
    world_state: Mapping[str, Any],
    options: Optional[PlanOptions] = None,
    **overrides: Any,
) -> PlannerResult:
    """Plan with the default planner configuration. See HTNPlanner.plan."""
    return _default_planner.plan(domain, world_state, options, **overrides)


def decompose(
    domain: Domain,
    tasks: Iterable[str],
    world_state: Mapping[str, Any],
    current_plan: Sequence[PlanStep] = (),
    mtr: Union[MethodTraversalRecord, Iterable[int], None] = None,
    recursion_count: int = 0,
    debug: bool = False,
    current_plan_mtr: Union[MethodTraversalRecord, Iterable[int], None] = None,
) -> DecompositionResult:
    """Incremental decomposition with the default planner. See HTNPlanner.decompose."""
    return _default_planner.decompose(
        domain,
        tasks,
        world_state,
        current_plan=current_plan,
        mtr=mtr,
        recursion_count=recursion_count,
        debug=debug,
        current_plan_mtr=current_plan_mtr,
    )
