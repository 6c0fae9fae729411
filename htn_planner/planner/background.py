"""Detached execution of background-flagged primitive tasks."""

from __future__ import annotations

import concurrent.futures
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional
from uuid import uuid4

from ..domain.task import WorkflowRef
from .conditions import invoke_workflow

logger = logging.getLogger(__name__)

BACKGROUND_TASKS_KEY = "background_tasks"


@dataclass(frozen=True)
class BackgroundHandle:
    """
    Handle for one dispatched invocation, stored in world state.

    The planner only records the handle. It never waits on, cancels, or reads
    the outcome of the future; callers that care may do so themselves.
    """

    handle_id: str
    task_name: str
    future: concurrent.futures.Future = field(compare=False, hash=False, repr=False)

    @property
    def done(self) -> bool:
        return self.future.done()

    def result(self, timeout: Optional[float] = None) -> Any:
        return self.future.result(timeout=timeout)

    def __str__(self) -> str:
        return self.handle_id


class BackgroundDispatcher:
    """
    Runs workflows on a thread pool without blocking the planner.

    Planning timeouts and failures do not cancel work submitted here; it keeps
    running until the workflow returns or the dispatcher is shut down.
    """

    def __init__(self, max_workers: int = 4) -> None:
        self.max_workers = max_workers
        self._executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="htn-background"
        )
        self.dispatched = 0
        self._lock = threading.Lock()

    def dispatch(
        self, task_name: str, workflow: WorkflowRef, params: Mapping[str, Any]
    ) -> BackgroundHandle:
        handle_id = f"{task_name}_{uuid4().hex[:8]}"
        future = self._executor.submit(invoke_workflow, workflow, params)
        future.add_done_callback(lambda f: self._log_outcome(handle_id, f))
        with self._lock:
            self.dispatched += 1

        logger.debug(f"Dispatched background task {handle_id}")
        return BackgroundHandle(handle_id=handle_id, task_name=task_name, future=future)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    @staticmethod
    def _log_outcome(handle_id: str, future: concurrent.futures.Future) -> None:
        if future.cancelled():
            logger.warning(f"Background task {handle_id} was cancelled")
            return
        error = future.exception()
        if error is not None:
            logger.warning(f"Background task {handle_id} failed: {error}")
        else:
            logger.debug(f"Background task {handle_id} completed")


_default_dispatcher: Optional[BackgroundDispatcher] = None
_default_lock = threading.Lock()


def get_default_dispatcher() -> BackgroundDispatcher:
    """Process-wide dispatcher used when a planner is not given one."""
    global _default_dispatcher
    with _default_lock:
        if _default_dispatcher is None:
            _default_dispatcher = BackgroundDispatcher()
        return _default_dispatcher
