"""Tests for background (fire-and-forget) primitive tasks."""

import time

from htn_planner import DomainBuilder, PlanningErrorKind
from htn_planner.planner import BACKGROUND_TASKS_KEY, BackgroundDispatcher, BackgroundHandle


def _background_domain(slow, fast):
    return (
        DomainBuilder("background")
        .compound("root", [{"subtasks": ["slow", "fast"]}])
        .primitive(
            "slow",
            "Slow",
            background=True,
            effects=[lambda s: {**s, "slow_started": True}],
        )
        .primitive("fast", "Fast")
        .allow("Slow", slow)
        .allow("Fast", fast)
        .build_or_raise()
    )


class TestBackgroundTasks:
    def test_planner_does_not_wait(self, planner, make_workflow):
        """A 0.5s background workflow does not hold up the plan."""
        slow = make_workflow("slow", delay=0.5)
        fast = make_workflow("fast")

        start = time.monotonic()
        result = planner.plan(_background_domain(slow, fast), {})
        elapsed = time.monotonic() - start

        assert result.success
        assert elapsed < 0.4
        assert [s.workflow for s in result.plan] == [slow, fast]

    def test_handle_recorded_in_state(self, planner, make_workflow):
        slow = make_workflow("slow", delay=0.05)
        fast = make_workflow("fast")

        result = planner.plan(_background_domain(slow, fast), {})

        [handle] = result.world_state[BACKGROUND_TASKS_KEY]
        assert isinstance(handle, BackgroundHandle)
        assert handle.task_name == "slow"
        assert handle.handle_id.startswith("slow_")
        assert result.stats.background_dispatched == 1
        assert handle.result(timeout=2) is True
        assert handle.done

    def test_effects_applied_optimistically(self, planner, make_workflow):
        """Effects land in world state even when the workflow later fails."""
        slow = make_workflow("slow", delay=0.05, fail=True)
        fast = make_workflow("fast")

        result = planner.plan(_background_domain(slow, fast), {})

        assert result.success
        assert result.world_state["slow_started"] is True

    def test_existing_handles_preserved(self, planner, make_workflow):
        """New handles are added to whatever the caller already tracks."""
        slow = make_workflow("slow")
        fast = make_workflow("fast")
        state = {BACKGROUND_TASKS_KEY: frozenset({"earlier"})}

        result = planner.plan(_background_domain(slow, fast), state)

        handles = result.world_state[BACKGROUND_TASKS_KEY]
        assert "earlier" in handles
        assert len(handles) == 2
        assert state[BACKGROUND_TASKS_KEY] == frozenset({"earlier"})

    def test_preconditions_still_checked(self, planner, make_workflow, call_log):
        """A background task with an unmet precondition is never dispatched."""
        slow = make_workflow("slow")
        domain = (
            DomainBuilder("guarded")
            .compound("root", [{"subtasks": ["slow"]}])
            .primitive("slow", slow, preconditions=[False], background=True)
            .allow("Slow", slow)
            .build_or_raise()
        )

        result = planner.plan(domain, {})

        assert not result.success
        assert result.stats.background_dispatched == 0
        time.sleep(0.05)
        assert call_log == []

    def test_background_work_survives_timeout(self, planner, make_workflow, call_log):
        """A timed-out plan leaves already dispatched work running to completion."""
        background = make_workflow("background", delay=0.3)
        blocker = make_workflow("blocker", delay=0.5)
        domain = (
            DomainBuilder("detached")
            .compound("root", [{"subtasks": ["bg", "block"]}])
            .primitive("bg", background, background=True)
            .primitive("block", blocker)
            .allow("Background", background)
            .allow("Blocker", blocker)
            .build_or_raise()
        )

        result = planner.plan(domain, {}, timeout=50)

        assert result.error.kind == PlanningErrorKind.PLANNING_TIMEOUT
        assert ("background", {}) not in call_log
        time.sleep(0.6)
        assert ("background", {}) in call_log


class TestBackgroundDispatcher:
    def test_dispatch_counts(self, make_workflow):
        dispatcher = BackgroundDispatcher(max_workers=1)
        workflow = make_workflow("job")

        try:
            first = dispatcher.dispatch("job", workflow, {"n": 1})
            second = dispatcher.dispatch("job", workflow, {"n": 2})
        finally:
            dispatcher.shutdown(wait=True)

        assert dispatcher.dispatched == 2
        assert first != second
        assert workflow.log == [("job", {"n": 1}), ("job", {"n": 2})]

    def test_plain_callable_workflow(self):
        """Workflows without run() are called directly with the params."""
        dispatcher = BackgroundDispatcher(max_workers=1)
        seen = []

        try:
            handle = dispatcher.dispatch("call", seen.append, {"x": 1})
            handle.result(timeout=2)
        finally:
            dispatcher.shutdown(wait=True)

        assert seen == [{"x": 1}]
        assert str(handle) == handle.handle_id
