"""Tests for incremental decomposition."""

import pytest

from htn_planner import (
    DomainBuilder,
    MethodTraversalRecord,
    PreconditionNotMet,
    RecursionLimitExceeded,
    UnknownTask,
    decompose,
)
from htn_planner.demo import Charger, charger_domain
from htn_planner.planner import NodeKind, PlanStep


class TestDecompose:
    def test_appends_to_current_plan(self, planner, ordered_domain):
        """Existing plan steps and MTR are kept and extended."""
        domain, p1, p2 = ordered_domain
        existing = [PlanStep(p2, {})]

        result = planner.decompose(domain, ["root"], {}, current_plan=existing, mtr=[1])

        assert list(result.plan) == [(p2, {}), (p1, {}), (p2, {})]
        assert result.mtr.to_list() == [1, 0]
        assert result.steps == 3

    def test_recursion_count_carries_over(self, make_planner, ordered_domain):
        """Steps spent by an earlier call count against the ceiling."""
        domain, _, _ = ordered_domain
        planner = make_planner(max_recursion=4)

        assert planner.decompose(domain, ["root"], {}, recursion_count=1).steps == 4
        with pytest.raises(RecursionLimitExceeded):
            planner.decompose(domain, ["root"], {}, recursion_count=2)

    def test_primitive_task_list(self, planner, ordered_domain):
        """decompose() accepts primitive tasks directly."""
        domain, p1, p2 = ordered_domain

        result = planner.decompose(domain, ["p2", "p1"], {})

        assert [s.workflow for s in result.plan] == [p2, p1]
        assert len(result.mtr) == 0

    def test_failure_raises_with_tree(self, planner):
        with pytest.raises(PreconditionNotMet) as exc_info:
            planner.decompose(charger_domain(), ["root"], {"battery_level": 100})

        tree = exc_info.value.tree
        assert tree.kind == NodeKind.ROOT
        assert not tree.success
        assert tree.failed_leaf().task_name == "charge"

    def test_unknown_task(self, planner, ordered_domain):
        domain, _, _ = ordered_domain

        with pytest.raises(UnknownTask) as exc_info:
            planner.decompose(domain, ["ghost"], {})

        assert exc_info.value.task_name == "ghost"
        assert exc_info.value.tree.failed_leaf().task_name == "ghost"

    def test_string_task_list_rejected(self, planner, ordered_domain):
        domain, _, _ = ordered_domain

        with pytest.raises(TypeError):
            planner.decompose(domain, "root", {})

    def test_world_state_threaded(self, planner):
        result = planner.decompose(charger_domain(), ["root", "root"], {"battery_level": 80})

        assert result.world_state["battery_level"] == 100
        assert list(result.plan) == [(Charger, {}), (Charger, {})]

    def test_module_level_decompose(self):
        result = decompose(charger_domain(), ["root"], {"battery_level": 0})

        assert result.world_state["battery_level"] == 10
        assert isinstance(result.mtr, MethodTraversalRecord)

    def test_empty_method_contributes_no_steps(self, planner, make_workflow):
        """A method with no subtasks records its choice and adds nothing."""
        a = make_workflow("a")
        domain = (
            DomainBuilder("empty")
            .compound("root", [{"subtasks": ["idle", "a"]}])
            .compound("idle", [{"subtasks": []}])
            .primitive("a", a)
            .allow("A", a)
            .build_or_raise()
        )

        result = planner.decompose(domain, ["root"], {})

        assert [s.workflow for s in result.plan] == [a]
        assert result.mtr.to_list() == [0, 0]
