"""Shared fixtures: recording workflows, dispatchers and small domains."""

import time

import pytest

from htn_planner import DomainBuilder, HTNPlanner, PlannerBudgets, PlannerConfig
from htn_planner.planner import BackgroundDispatcher


class RecordingWorkflow:
    """Workflow that records every invocation into a shared log."""

    def __init__(self, name, log=None, delay=0.0, fail=False):
        self.__name__ = name
        self.log = log if log is not None else []
        self.delay = delay
        self.fail = fail

    def run(self, params):
        if self.delay:
            time.sleep(self.delay)
        self.log.append((self.__name__, dict(params)))
        if self.fail:
            raise RuntimeError(f"{self.__name__} failed")
        return True

    def __repr__(self):
        return f"RecordingWorkflow({self.__name__})"


@pytest.fixture
def call_log():
    return []


@pytest.fixture
def make_workflow(call_log):
    def factory(name, **kwargs):
        return RecordingWorkflow(name, log=call_log, **kwargs)

    return factory


@pytest.fixture
def dispatcher():
    dispatcher = BackgroundDispatcher(max_workers=2)
    yield dispatcher
    dispatcher.shutdown(wait=True)


@pytest.fixture
def planner(dispatcher):
    return HTNPlanner(PlannerConfig(dispatcher=dispatcher))


@pytest.fixture
def make_planner(dispatcher):
    def factory(**budgets):
        return HTNPlanner(PlannerConfig(budgets=PlannerBudgets(**budgets), dispatcher=dispatcher))

    return factory


@pytest.fixture
def ordered_domain(make_workflow):
    """root -> [p1, p2] with a single unconditional method."""
    p1 = make_workflow("p1")
    p2 = make_workflow("p2")
    domain = (
        DomainBuilder("ordered")
        .compound("root", [{"conditions": [], "subtasks": ["p1", "p2"]}])
        .primitive("p1", "P1")
        .primitive("p2", "P2")
        .allow("P1", p1)
        .allow("P2", p2)
        .build_or_raise()
    )
    return domain, p1, p2


@pytest.fixture
def self_loop_domain(make_workflow):
    """A compound task whose only method recurses into itself."""
    return (
        DomainBuilder("loop")
        .compound("loop", [{"conditions": [], "subtasks": ["loop"]}])
        .primitive("noop", "Noop")
        .allow("Noop", make_workflow("noop"))
        .root("loop")
        .build_or_raise()
    )
