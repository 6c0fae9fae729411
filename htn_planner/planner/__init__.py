"""HTN planner: decomposition loop, method traversal records and diagnostics."""

from .background import BACKGROUND_TASKS_KEY, BackgroundDispatcher, BackgroundHandle
from .budgets import PlannerBudgets
from .decomposer import TaskDecomposer, TaskOutcome
from .mtr import MethodTraversalRecord
from .options import PlanOptions
from .planner import HTNPlanner, PlannerConfig, decompose, plan, resolve_root_tasks
from .result import DecompositionResult, PlannerResult, PlannerStats, PlanStep
from .trace import DiagnosticNode, NodeKind

__all__ = [
    "BACKGROUND_TASKS_KEY",
    "BackgroundDispatcher",
    "BackgroundHandle",
    "DecompositionResult",
    "DiagnosticNode",
    "HTNPlanner",
    "MethodTraversalRecord",
    "NodeKind",
    "PlanOptions",
    "PlanStep",
    "PlannerBudgets",
    "PlannerConfig",
    "PlannerResult",
    "PlannerStats",
    "TaskDecomposer",
    "TaskOutcome",
    "decompose",
    "plan",
    "resolve_root_tasks",
]
