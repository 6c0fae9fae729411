"""Per-call planning options."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .budgets import DEFAULT_TIMEOUT_MS
from .mtr import MethodTraversalRecord


class PlanOptions(BaseModel):
    """Options accepted by plan()."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    root_tasks: Optional[list[str]] = Field(
        default=None, description="Explicit entry tasks; must be compound tasks of the domain"
    )
    debug: bool = Field(default=False, description="Return the diagnostic tree")
    timeout: int = Field(default=DEFAULT_TIMEOUT_MS, gt=0, description="Planning timeout in ms")
    current_plan_mtr: Optional[MethodTraversalRecord] = Field(
        default=None, description="MTR of the plan currently being executed"
    )

    @field_validator("root_tasks", mode="before")
    @classmethod
    def _reject_bare_string(cls, value: Any) -> Any:
        if isinstance(value, str):
            raise ValueError("root_tasks must be a list of task names, not a string")
        return value

    @field_validator("current_plan_mtr", mode="before")
    @classmethod
    def _coerce_mtr(cls, value: Any) -> Any:
        return MethodTraversalRecord.coerce(value)
