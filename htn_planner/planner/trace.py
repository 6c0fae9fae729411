"""Diagnostic tree mirroring a decomposition, for debugging only."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Optional


class NodeKind(str, Enum):
    ROOT = "root"
    COMPOUND = "compound"
    PRIMITIVE = "primitive"
    EMPTY = "empty"


@dataclass(eq=False)
class DiagnosticNode:
    """
    One decomposition step.

    Compound nodes carry the chosen method; primitive and compound nodes carry
    the condition outcomes evaluated before short-circuiting. EMPTY nodes mark
    where decomposition stopped (recursion ceiling, timeout).
    """

    kind: NodeKind
    task_name: str
    success: bool = True
    children: list[DiagnosticNode] = field(default_factory=list)
    method_index: Optional[int] = None
    method_name: Optional[str] = None
    conditions: list[bool] = field(default_factory=list)
    detail: Optional[str] = None
    parent: Optional[DiagnosticNode] = field(default=None, repr=False)

    def add_child(self, node: DiagnosticNode) -> DiagnosticNode:
        node.parent = self
        self.children.append(node)
        return node

    def mark_failed(self, detail: Optional[str] = None) -> None:
        """Fail this node and every ancestor up to the root."""
        if detail is not None:
            self.detail = detail
        node: Optional[DiagnosticNode] = self
        while node is not None:
            node.success = False
            node = node.parent

    def walk(self) -> Iterator[DiagnosticNode]:
        yield self
        for child in self.children:
            yield from child.walk()

    def find(self, task_name: str) -> Optional[DiagnosticNode]:
        """First node (pre-order) for the given task name."""
        for node in self.walk():
            if node.task_name == task_name and node.kind != NodeKind.ROOT:
                return node
        return None

    def failed_leaf(self) -> Optional[DiagnosticNode]:
        """Deepest failed node along the last failed branch."""
        if self.success:
            return None
        for child in reversed(self.children):
            if not child.success:
                return child.failed_leaf()
        return self

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "kind": self.kind.value,
            "task": self.task_name,
            "success": self.success,
            "children": [c.to_dict() for c in self.children],
        }
        if self.method_index is not None:
            data["method_index"] = self.method_index
            data["method"] = self.method_name
        if self.conditions:
            data["conditions"] = list(self.conditions)
        if self.detail:
            data["detail"] = self.detail
        return data

    def export_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)
