"""Method Traversal Record: the trace of method choices made in one call."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Union


@dataclass(frozen=True)
class MethodTraversalRecord:
    """
    Ordered method indices, one per compound decision point.

    Records compare lexicographically: a lower index at the first point of
    difference means an earlier (higher priority) method was chosen there.
    Callers use this to decide whether a freshly planned record is better than
    the one behind the plan they are currently executing.
    """

    choices: tuple[int, ...] = ()

    def append(self, index: int) -> MethodTraversalRecord:
        return MethodTraversalRecord(self.choices + (index,))

    def __len__(self) -> int:
        return len(self.choices)

    def __iter__(self):
        return iter(self.choices)

    def first_divergence(self, other: "MethodTraversalRecord") -> Optional[int]:
        """Position of the first differing decision, or None if identical."""
        for position, (mine, theirs) in enumerate(zip(self.choices, other.choices)):
            if mine != theirs:
                return position
        if len(self.choices) != len(other.choices):
            return min(len(self.choices), len(other.choices))
        return None

    def compare(self, other: "MethodTraversalRecord") -> int:
        """
        -1 if this record has higher priority than ``other``, 1 if lower, 0 if equal.

        When one record is a prefix of the other the shorter one ranks first.
        """
        position = self.first_divergence(other)
        if position is None:
            return 0
        if position >= len(self.choices):
            return -1
        if position >= len(other.choices):
            return 1
        return -1 if self.choices[position] < other.choices[position] else 1

    def to_list(self) -> list[int]:
        return list(self.choices)

    @classmethod
    def coerce(
        cls, value: Union["MethodTraversalRecord", Iterable[int], None]
    ) -> Optional["MethodTraversalRecord"]:
        if value is None or isinstance(value, MethodTraversalRecord):
            return value
        choices = tuple(value)
        if any(not isinstance(c, int) or isinstance(c, bool) or c < 0 for c in choices):
            raise ValueError(f"MTR choices must be non-negative integers: {choices!r}")
        return cls(choices)
