"""Positions, selections, and the multi-cursor selection state of a buffer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Sequence, Tuple

Position = Tuple[int, int]  # (line, column)


@dataclass(frozen=True, slots=True)
class Selection:
    """Directed range: ``anchor`` stays put, ``active`` is where the caret is."""

    anchor: Position
    active: Position

    @classmethod
    def caret(cls, position: Position) -> "Selection":
        return cls(position, position)

    @property
    def start(self) -> Position:
        return min(self.anchor, self.active)

    @property
    def end(self) -> Position:
        return max(self.anchor, self.active)

    @property
    def is_empty(self) -> bool:
        return self.anchor == self.active

    @property
    def is_reversed(self) -> bool:
        return self.active < self.anchor

    def same_range(self, other: "Selection") -> bool:
        return self.start == other.start and self.end == other.end

    def collapse(self) -> "Selection":
        return Selection(self.active, self.active)

    def with_active(self, active: Position) -> "Selection":
        return Selection(self.anchor, active)


@dataclass(slots=True)
class BufferState:
    """Ordered, never-empty list of selections; the first one is primary."""

    selections: List[Selection] = field(
        default_factory=lambda: [Selection.caret((0, 0))]
    )

    def __post_init__(self) -> None:
        if not self.selections:
            raise ValueError("a buffer always holds at least one selection")

    @property
    def primary(self) -> Selection:
        return self.selections[0]

    @property
    def cursor(self) -> Position:
        return self.primary.active

    def set_selections(self, selections: Iterable[Selection]) -> None:
        updated = list(selections)
        if not updated:
            raise ValueError("a buffer always holds at least one selection")
        self.selections = updated

    def set_cursor(self, line: int, column: int) -> None:
        self.selections = [Selection.caret((line, column))]

    def snapshot(self) -> Sequence[Selection]:
        return tuple(self.selections)


__all__ = ["Position", "Selection", "BufferState"]
