"""Line-based document storage plus offset <-> position arithmetic."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Protocol, Sequence

from .state import Position


class LineSource(Protocol):
    """Anything that can hand out lines by index (documents and hosts)."""

    def line_count(self) -> int: ...

    def line_at(self, index: int) -> str: ...


@dataclass(slots=True)
class BufferDocument:
    """Text storage built on a simple list-of-lines model.

    Newlines are not stored; every line boundary counts as one character
    when converting between offsets and positions.
    """

    _lines: List[str] = field(default_factory=lambda: [""])
    version: int = 0

    @classmethod
    def from_text(cls, text: str) -> "BufferDocument":
        return cls(_lines=text.split("\n"), version=0)

    @classmethod
    def from_source(cls, source: LineSource) -> "BufferDocument":
        return cls(_lines=[source.line_at(i) for i in range(source.line_count())])

    def snapshot(self) -> Sequence[str]:
        """Return the current lines without exposing internal mutability."""

        return tuple(self._lines)

    @property
    def text(self) -> str:
        return "\n".join(self._lines)

    def line_count(self) -> int:
        return len(self._lines)

    def line_at(self, index: int) -> str:
        return self._lines[index]

    def replace_text(self, text: str) -> "BufferDocument":
        """Return a document holding ``text`` with a bumped version."""

        return BufferDocument(_lines=text.split("\n"), version=self.version + 1)

    def clamp(self, position: Position) -> Position:
        line, column = position
        line = max(0, min(line, len(self._lines) - 1))
        column = max(0, min(column, len(self._lines[line])))
        return (line, column)

    def offset_at(self, position: Position) -> int:
        line, column = self.clamp(position)
        return sum(len(self._lines[i]) + 1 for i in range(line)) + column

    def position_at(self, offset: int) -> Position:
        if offset <= 0:
            return (0, 0)
        running = 0
        for line, content in enumerate(self._lines):
            if offset <= running + len(content):
                return (line, offset - running)
            running += len(content) + 1
        last = len(self._lines) - 1
        return (last, len(self._lines[last]))

    def translate(self, position: Position, delta: int) -> Position:
        return translate(self, position, delta)

    def get_text(self, start: Position, end: Position) -> str:
        lo, hi = sorted((self.offset_at(start), self.offset_at(end)))
        return self.text[lo:hi]


def translate(source: LineSource, position: Position, delta: int) -> Position:
    """Move ``delta`` characters from ``position``, wrapping across line ends.

    A line break counts as one character. The result is clamped to the
    document bounds.
    """

    line, column = position
    last = source.line_count() - 1
    if delta >= 0:
        while True:
            length = len(source.line_at(line))
            if column + delta <= length:
                return (line, column + delta)
            if line >= last:
                return (line, length)
            delta -= length - column + 1
            line, column = line + 1, 0
    remaining = -delta
    while True:
        if column - remaining >= 0:
            return (line, column - remaining)
        if line <= 0:
            return (0, 0)
        remaining -= column + 1
        line -= 1
        column = len(source.line_at(line))


def text_between(source: LineSource, start: Position, end: Position) -> str:
    """Text between two positions of ``source`` in either order."""

    lo, hi = sorted((start, end))
    if lo[0] == hi[0]:
        return source.line_at(lo[0])[lo[1] : hi[1]]
    parts = [source.line_at(lo[0])[lo[1] :]]
    parts.extend(source.line_at(line) for line in range(lo[0] + 1, hi[0]))
    parts.append(source.line_at(hi[0])[: hi[1]])
    return "\n".join(parts)


__all__ = ["BufferDocument", "LineSource", "text_between", "translate"]
