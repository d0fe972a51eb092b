"""Validation helpers shared across buffer services."""

from __future__ import annotations

from typing import Iterable

from .document import BufferDocument
from .state import Position, Selection


class BufferValidationError(RuntimeError):
    """Raised when a host or command hands the buffer out-of-bounds positions."""

    def __init__(self, message: str, *, position: Position | None = None) -> None:
        super().__init__(message)
        self.position = position


def ensure_position(document: BufferDocument, position: Position) -> Position:
    line, column = position
    if line < 0 or line >= document.line_count():
        raise BufferValidationError("Line out of range", position=position)
    if column < 0 or column > len(document.line_at(line)):
        raise BufferValidationError("Column out of range", position=position)
    return position


def ensure_selections(
    document: BufferDocument, selections: Iterable[Selection]
) -> list[Selection]:
    checked = []
    for selection in selections:
        ensure_position(document, selection.anchor)
        ensure_position(document, selection.active)
        checked.append(selection)
    if not checked:
        raise BufferValidationError("Selection list cannot be empty")
    return checked


__all__ = ["BufferValidationError", "ensure_position", "ensure_selections"]
