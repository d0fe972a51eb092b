"""Boundary types for talking to the editor that hosts the engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional, Protocol, Sequence, Tuple

from modal_engine.buffer.state import Position, Selection

LineRange = Tuple[int, int]  # inclusive (first_line, last_line)


@dataclass(frozen=True, slots=True)
class TextEdit:
    """Replace ``[start, end)`` with ``text``."""

    start: Position
    end: Position
    text: str = ""


class HostSignals(Protocol):
    """Sink hosts report document events to (implemented by ``ModalEngine``)."""

    def text_changed(self, document_id: str) -> None: ...

    def selection_changed(self, document_id: str, extended: bool) -> None: ...


class EditorHost(Protocol):
    """Everything the engine needs from one open editor.

    Selections and text are re-read after every call that can change them;
    the engine never caches host state across calls.
    """

    @property
    def document_id(self) -> str: ...

    def line_count(self) -> int: ...

    def line_at(self, index: int) -> str: ...

    def get_selections(self) -> Sequence[Selection]: ...

    def set_selections(self, selections: Sequence[Selection]) -> None: ...

    def apply_edits(self, edits: Sequence[TextEdit]) -> None: ...

    def reveal(self, position: Position) -> None: ...

    def visible_line_ranges(self) -> Sequence[LineRange]: ...

    def set_highlights(
        self, current: Sequence[Selection], others: Sequence[Selection]
    ) -> None: ...

    def undo(self) -> bool: ...

    def redo(self) -> bool: ...

    def execute_command(
        self, name: str, args: Optional[Mapping[str, object]] = None
    ) -> bool:
        """Run a host-side command; return ``False`` when it is unknown."""
        ...

    def attach(self, signals: Optional[HostSignals]) -> None: ...


__all__ = ["EditorHost", "HostSignals", "LineRange", "TextEdit"]
