"""In-memory editor host combining document, selections, and undo."""

from __future__ import annotations

from contextlib import AbstractContextManager
from dataclasses import dataclass
from typing import (
    TYPE_CHECKING,
    Callable,
    ContextManager,
    Dict,
    Mapping,
    Optional,
    Sequence,
)

from modal_engine.runtime import telemetry

from .document import BufferDocument
from .state import BufferState, Position, Selection
from .undo import UndoEntry, UndoTimeline
from .validation import BufferValidationError, ensure_position, ensure_selections

if TYPE_CHECKING:  # pragma: no cover
    from modal_engine.host import HostSignals, LineRange, TextEdit

HostCommand = Callable[["Buffer", Mapping[str, object]], object]


@dataclass(slots=True)
class BufferView:
    """Host-friendly snapshot describing the current buffer state."""

    name: str
    version: int
    text: str
    selections: tuple[Selection, ...]
    highlights: tuple[Selection, ...] = ()
    other_highlights: tuple[Selection, ...] = ()


class Buffer:
    """Reference ``EditorHost`` used by tests and the Textual demo."""

    def __init__(
        self,
        *,
        name: str = "default",
        document: Optional[BufferDocument] = None,
        state: Optional[BufferState] = None,
        undo: Optional[UndoTimeline] = None,
        viewport: Optional[LineRange] = None,
    ) -> None:
        self.name = name
        self.document = document or BufferDocument()
        self.state = state or BufferState()
        self.undo_timeline = undo or UndoTimeline()
        self.viewport = viewport
        self.revealed: Optional[Position] = None
        self.highlights: tuple[Selection, ...] = ()
        self.other_highlights: tuple[Selection, ...] = ()
        self.commands: Dict[str, HostCommand] = {}
        self._signals: Optional[HostSignals] = None

    @classmethod
    def from_text(cls, text: str, *, name: str = "default") -> "Buffer":
        return cls(name=name, document=BufferDocument.from_text(text))

    @property
    def document_id(self) -> str:
        return self.name

    @property
    def text(self) -> str:
        return self.document.text

    def attach(self, signals: Optional[HostSignals]) -> None:
        self._signals = signals

    def snapshot(self) -> BufferView:
        return BufferView(
            name=self.name,
            version=self.document.version,
            text=self.document.text,
            selections=tuple(self.state.selections),
            highlights=self.highlights,
            other_highlights=self.other_highlights,
        )

    # -- EditorHost -------------------------------------------------------

    def line_count(self) -> int:
        return self.document.line_count()

    def line_at(self, index: int) -> str:
        return self.document.line_at(index)

    def get_selections(self) -> Sequence[Selection]:
        return self.state.snapshot()

    def set_selections(self, selections: Sequence[Selection]) -> None:
        checked = ensure_selections(self.document, selections)
        if checked == self.state.selections:
            return
        self.state.set_selections(checked)
        self._emit_selection_changed()

    def apply_edits(self, edits: Sequence[TextEdit]) -> None:
        if not edits:
            return
        with Transaction(self, "apply_edits") as tx:
            before_text = self.document.text
            before_selections = self.state.snapshot()
            text = before_text
            carets: list[int] = []
            # back to front so earlier offsets stay valid
            ordered = sorted(
                edits, key=lambda edit: self.document.offset_at(edit.start)
            )
            for edit in reversed(ordered):
                ensure_position(self.document, edit.start)
                ensure_position(self.document, edit.end)
                lo, hi = sorted(
                    (
                        self.document.offset_at(edit.start),
                        self.document.offset_at(edit.end),
                    )
                )
                text = text[:lo] + edit.text + text[hi:]
                shift = len(edit.text) - (hi - lo)
                carets = [caret + shift for caret in carets]
                carets.insert(0, lo + len(edit.text))
            self.document = self.document.replace_text(text)
            self.state.set_selections(
                Selection.caret(self.document.position_at(caret)) for caret in carets
            )
            tx.commit(before_text, text, before_selections, self.state.snapshot())
        self._emit_text_changed()
        self._emit_selection_changed()

    def reveal(self, position: Position) -> None:
        self.revealed = self.document.clamp(position)

    def visible_line_ranges(self) -> Sequence[LineRange]:
        if self.viewport is not None:
            return (self.viewport,)
        return ((0, self.document.line_count() - 1),)

    def set_highlights(
        self, current: Sequence[Selection], others: Sequence[Selection]
    ) -> None:
        self.highlights = tuple(current)
        self.other_highlights = tuple(others)

    def undo(self) -> bool:
        entry = self.undo_timeline.undo()
        if entry is None:
            return False
        self._restore(entry.before_text, entry.selections_before)
        return True

    def redo(self) -> bool:
        entry = self.undo_timeline.redo()
        if entry is None:
            return False
        self._restore(entry.after_text, entry.selections_after)
        return True

    def execute_command(
        self, name: str, args: Optional[Mapping[str, object]] = None
    ) -> bool:
        command = self.commands.get(name)
        if command is None:
            return False
        command(self, dict(args or {}))
        return True

    # -- helpers ----------------------------------------------------------

    def register_command(self, name: str, command: HostCommand) -> None:
        if not name:
            raise ValueError("command name cannot be empty")
        self.commands[name] = command

    def get_text(self, start: Position, end: Position) -> str:
        return self.document.get_text(start, end)

    def _restore(self, text: str, selections: Sequence[Selection]) -> None:
        self.document = self.document.replace_text(text)
        try:
            checked = ensure_selections(self.document, selections)
        except BufferValidationError:
            checked = [Selection.caret(self.document.clamp(selections[0].active))]
        self.state.set_selections(checked)
        self._emit_text_changed()
        self._emit_selection_changed()

    def _emit_text_changed(self) -> None:
        if self._signals is not None:
            self._signals.text_changed(self.document_id)

    def _emit_selection_changed(self) -> None:
        if self._signals is not None:
            extended = any(not sel.is_empty for sel in self.state.selections)
            self._signals.selection_changed(self.document_id, extended)


class Transaction(AbstractContextManager["Transaction"]):
    def __init__(self, buffer: Buffer, label: str) -> None:
        self.buffer = buffer
        self.label = label
        self._span_cm: Optional[ContextManager[object]] = None

    def __enter__(self) -> "Transaction":
        self._span_cm = telemetry.span(
            name=f"buffer::{self.label}",
            component="buffer",
            metadata={"buffer": self.buffer.name},
        )
        self._span_cm.__enter__()
        return self

    def commit(
        self,
        before_text: str,
        after_text: str,
        selections_before: Sequence[Selection],
        selections_after: Sequence[Selection],
    ) -> None:
        entry = UndoEntry(
            label=self.label,
            before_text=before_text,
            after_text=after_text,
            selections_before=tuple(selections_before),
            selections_after=tuple(selections_after),
        )
        self.buffer.undo_timeline.push(entry)

    def __exit__(self, exc_type, exc, tb) -> bool:
        if self._span_cm is not None:
            self._span_cm.__exit__(exc_type, exc, tb)
        return False


__all__ = ["Buffer", "BufferView", "HostCommand", "Transaction"]
