"""In-memory document, selection state, and reference editor host."""

from .buffer import Buffer, BufferView, HostCommand, Transaction
from .document import BufferDocument, LineSource, text_between, translate
from .state import BufferState, Position, Selection
from .undo import UndoEntry, UndoTimeline
from .validation import BufferValidationError, ensure_position, ensure_selections

__all__ = [
    "Buffer",
    "BufferDocument",
    "BufferState",
    "BufferValidationError",
    "BufferView",
    "HostCommand",
    "LineSource",
    "Position",
    "Selection",
    "Transaction",
    "UndoEntry",
    "UndoTimeline",
    "ensure_position",
    "ensure_selections",
    "text_between",
    "translate",
]
