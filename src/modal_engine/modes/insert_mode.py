"""Insert and replace modes: unbound printable keys become text."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from modal_engine.errors import UnboundKeySequence
from modal_engine.host import TextEdit
from modal_engine.keymaps.models import INSERT_MODE

from .base_mode import KeyInput, ModeResult
from .keymap_mode import KeymapMode

if TYPE_CHECKING:  # pragma: no cover
    from modal_engine.session import EditorSession


def typed_text(key: KeyInput, error: UnboundKeySequence) -> Optional[str]:
    """Text for the unbound keys, or None if one of them is not printable.

    A half-typed text-mode binding (``jk``) that fails on its second key
    types both keys.
    """

    if not error.keys:
        return None
    chars = []
    for token in error.keys[:-1]:
        if token == "<space>":
            chars.append(" ")
        elif len(token) == 1 and token.isprintable():
            chars.append(token)
        else:
            return None
    last = key.printable
    if last is None:
        return None
    chars.append(last)
    return "".join(chars)


class InsertMode(KeymapMode):
    name = INSERT_MODE

    def unbound(
        self, session: "EditorSession", key: KeyInput, error: UnboundKeySequence
    ) -> ModeResult:
        text = typed_text(key, error)
        if text is None:
            return super().unbound(session, key, error)
        self.type_text(session, text)
        return ModeResult(consumed=True, status="typed", message=text)

    def type_text(self, session: "EditorSession", text: str) -> None:
        host = session.host
        host.apply_edits(
            [TextEdit(sel.start, sel.end, text) for sel in host.get_selections()]
        )


class ReplaceMode(InsertMode):
    """Typed characters overwrite the character under each caret."""

    name = "replace"

    def type_text(self, session: "EditorSession", text: str) -> None:
        host = session.host
        edits = []
        for sel in host.get_selections():
            line, column = sel.start
            if sel.is_empty:
                length = len(host.line_at(line))
                end = (line, min(column + len(text), length))
            else:
                end = sel.end
            edits.append(TextEdit(sel.start, end, text))
        host.apply_edits(edits)


__all__ = ["InsertMode", "ReplaceMode", "typed_text"]
