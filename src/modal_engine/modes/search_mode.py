"""Search prompt mode: typed characters extend the search text."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from modal_engine.errors import ModalEngineError, UnboundKeySequence
from modal_engine.search.interactive import SEARCH_MODE

from .base_mode import KeyInput, ModeResult
from .insert_mode import typed_text
from .keymap_mode import KeymapMode

if TYPE_CHECKING:  # pragma: no cover
    from modal_engine.session import EditorSession


class SearchMode(KeymapMode):
    name = SEARCH_MODE

    def on_exit(self, session: "EditorSession", next_mode: Optional[str]) -> None:
        del next_mode
        # any exit other than accept/cancel (mode command, editor switch)
        session.search.abandon()

    def unbound(
        self, session: "EditorSession", key: KeyInput, error: UnboundKeySequence
    ) -> ModeResult:
        text = typed_text(key, error)
        if text is None:
            return super().unbound(session, key, error)
        try:
            session.search.type_text(text)
        except ModalEngineError as exc:
            session.report(exc)
            return ModeResult(consumed=True, status="error", message=exc.user_message)
        return ModeResult(consumed=True, status="search", message=session.search.text)


__all__ = ["SearchMode"]
