"""Generic binding-table driven mode (normal and user-defined modes)."""

from __future__ import annotations

from typing import TYPE_CHECKING

from modal_engine.errors import ModalEngineError, UnboundKeySequence

from .base_mode import KeyInput, Mode, ModeResult

if TYPE_CHECKING:  # pragma: no cover
    from modal_engine.session import EditorSession


class KeymapMode(Mode):
    """Feeds every key to the session's matcher."""

    name = "normal"

    def handle_key(self, session: "EditorSession", key: KeyInput) -> ModeResult:
        matcher = session.matcher
        mode = session.engine.modes.effective_mode(session)
        try:
            outcome = matcher.handle_key(key.token, mode)
        except UnboundKeySequence as exc:
            return self.unbound(session, key, exc)
        except ModalEngineError as exc:
            session.report(exc)
            return ModeResult(consumed=True, status="error", message=exc.user_message)
        if outcome.waiting:
            return ModeResult(consumed=True, status="pending", message=matcher.pending_keys)
        return ModeResult(consumed=True, status="executed")

    def unbound(
        self, session: "EditorSession", key: KeyInput, error: UnboundKeySequence
    ) -> ModeResult:
        del key
        session.report(error)
        return ModeResult(consumed=False, status="unbound", message=error.message)


__all__ = ["KeymapMode"]
