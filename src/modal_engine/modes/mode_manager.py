"""Mode controller coordinating Normal/Insert/etc handlers per editor."""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Optional

from modal_engine.runtime import telemetry

from .base_mode import KeyInput, Mode, ModeBus, ModeChange, ModeResult
from .keymap_mode import KeymapMode

if TYPE_CHECKING:  # pragma: no cover
    from modal_engine.session import EditorSession

VISUAL_MODE = "visual"
NORMAL_MODE = "normal"


class ModeController:
    """Owns the mode handlers, performs transitions, and dispatches keys.

    The current mode itself lives on each ``EditorSession``; the controller
    remembers the last mode of every document so it can be restored when the
    editor regains focus. ``visual`` is never stored: it is normal mode with
    the session's visual flag set.
    """

    def __init__(self, bus: ModeBus, *, start_mode: str = NORMAL_MODE) -> None:
        self.bus = bus
        self.start_mode = start_mode
        self._modes: Dict[str, Mode] = {}
        self._persisted: Dict[str, str] = {}
        self.logger = telemetry.get_logger("modal_engine.modes")

    def register_mode(self, mode: Mode, *, replace: bool = False) -> Mode:
        if mode.name in self._modes and not replace:
            raise ValueError(f"Mode '{mode.name}' already registered")
        self._modes[mode.name] = mode
        return mode

    def handler_for(self, name: str) -> Mode:
        mode = self._modes.get(name)
        if mode is None:
            # arbitrary user modes are plain binding-table modes
            mode = self.register_mode(KeymapMode(name))
        return mode

    def persisted_mode(self, document_id: str) -> Optional[str]:
        return self._persisted.get(document_id)

    def forget(self, document_id: str) -> None:
        self._persisted.pop(document_id, None)

    def enter(self, session: "EditorSession", mode: str) -> None:
        """Switch ``session`` to ``mode``; never fails."""

        visual = mode == VISUAL_MODE
        target = NORMAL_MODE if visual else mode
        previous = session.mode
        changed = previous != target
        if changed:
            self.handler_for(previous).on_exit(session, target)
        session.mode = target
        session.visual_flag = visual
        self._persisted[session.document_id] = target
        if changed:
            if not session.root_matcher.executing:
                session.root_matcher.reset()
            self.handler_for(target).on_enter(session, previous)
        self._announce(session, previous)

    def restore(self, session: "EditorSession") -> None:
        """Re-apply the persisted mode of the session's document."""

        previous = session.mode
        target = self._persisted.get(session.document_id, self.start_mode)
        session.mode = target
        session.visual_flag = False
        self._persisted[session.document_id] = target
        self._announce(session, previous)

    def is_selecting(self, session: "EditorSession") -> bool:
        if session.visual_flag:
            return True
        return any(not sel.is_empty for sel in session.host.get_selections())

    def effective_mode(self, session: "EditorSession") -> str:
        """Mode used for binding lookup: normal while selecting is ``visual``."""

        if session.mode == NORMAL_MODE and self.is_selecting(session):
            return VISUAL_MODE
        return session.mode

    def handle_key(self, session: "EditorSession", key: KeyInput) -> ModeResult:
        mode = self.handler_for(session.mode)
        with telemetry.span(
            f"mode::{mode.name}",
            component="modes",
            metadata={"key": key.token, "mode": mode.name},
        ):
            result = mode.handle_key(session, key)
        if result.switch_to:
            self.enter(session, result.switch_to)
        return result

    def _announce(self, session: "EditorSession", previous: str) -> None:
        selecting = self.is_selecting(session)
        change = ModeChange(
            document_id=session.document_id,
            previous=previous,
            mode=session.mode,
            selecting=selecting,
        )
        telemetry.record_event(
            "mode.changed",
            data={"mode": session.mode, "previous": previous, "selecting": selecting},
        )
        self.bus.emit("mode.changed", change)


__all__ = ["ModeController", "NORMAL_MODE", "VISUAL_MODE"]
