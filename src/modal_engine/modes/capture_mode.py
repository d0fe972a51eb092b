"""Capture mode: collect N keys, then hand them to a follow-up command."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional

from modal_engine.errors import MissingExecuteAfterCommand
from modal_engine.keymaps.models import CommandSpec

from .base_mode import KeyInput, Mode, ModeResult

if TYPE_CHECKING:  # pragma: no cover
    from modal_engine.session import EditorSession

CAPTURE_MODE = "capture"


@dataclass(slots=True)
class CaptureState:
    """One pending ``captureChar`` invocation."""

    accept_after: int
    execute_after: Optional[CommandSpec]
    previous_mode: str
    count: Optional[int] = None
    keys: List[str] = field(default_factory=list)

    @property
    def text(self) -> str:
        return "".join(self.keys)


class CaptureMode(Mode):
    name = CAPTURE_MODE

    def on_exit(self, session: "EditorSession", next_mode: Optional[str]) -> None:
        del next_mode
        session.capture = None

    def handle_key(self, session: "EditorSession", key: KeyInput) -> ModeResult:
        state = session.capture
        if state is None:
            # entered without captureChar; nothing to feed
            return ModeResult(consumed=False, switch_to="normal", status="capture")
        token = key.token
        if token == "<escape>":
            session.engine.modes.enter(session, state.previous_mode)
            return ModeResult(consumed=True, status="cancelled")
        if token != "<enter>":
            state.keys.append(key.printable or token)
            if len(state.keys) < state.accept_after:
                return ModeResult(consumed=True, status="pending", message=state.text)
        self.finish(session, state)
        return ModeResult(consumed=True, status="captured", message=state.text)

    def finish(self, session: "EditorSession", state: CaptureState) -> None:
        """Return to the previous mode and run the follow-up with the text."""

        engine = session.engine
        engine.modes.enter(session, state.previous_mode)
        captured = state.text
        if state.execute_after is None:
            session.report(MissingExecuteAfterCommand(captured))
            return
        self.logger.debug("captured %r", captured)
        nested = session.matcher.nested()
        nested.run(
            state.execute_after,
            state.previous_mode,
            captured=captured,
            count=state.count,
        )
        engine.tracker.record_invocation(
            state.execute_after, state.previous_mode, captured
        )


__all__ = ["CAPTURE_MODE", "CaptureMode", "CaptureState"]
