"""Per-editor state: mode, key buffer, search sessions, capture, status."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterator, Optional

from modal_engine.buffer.document import text_between
from modal_engine.errors import ModalEngineError
from modal_engine.expressions import EvalContext
from modal_engine.host import EditorHost
from modal_engine.keymaps.executor import CommandContext
from modal_engine.keymaps.matcher import KeySequenceMatcher
from modal_engine.modes.capture_mode import CAPTURE_MODE, CaptureState
from modal_engine.runtime import telemetry
from modal_engine.search.interactive import InteractiveSearch

if TYPE_CHECKING:  # pragma: no cover
    from modal_engine.engine import ModalEngine

_SEVERITY_LEVELS = {
    "silent": logging.DEBUG,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class EditorSession:
    """Everything the engine keeps for one open editor.

    ``matcher`` is the matcher keys are currently fed to. It is the root
    matcher except while a nested resolution (``typeKeys``, macro or repeat
    replay) swaps in its own through ``using_matcher``.
    """

    def __init__(self, engine: "ModalEngine", host: EditorHost) -> None:
        self.engine = engine
        self.host = host
        self.mode = engine.settings.start_mode
        self.visual_flag = False
        self.root_matcher = KeySequenceMatcher(self, engine.resolver, engine.executor)
        self.matcher = self.root_matcher
        self.search = InteractiveSearch(self)
        self.capture: Optional[CaptureState] = None
        self.status = ""
        self.logger = telemetry.get_logger("modal_engine.session")

    @property
    def document_id(self) -> str:
        return self.host.document_id

    @property
    def waiting(self) -> bool:
        return self.matcher.waiting or self.root_matcher.waiting

    @contextmanager
    def using_matcher(self, matcher: KeySequenceMatcher) -> Iterator[KeySequenceMatcher]:
        previous, self.matcher = self.matcher, matcher
        try:
            yield matcher
        finally:
            self.matcher = previous

    def set_status(self, text: str) -> None:
        if text == self.status:
            return
        self.status = text
        self.engine.bus.emit("status.changed", text)

    def clear_status(self) -> None:
        self.set_status("")

    def report(self, error: ModalEngineError) -> None:
        """Log ``error`` at its severity and show it unless it is silent."""

        self.logger.log(
            _SEVERITY_LEVELS.get(error.severity, logging.ERROR),
            "%s: %s",
            type(error).__name__,
            error.message,
        )
        telemetry.record_event(
            "session.error",
            level="DEBUG",
            data={"error": type(error).__name__, "mode": self.mode},
        )
        if error.severity != "silent":
            self.set_status(error.user_message)

    def eval_context(self, context: Optional[CommandContext] = None) -> EvalContext:
        selections = self.host.get_selections()
        primary = selections[0]
        return EvalContext(
            count=context.count if context else None,
            selecting=self.engine.modes.is_selecting(self),
            mode=context.mode if context else self.engine.modes.effective_mode(self),
            captured=context.captured if context else None,
            selection=text_between(self.host, primary.start, primary.end),
            line=primary.active[0],
        )

    def abandon_pending(self) -> None:
        """Drop half-typed keys and any live search or capture.

        A search or capture in progress puts the editor back in the mode it
        was started from.
        """

        self.root_matcher.reset()
        self.matcher = self.root_matcher
        capture, self.capture = self.capture, None
        if self.search.cancel():
            return
        if capture is not None and self.mode == CAPTURE_MODE:
            self.engine.modes.enter(self, capture.previous_mode)


__all__ = ["EditorSession"]
