"""Per-editor search flow: prompt, incremental navigation, accept and cancel."""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, List, Optional, Sequence

from modal_engine.buffer.state import Selection
from modal_engine.errors import InvalidPattern
from modal_engine.keymaps.models import ParameterizedCommand
from modal_engine.keymaps.parsing import parse_command
from modal_engine.runtime import telemetry

from .engine import HighlightSet, SearchHit
from .models import SearchArgs, SearchOptions, SearchSession

if TYPE_CHECKING:  # pragma: no cover
    from modal_engine.session import EditorSession

SEARCH_MODE = "search"
NOT_FOUND = "Pattern not found"

logger = telemetry.get_logger("modal_engine.search.interactive")


class InteractiveSearch:
    """Search sessions of one editor, keyed by register.

    ``active`` is set only while the editor is in search mode. Finished
    sessions stay in ``sessions`` so ``nextMatch``/``previousMatch`` can reuse
    their text and options.
    """

    def __init__(self, session: "EditorSession") -> None:
        self.session = session
        self.sessions: Dict[str, SearchSession] = {}
        self.active: Optional[SearchSession] = None
        self.last_register: Optional[str] = None

    @property
    def text(self) -> str:
        return self.active.text if self.active else ""

    def start(self, args: SearchArgs) -> SearchSession:
        """Begin a search; with ``args.text`` it runs to completion at once."""

        session = self.session
        state = SearchSession(
            args=args,
            origin=tuple(session.host.get_selections()),
            old_mode=session.mode,
            text=args.text or "",
        )
        self.sessions[args.register] = state
        self.last_register = args.register
        if args.text is not None:
            self._navigate(state)
            self._run_execute_after(state)
            return state
        self.active = state
        session.engine.modes.enter(session, SEARCH_MODE)
        self._navigate(state)
        return state

    def type_text(self, text: str) -> None:
        state = self.active
        if state is None:
            return
        state.text += text
        self._navigate(state)
        accept_after = state.args.accept_after
        if accept_after is not None and len(state.text) >= accept_after:
            self.accept()

    def delete_last_char(self) -> None:
        state = self.active
        if state is None or not state.text:
            return
        state.text = state.text[:-1]
        self._navigate(state)

    def accept(self) -> bool:
        state = self.active
        if state is None:
            return False
        session = self.session
        self.active = None
        # leave search mode before the follow-up command runs
        if session.mode == SEARCH_MODE:
            session.engine.modes.enter(session, state.old_mode)
        self._run_execute_after(state)
        session.engine.tracker.record_invocation(
            ParameterizedCommand("modal.search", state.args.to_args(state.text)),
            state.old_mode,
        )
        telemetry.record_event(
            "search.accept",
            data={"register": state.register, "found": state.found},
        )
        return True

    def cancel(self) -> bool:
        state = self.active
        session = self.session
        if state is None:
            if session.mode != SEARCH_MODE:
                return False
            # search mode with no live search has no origin mode to return to
            session.engine.modes.enter(session, "normal")
            return True
        self.abandon()
        if session.mode == SEARCH_MODE:
            session.engine.modes.enter(session, state.old_mode)
        return True

    def abandon(self) -> None:
        """Drop the active search and put the origin selections back."""

        state = self.active
        if state is None:
            return
        self.active = None
        self.session.host.set_selections(state.origin)
        self.clear_highlights()
        logger.debug("search in register %r abandoned", state.register)

    def repeat(self, register: Optional[str] = None, *, reverse: bool = False) -> bool:
        """Search again for the text of a finished session from the current selections."""

        key = register or self.last_register
        state = self.sessions.get(key) if key is not None else None
        if state is None or not state.text:
            self.session.set_status("No previous search")
            return False
        options = state.args.options.reversed() if reverse else state.args.options
        origins = tuple(self.session.host.get_selections())
        hits = self._find(origins, state.text, options)
        self._apply(state, origins, hits, options)
        return state.found

    def clear_highlights(self) -> None:
        self.session.host.set_highlights((), ())
        self.session.engine.bus.emit("search.highlights", HighlightSet())

    # -- internals --------------------------------------------------------

    def _navigate(self, state: SearchSession) -> None:
        host = self.session.host
        if not state.text:
            state.found = True
            host.set_selections(state.origin)
            self.clear_highlights()
            return
        try:
            hits = self._find(state.origin, state.text, state.args.options)
        except InvalidPattern:
            state.found = False
            host.set_selections(state.origin)
            self.clear_highlights()
            raise
        self._apply(state, state.origin, hits, state.args.options)

    def _find(
        self, origins: Sequence[Selection], text: str, options: SearchOptions
    ) -> List[Optional[SearchHit]]:
        return self.session.engine.search.find(self.session.host, origins, text, options)

    def _apply(
        self,
        state: SearchSession,
        origins: Sequence[Selection],
        hits: Sequence[Optional[SearchHit]],
        options: SearchOptions,
    ) -> None:
        host = self.session.host
        landed = [
            hit.selection if hit is not None else origin
            for origin, hit in zip(origins, hits)
        ]
        state.found = any(hit is not None for hit in hits)
        host.set_selections(landed)
        if state.found:
            host.reveal(landed[0].active)
        else:
            self.session.set_status(NOT_FOUND)
        if state.args.highlight_matches:
            current = [hit.match for hit in hits if hit is not None]
            highlights = self.session.engine.search.highlights(
                host, host.visible_line_ranges(), state.text, options, current
            )
            state.highlights = highlights.current
            state.other_highlights = highlights.others
            host.set_highlights(highlights.current, highlights.others)
            self.session.engine.bus.emit("search.highlights", highlights)

    def _run_execute_after(self, state: SearchSession) -> None:
        raw = state.args.execute_after
        if raw is None:
            return
        spec = parse_command(raw)
        session = self.session
        session.matcher.nested().run(spec, session.mode)


__all__ = ["InteractiveSearch", "NOT_FOUND", "SEARCH_MODE"]
