"""Entry point wiring the shared components to one session per editor."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional

from modal_engine.expressions import ExpressionEvaluator, SafeEvaluator
from modal_engine.host import EditorHost
from modal_engine.keymaps.defaults import load_default_keymaps, register_default_actions
from modal_engine.keymaps.executor import CommandExecutor
from modal_engine.keymaps.parsing import BindingIssue, load_bindings, parse_command
from modal_engine.keymaps.registry import KeymapRegistry
from modal_engine.keymaps.resolver import KeymapResolver, KeyTip
from modal_engine.macros import MacroRecorder
from modal_engine.modes import (
    CaptureMode,
    InsertMode,
    KeyInput,
    KeymapMode,
    ModeBus,
    ModeController,
    ModeResult,
    ReplaceMode,
    SearchMode,
)
from modal_engine.runtime import telemetry
from modal_engine.runtime.settings import EngineSettings
from modal_engine.search import SearchEngine
from modal_engine.sentence import SentenceTracker
from modal_engine.session import EditorSession


@dataclass(frozen=True, slots=True)
class EngineFlags:
    """Host-observable state for conditional key routing and help text."""

    mode: str
    selecting: bool
    waiting: bool
    recording: bool


class ModalEngine:
    """Turns key events into commands for whichever editor has focus.

    The binding table, mode handlers, sentence tracker and macro registers
    are shared; everything tied to one editor lives on its ``EditorSession``.
    Hosts report edits and selection moves through ``text_changed`` and
    ``selection_changed`` (the ``HostSignals`` protocol).
    """

    def __init__(
        self,
        *,
        settings: Optional[EngineSettings] = None,
        registry: Optional[KeymapRegistry] = None,
        evaluator: Optional[ExpressionEvaluator] = None,
        load_defaults: bool = True,
    ) -> None:
        self.settings = settings or EngineSettings.from_env()
        self.logger = telemetry.get_logger("modal_engine.engine")
        self.bus = ModeBus()
        self.registry = registry or KeymapRegistry(logger_name="modal_engine.keymaps")
        if load_defaults:
            load_default_keymaps(self.registry)
        else:
            register_default_actions(self.registry)
        self.resolver = KeymapResolver(self.registry)
        self.evaluator = evaluator or SafeEvaluator()
        self.executor = CommandExecutor(
            self.registry, self.evaluator, max_repeat=self.settings.max_repeat
        )
        self.modes = ModeController(self.bus, start_mode=self.settings.start_mode)
        for mode in (
            KeymapMode("normal"),
            InsertMode(),
            SearchMode(),
            CaptureMode(),
            ReplaceMode(),
        ):
            self.modes.register_mode(mode)
        self.search = SearchEngine(logger_name="modal_engine.search")
        self.tracker = SentenceTracker(max_replay_depth=self.settings.max_replay_depth)
        self.macros = MacroRecorder()
        self.sessions: Dict[str, EditorSession] = {}
        self._active: Optional[EditorSession] = None

    # -- editors ----------------------------------------------------------

    def open(self, host: EditorHost, *, focus: bool = True) -> EditorSession:
        session = self.sessions.get(host.document_id)
        if session is None or session.host is not host:
            session = EditorSession(self, host)
            self.sessions[host.document_id] = session
            host.attach(self)
        if focus:
            self.focus(host.document_id)
        return session

    def focus(self, document_id: str) -> EditorSession:
        """Make ``document_id`` the active editor and restore its mode."""

        target = self.sessions[document_id]
        previous = self._active
        if previous is not None and previous is not target:
            # nothing half-typed survives an editor switch
            previous.abandon_pending()
        self._active = target
        self.modes.restore(target)
        return target

    def close(self, document_id: str) -> None:
        session = self.sessions.pop(document_id, None)
        if session is None:
            return
        session.abandon_pending()
        session.host.attach(None)
        self.modes.forget(document_id)
        if self._active is session:
            self._active = None

    @property
    def session(self) -> EditorSession:
        if self._active is None:
            raise RuntimeError("No active editor; call open() first")
        return self._active

    @property
    def mode(self) -> str:
        return self.session.mode

    @property
    def flags(self) -> EngineFlags:
        session = self.session
        return EngineFlags(
            mode=self.modes.effective_mode(session),
            selecting=self.modes.is_selecting(session),
            waiting=session.waiting,
            recording=self.macros.is_recording,
        )

    @property
    def status_text(self) -> str:
        """Transient message, else the search text, else the pending keys."""

        session = self.session
        if session.status:
            return session.status
        if session.search.active is not None:
            return f"/{session.search.text}"
        matcher = session.root_matcher
        if matcher.waiting:
            return matcher.pending_keys
        return ""

    @property
    def keytips(self) -> tuple[KeyTip, ...]:
        """Help for the keys that can follow what the user has half-typed."""

        return self.session.root_matcher.keytips()

    # -- keys ---------------------------------------------------------------

    def handle_key(self, key: str | KeyInput) -> ModeResult:
        """Process one key event typed by the user in the active editor."""

        session = self.session
        key_input = key if isinstance(key, KeyInput) else KeyInput(key)
        token = key_input.token
        session.clear_status()
        self.macros.record(token, session.mode)
        self.tracker.begin_key(token, session.mode)
        with telemetry.span(
            "engine::handle_key",
            component="engine",
            metadata={"key": token, "mode": session.mode},
        ) as handle:
            result = self.modes.handle_key(session, key_input)
            handle.add_metadata("status", result.status)
        if not session.root_matcher.waiting:
            self.tracker.end_word()
            self.macros.commit()
        return result

    def dispatch(self, session: EditorSession, key: str | KeyInput) -> ModeResult:
        """Route a replayed key to the mode handler, bypassing the taps."""

        key_input = key if isinstance(key, KeyInput) else KeyInput(key)
        return self.modes.handle_key(session, key_input)

    def run_command(self, command: object) -> bool:
        """Execute a command value as if a binding had produced it."""

        session = self.session
        spec = parse_command(command)
        return session.root_matcher.run(
            spec, self.modes.effective_mode(session)
        )

    def load_bindings(
        self, table: Mapping[str, object], *, source: Optional[str] = None
    ) -> List[BindingIssue]:
        issues = load_bindings(self.registry, table, source=source)
        for issue in issues:
            self.logger.warning("binding %r: %s", issue.key, issue.message)
        return issues

    # -- HostSignals ----------------------------------------------------------

    def text_changed(self, document_id: str) -> None:
        if self._active is not None and self._active.document_id == document_id:
            self.tracker.text_changed()

    def selection_changed(self, document_id: str, extended: bool) -> None:
        if self._active is not None and self._active.document_id == document_id:
            self.tracker.selection_changed(extended)


__all__ = ["EngineFlags", "ModalEngine"]
