"""Executable Textual app that hosts the modal engine."""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

try:  # pragma: no cover - imported only when demo is run
    from textual import events
    from textual.app import App, ComposeResult
    from textual.containers import Vertical
    from textual.widgets import Footer, Header, Static
except ModuleNotFoundError as exc:  # pragma: no cover - friendly error for missing dep
    raise RuntimeError(
        "Install the 'textual' package to use modal_engine.adapters.textual.app"
    ) from exc

from modal_engine.buffer import Buffer, BufferView
from modal_engine.engine import ModalEngine
from modal_engine.keymaps import KeyTip
from modal_engine.runtime import telemetry

from .controller import TextualModalAdapter, TextualUIHooks, format_keytips

DEMO_BINDINGS: Dict[str, object] = {
    "h": {"modal.moveCursor": {"value": -1}},
    "l": {"modal.moveCursor": {"value": 1}},
    "j": {"modal.moveCursor": {"by": "line", "value": 1}},
    "k": {"modal.moveCursor": {"by": "line", "value": -1}},
    "i": "modal.enterInsert",
    "a": [{"modal.moveCursor": {"value": 1}}, "modal.enterInsert"],
    "R": {"modal.enterMode": {"mode": "replace"}},
    "v": "modal.toggleSelection",
    "<escape>": "modal.cancelSelection",
    "x": "modal.deleteSelection",
    "c": ["modal.deleteSelection", "modal.enterInsert"],
    "m": {"modal.selectBetween": {"from": "(", "to": ")"}},
    "/": "modal.search",
    "?": {"modal.search": {"backwards": True}},
    "n": "modal.nextMatch",
    "N": "modal.previousMatch",
    "f": {
        "modal.captureChar": {
            "executeAfter": {"modal.search": {"text": "__captured", "wrapAround": True}}
        }
    },
    "r": {
        "modal.captureChar": {
            "executeAfter": [
                "modal.deleteSelection",
                {"modal.insertText": {"text": "__captured"}},
            ]
        }
    },
    "u": "modal.undo",
    "U": "modal.redo",
    ".": "modal.repeatLastChange",
    ",": "modal.repeatLastUsedSelection",
    "q": "modal.toggleRecordingMacro",
    "@": "modal.replayMacro",
}


@dataclass
class UIState:
    buffer_text: str = ""
    status_text: str = ""
    mode_text: str = ""
    keytip_text: str = ""


def render_view(view: BufferView) -> str:
    """Buffer text with ``|`` at each caret and ``[...]`` around selections."""

    lines = view.text.split("\n")
    marks: Dict[tuple[int, int], str] = {}
    for sel in view.selections:
        if sel.is_empty:
            marks[sel.active] = marks.get(sel.active, "") + "|"
        else:
            marks[sel.start] = marks.get(sel.start, "") + "["
            marks[sel.end] = "]" + marks.get(sel.end, "")
    rendered = []
    for number, line in enumerate(lines):
        out = []
        for column in range(len(line) + 1):
            out.append(marks.get((number, column), ""))
            if column < len(line):
                out.append(line[column])
        rendered.append("".join(out))
    return "\n".join(rendered)


class ModalEngineApp(App[None]):
    """Minimal Textual UI embedding the modal engine."""

    CSS = """
	Screen {
		layout: vertical;
	}

	#buffer-view {
		height: 1fr;
		border: round $accent;
		padding: 1 1;
		content-align: left top;
		overflow: auto;
	}

	#mode-line {
		height: 1;
		background: $surface-darken-1;
		padding: 0 1;
	}

	#status-line {
		height: 1;
		background: $surface-darken-2;
		padding: 0 1;
	}

	#keytip-line {
		height: auto;
		max-height: 3;
		background: $surface-darken-2;
		padding: 0 1;
	}
	"""

    BINDINGS = [
        ("ctrl+c", "quit", "Quit"),
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(self, *, text: str = "", name: str = "scratch") -> None:
        super().__init__()
        self._state = UIState()
        self._text = text
        self._document_name = name
        self.engine: ModalEngine | None = None
        self.adapter: TextualModalAdapter | None = None
        self._buffer_widget: Static | None = None
        self._mode_widget: Static | None = None
        self._status_widget: Static | None = None
        self._keytip_widget: Static | None = None
        self.logger = telemetry.get_logger("modal_engine.adapters.textual")

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Vertical(id="buffer-area"):
            self._buffer_widget = Static("", id="buffer-view", markup=False)
            yield self._buffer_widget
        self._mode_widget = Static("", id="mode-line")
        self._status_widget = Static("", id="status-line", markup=False)
        self._keytip_widget = Static("", id="keytip-line", markup=False)
        yield self._mode_widget
        yield self._status_widget
        yield self._keytip_widget
        yield Footer()

    def on_mount(self) -> None:
        self.engine = ModalEngine()
        for issue in self.engine.load_bindings(DEMO_BINDINGS, source="demo"):
            self.logger.warning("demo binding %s: %s", issue.key, issue.message)
        hooks = TextualUIHooks(
            update_buffer=self._update_buffer,
            update_status=self._update_status,
            update_mode=self._update_mode,
            handle_event=self._handle_event,
            log=self.logger.debug,
            show_keytips=self._show_keytips,
        )
        buffer = Buffer.from_text(self._text, name=self._document_name)
        self.adapter = TextualModalAdapter(self.engine, buffer, hooks)

    async def on_key(self, event: events.Key) -> None:
        if not self.adapter or event.key in {"ctrl+c", "ctrl+q"}:
            return
        self.adapter.handle_textual_key(event.key, text=event.character)
        event.stop()

    def _update_buffer(self, view: BufferView) -> None:
        self._state.buffer_text = render_view(view)
        if self._buffer_widget:
            self._buffer_widget.update(self._state.buffer_text)

    def _update_status(self, status: str) -> None:
        self._state.status_text = status
        if self._status_widget:
            self._status_widget.update(status)

    def _update_mode(self, mode: str) -> None:
        self._state.mode_text = mode
        if self._mode_widget:
            self._mode_widget.update(f"-- {mode.upper()} --")

    def _show_keytips(self, tips: tuple[KeyTip, ...]) -> None:
        self._state.keytip_text = format_keytips(tips)
        if self._keytip_widget:
            self._keytip_widget.update(self._state.keytip_text)

    def _handle_event(self, name: str, payload: Any | None) -> None:
        if name == "macro.recording":
            self._update_status(f"recording @{payload}" if payload else "")


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the modal engine Textual demo.")
    parser.add_argument("path", nargs="?", help="File to load into the demo buffer")
    parser.add_argument(
        "--log-preset",
        choices=("development", "production", "performance"),
        default=None,
        help="Logging preset (default: MODAL_ENGINE_LOG_* environment variables)",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = _parse_args(argv)
    if args.log_preset:
        telemetry.configure(preset=args.log_preset)
    text, name = "", "scratch"
    if args.path:
        path = Path(args.path)
        text, name = path.read_text(encoding="utf-8"), path.name
    app = ModalEngineApp(text=text, name=name)
    app.run()


if __name__ == "__main__":  # pragma: no cover - manual demo
    main()
