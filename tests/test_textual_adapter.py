from __future__ import annotations

from typing import List, Optional

import pytest

from modal_engine.adapters.textual import (
    TextualModalAdapter,
    TextualUIHooks,
    format_keytips,
    normalize_textual_key,
)
from modal_engine.buffer import Buffer, BufferView
from modal_engine.engine import ModalEngine
from modal_engine.keymaps import KeyTip
from modal_engine.modes import ModeChange
from modal_engine.runtime import EngineSettings
from modal_engine.search import HighlightSet

BINDINGS = {
    "i": "modal.enterInsert",
    "/": "modal.search",
    "n": "modal.nextMatch",
    "<ctrl+w>": {"modal.moveCursor": {"value": 2}},
    "gi": "modal.enterInsert",
}


class Recorder:
    def __init__(self) -> None:
        self.buffers: List[BufferView] = []
        self.statuses: List[str] = []
        self.modes: List[str] = []
        self.events: List[tuple[str, object | None]] = []
        self.logs: List[str] = []
        self.keytips: List[tuple[KeyTip, ...]] = []

    def hooks(self) -> TextualUIHooks:
        return TextualUIHooks(
            update_buffer=self.buffers.append,
            update_status=self.statuses.append,
            update_mode=self.modes.append,
            handle_event=lambda name, payload: self.events.append((name, payload)),
            log=self.logs.append,
            show_keytips=self.keytips.append,
        )


def make_adapter(text: str = "") -> tuple[TextualModalAdapter, Buffer, Recorder]:
    engine = ModalEngine(settings=EngineSettings())
    assert engine.load_bindings(BINDINGS) == []
    buffer = Buffer.from_text(text)
    recorder = Recorder()
    adapter = TextualModalAdapter(engine, buffer, recorder.hooks())
    return adapter, buffer, recorder


@pytest.mark.parametrize(
    ("key", "character", "expected"),
    [
        ("escape", None, "<escape>"),
        ("enter", None, "<enter>"),
        ("space", " ", "<space>"),
        ("a", "a", "a"),
        ("question_mark", "?", "?"),
        ("f1", None, "<f1>"),
    ],
)
def test_normalize_textual_key(key: str, character: Optional[str], expected: str) -> None:
    assert normalize_textual_key(key, character) == expected


def test_adapter_updates_buffer_status_and_mode() -> None:
    adapter, buffer, recorder = make_adapter()
    assert recorder.modes == ["normal"]

    adapter.handle_textual_key("i", text="i")
    adapter.handle_textual_key("h", text="h")
    adapter.handle_textual_key("escape")

    assert buffer.text == "h"
    assert recorder.buffers[-1].text == "h"
    assert "insert" in recorder.modes
    assert recorder.modes[-1] == "normal"


def test_adapter_relays_engine_events() -> None:
    adapter, _buffer, recorder = make_adapter("one two")

    adapter.handle_textual_key("slash", text="/")
    adapter.handle_textual_key("t", text="t")

    names = [name for name, _payload in recorder.events]
    assert "mode.changed" in names
    assert "search.highlights" in names
    change = next(payload for name, payload in recorder.events if name == "mode.changed")
    assert isinstance(change, ModeChange)
    assert change.mode == "search"
    highlights = [
        payload for name, payload in recorder.events if name == "search.highlights"
    ]
    assert isinstance(highlights[-1], HighlightSet)
    assert recorder.statuses[-1] == "/t"


def test_adapter_shows_status_messages() -> None:
    adapter, _buffer, recorder = make_adapter("abc")

    adapter.handle_textual_key("n", text="n")

    assert recorder.statuses[-1] == "No previous search"
    assert ("status.changed", "No previous search") in recorder.events


def test_adapter_passes_modifiers_through() -> None:
    adapter, buffer, _recorder = make_adapter("abcdef")

    result = adapter.handle_textual_key("w", modifiers=["Ctrl"])

    assert result.consumed
    assert buffer.get_selections()[0].active == (0, 2)


def test_adapter_emits_log_lines() -> None:
    adapter, _buffer, recorder = make_adapter()

    adapter.handle_textual_key("i", text="i")

    assert any(line.startswith("key ->") for line in recorder.logs)
    assert any(line.startswith("result <-") for line in recorder.logs)
    assert any("mode='insert'" in line for line in recorder.logs)


def test_adapter_shows_keytips_while_sequence_is_pending() -> None:
    adapter, _buffer, recorder = make_adapter("abc")
    assert recorder.keytips == [()]

    adapter.handle_textual_key("g", text="g")

    assert recorder.keytips[-1] == (KeyTip("i", "Enter insert mode"),)
    assert format_keytips(recorder.keytips[-1]) == "i Enter insert mode"

    adapter.handle_textual_key("i", text="i")

    assert recorder.keytips[-1] == ()
    assert recorder.modes[-1] == "insert"


def test_format_keytips_joins_entries() -> None:
    tips = (KeyTip("d", "Delete line"), KeyTip("g", "+2 more", prefix=True))

    assert format_keytips(tips) == "d Delete line  g +2 more"
