from __future__ import annotations

from typing import List, Mapping, Optional

from modal_engine.buffer import Buffer, Selection
from modal_engine.engine import ModalEngine
from modal_engine.modes import ModeChange
from modal_engine.runtime import EngineSettings
from modal_engine.sentence import CLEAR_SELECTIONS, Word

BINDINGS: Mapping[str, object] = {
    "h": {"modal.moveCursor": {"value": -1}},
    "l": {"modal.moveCursor": {"value": 1}},
    "j": {"modal.moveCursor": {"by": "line", "value": 1}},
    "L": {"modal.moveCursor": {"value": 1, "select": True}},
    "i": "modal.enterInsert",
    "v": "modal.toggleSelection",
    "visual::<escape>": "modal.cancelSelection",
    "x": "modal.deleteSelection",
    "/": "modal.search",
    "g/": {"modal.search": {"regex": True}},
    "S": {"modal.search": {"acceptAfter": 1}},
    "n": "modal.nextMatch",
    "N": "modal.previousMatch",
    "f": {
        "modal.captureChar": {
            "executeAfter": {"modal.search": {"text": "__captured", "offset": "start"}}
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
    "t": "modal.captureChar",
    "u": "modal.undo",
    ".": "modal.repeatLastChange",
    ",": "modal.repeatLastUsedSelection",
    "q": "modal.toggleRecordingMacro",
    "@": "modal.replayMacro",
    "C": {"modal.typeKeys": {"keys": "xi"}},
    "R": {"modal.enterMode": {"mode": "replace"}},
    "dd": "modal.ignore",
    "insert::jk": "modal.enterNormal",
    "window::l": {"modal.moveCursor": {"value": 2}},
    "window::<escape>": "modal.enterNormal",
}


def build(
    text: str = "", *, settings: Optional[EngineSettings] = None
) -> tuple[ModalEngine, Buffer]:
    engine = ModalEngine(settings=settings or EngineSettings())
    assert engine.load_bindings(BINDINGS) == []
    buffer = Buffer.from_text(text)
    engine.open(buffer)
    return engine, buffer


def press(engine: ModalEngine, keys: List[str] | str) -> None:
    for key in keys:
        engine.handle_key(key)


def cursor(buffer: Buffer) -> tuple[int, int]:
    return buffer.get_selections()[0].active


def test_insert_mode_types_unbound_keys_and_escape_returns() -> None:
    engine, buffer = build("world")

    press(engine, ["i", "h", "i", " ", "<escape>"])

    assert buffer.text == "hi world"
    assert engine.mode == "normal"


def test_digits_are_text_in_insert_mode() -> None:
    engine, buffer = build("")

    press(engine, "i42")

    assert buffer.text == "42"
    assert engine.mode == "insert"


def test_half_typed_insert_binding_types_both_keys() -> None:
    engine, buffer = build("")

    press(engine, "ija")
    assert buffer.text == "ja"

    press(engine, "jk")
    assert engine.mode == "normal"
    assert buffer.text == "ja"


def test_count_prefix_feeds_command() -> None:
    engine, buffer = build("abcdef")

    engine.handle_key("3")
    assert engine.status_text == "3"
    engine.handle_key("l")

    assert cursor(buffer) == (0, 3)
    assert engine.status_text == ""


def test_pending_keys_show_in_status_and_unbound_is_silent() -> None:
    engine, _buffer = build("abc")

    engine.handle_key("d")
    assert engine.status_text == "d"
    assert engine.flags.waiting

    result = engine.handle_key("z")

    assert result.consumed is False
    assert result.status == "unbound"
    assert engine.status_text == ""


def test_visual_is_normal_mode_with_selection() -> None:
    engine, buffer = build("abcdef")
    changes: List[ModeChange] = []
    engine.bus.subscribe("mode.changed", changes.append)

    engine.handle_key("v")
    assert engine.mode == "normal"
    assert engine.flags.mode == "visual"
    assert changes[-1].selecting

    engine.handle_key("l")
    assert buffer.get_selections()[0] == Selection((0, 0), (0, 1))

    engine.handle_key("<escape>")
    assert buffer.get_selections()[0] == Selection.caret((0, 1))
    assert engine.flags.mode == "normal"
    assert not engine.flags.selecting


def test_extended_selection_alone_means_visual() -> None:
    engine, _buffer = build("abcdef")

    engine.handle_key("L")

    assert engine.mode == "normal"
    assert engine.flags.mode == "visual"


def test_mode_changes_are_published() -> None:
    engine, _buffer = build("abc")
    changes: List[ModeChange] = []
    engine.bus.subscribe("mode.changed", changes.append)

    press(engine, ["i", "<escape>"])

    assert [(change.previous, change.mode) for change in changes] == [
        ("normal", "insert"),
        ("insert", "normal"),
    ]
    assert changes[0].document_id == "default"


def test_repeat_last_change_twice() -> None:
    engine, buffer = build("abcdef")

    press(engine, "x")
    assert buffer.text == "bcdef"
    press(engine, ".")
    assert buffer.text == "cdef"
    press(engine, ".")
    assert buffer.text == "def"


def test_repeat_with_nothing_recorded() -> None:
    engine, buffer = build("abc")

    engine.handle_key(".")

    assert engine.status_text == "Nothing to repeat"
    assert buffer.text == "abc"


def test_repeat_last_used_selection_then_change() -> None:
    engine, buffer = build("abcdef")

    press(engine, "Lx")
    assert buffer.text == "bcdef"
    last = engine.tracker.last
    assert last is not None
    assert last.noun == Word.typed(("L",), "normal")
    assert last.verb == Word.typed(("x",), "normal")

    engine.handle_key(",")
    assert buffer.get_selections()[0] == Selection((0, 0), (0, 1))

    engine.handle_key(".")
    assert buffer.text == "cdef"


def test_capture_replaces_character_and_repeats_with_captured_text() -> None:
    engine, buffer = build("abc")

    press(engine, "rz")

    assert buffer.text == "zbc"
    assert engine.mode == "normal"
    last = engine.tracker.last
    assert last is not None
    assert last.noun == CLEAR_SELECTIONS
    # the captured key never becomes part of a typed word
    assert last.verb.keys == ()
    assert last.verb.captured == "z"

    engine.handle_key(".")

    assert buffer.text == "zzc"


def test_capture_hands_text_to_search() -> None:
    engine, buffer = build("one two three")

    press(engine, "fh")

    assert cursor(buffer) == (0, 9)
    assert engine.mode == "normal"
    assert engine.tracker.current_keys == ()
    last_word = engine.tracker.last_word
    assert last_word is not None
    assert last_word.is_direct
    assert last_word.captured == "h"


def test_capture_escape_returns_without_running() -> None:
    engine, buffer = build("abc")

    press(engine, ["r", "<escape>"])

    assert engine.mode == "normal"
    assert buffer.text == "abc"


def test_capture_without_follow_up_warns() -> None:
    engine, buffer = build("abc")

    press(engine, "tq")

    assert engine.mode == "normal"
    assert "executeAfter" in engine.status_text
    assert buffer.text == "abc"


def test_incremental_search_and_accept() -> None:
    engine, buffer = build("one two three two")

    press(engine, "/t")
    assert engine.mode == "search"
    assert engine.status_text == "/t"
    assert cursor(buffer) == (0, 4)

    press(engine, "wo")
    assert cursor(buffer) == (0, 6)
    assert buffer.highlights == (Selection((0, 4), (0, 7)),)
    assert buffer.other_highlights == (Selection((0, 14), (0, 17)),)

    engine.handle_key("<enter>")
    assert engine.mode == "normal"
    assert cursor(buffer) == (0, 6)

    engine.handle_key("n")
    assert cursor(buffer) == (0, 16)

    engine.handle_key("N")
    assert cursor(buffer) == (0, 4)


def test_previous_match_after_forward_search_moves_to_earlier_match() -> None:
    engine, buffer = build("foo bar foo baz foo")
    buffer.set_selections([Selection((0, 5), (0, 5))])

    press(engine, ["/", "f", "o", "o", "<enter>"])
    assert cursor(buffer) == (0, 10)

    engine.handle_key("N")

    assert cursor(buffer) == (0, 0)


def test_backspace_shrinks_search_text() -> None:
    engine, buffer = build("one two three")

    press(engine, ["/", "t", "h", "<backspace>"])

    assert engine.session.search.text == "t"
    assert cursor(buffer) == (0, 4)


def test_cancel_search_restores_origin() -> None:
    engine, buffer = build("one two three")
    engine.handle_key("l")

    press(engine, ["/", "t", "<escape>"])

    assert engine.mode == "normal"
    assert cursor(buffer) == (0, 1)
    assert buffer.highlights == ()


def test_search_miss_reports_not_found() -> None:
    engine, buffer = build("one two")

    press(engine, "/z")

    assert engine.status_text == "Pattern not found"
    assert engine.mode == "search"
    assert cursor(buffer) == (0, 0)


def test_invalid_regex_keeps_search_open() -> None:
    engine, _buffer = build("a(b")

    press(engine, ["g", "/", "("])

    assert engine.mode == "search"
    assert engine.status_text.startswith("Invalid pattern")


def test_half_typed_search_binding_types_every_key() -> None:
    engine, buffer = build("one qa two")
    assert engine.load_bindings({"search::qq": "modal.ignore"}) == []

    press(engine, ["/", "q", "a"])

    assert engine.mode == "search"
    assert engine.status_text == "/qa"
    assert cursor(buffer) == (0, 5)


def test_invalid_regex_puts_selection_back_at_origin() -> None:
    engine, buffer = build("ab(c ab")

    press(engine, ["g", "/", "a", "b"])
    assert cursor(buffer) == (0, 6)
    assert buffer.highlights

    engine.handle_key("(")

    assert engine.mode == "search"
    assert cursor(buffer) == (0, 0)
    assert buffer.highlights == ()
    assert buffer.other_highlights == ()


def test_accept_after_finishes_search_and_records_invocation() -> None:
    engine, buffer = build("one two")

    press(engine, "St")

    assert engine.mode == "normal"
    assert cursor(buffer) == (0, 4)
    last_word = engine.tracker.last_word
    assert last_word is not None
    assert last_word.is_direct
    assert last_word.mode == "normal"


def test_next_match_without_search() -> None:
    engine, _buffer = build("abc")

    engine.handle_key("n")

    assert engine.status_text == "No previous search"


def test_macro_records_and_replays() -> None:
    engine, buffer = build("abcdef")
    recording: List[object] = []
    engine.bus.subscribe("macro.recording", recording.append)

    engine.handle_key("q")
    assert engine.flags.recording
    press(engine, "x")
    engine.handle_key("q")

    assert not engine.flags.recording
    assert recording == ["default", None]
    macro = engine.macros.get("default")
    assert macro is not None
    assert macro.keys == ["x"]

    engine.handle_key("@")
    assert buffer.text == "cdef"


def test_self_replaying_macro_hits_depth_limit() -> None:
    engine, buffer = build("abc", settings=EngineSettings(max_replay_depth=4))

    # the first '@' fails because the register is still empty
    press(engine, "q@q")
    assert engine.macros.get("default") is not None

    engine.handle_key("@")

    assert engine.status_text.startswith("Replay nested deeper than 4")
    assert engine.tracker.replay_depth == 0
    assert not engine.macros.is_replaying
    assert buffer.text == "abc"


def test_type_keys_runs_keys_outside_the_current_word() -> None:
    engine, buffer = build("abc")

    engine.handle_key("C")

    assert buffer.text == "bc"
    assert engine.mode == "insert"
    last = engine.tracker.last
    assert last is not None
    assert last.verb == Word.typed(("C",), "normal")


def test_undo_is_not_a_repeatable_change() -> None:
    engine, buffer = build("abc")

    press(engine, "xu")
    assert buffer.text == "abc"

    engine.handle_key(".")
    assert buffer.text == "bc"


def test_undo_with_empty_history() -> None:
    engine, _buffer = build("abc")

    engine.handle_key("u")

    assert engine.status_text == "Already at oldest change"


def test_replace_mode_overwrites() -> None:
    engine, buffer = build("abc")

    press(engine, ["R", "x", "y", "<escape>"])

    assert buffer.text == "xyc"
    assert engine.mode == "normal"


def test_user_defined_mode_uses_its_own_bindings() -> None:
    engine, buffer = build("abcdef")

    assert engine.run_command({"modal.enterMode": {"mode": "window"}})
    assert engine.mode == "window"

    engine.handle_key("l")
    assert cursor(buffer) == (0, 2)

    engine.handle_key("<escape>")
    assert engine.mode == "normal"


def test_focus_switch_drops_pending_keys_and_restores_modes() -> None:
    engine = ModalEngine(settings=EngineSettings())
    engine.load_bindings(BINDINGS)
    first = Buffer.from_text("one", name="one")
    second = Buffer.from_text("two", name="two")
    engine.open(first)

    engine.handle_key("i")
    engine.handle_key("<escape>")
    engine.handle_key("d")
    assert engine.flags.waiting

    engine.open(second)
    assert engine.mode == "normal"
    engine.handle_key("i")

    engine.focus("one")
    assert engine.mode == "normal"
    assert not engine.flags.waiting

    engine.focus("two")
    assert engine.mode == "insert"


def test_focus_switch_during_search_returns_to_origin_mode() -> None:
    engine = ModalEngine(settings=EngineSettings())
    engine.load_bindings(BINDINGS)
    first = Buffer.from_text("one two", name="one")
    second = Buffer.from_text("two", name="two")
    engine.open(first)

    press(engine, ["/", "t"])
    assert engine.mode == "search"
    assert first.get_selections()[0].active == (0, 4)

    engine.open(second)
    engine.focus("one")

    assert engine.mode == "normal"
    assert engine.session.search.active is None
    assert first.get_selections()[0].active == (0, 0)
    press(engine, ["<escape>", "l"])
    assert engine.mode == "normal"
    assert first.get_selections()[0].active == (0, 1)


def test_focus_switch_during_capture_returns_to_origin_mode() -> None:
    engine = ModalEngine(settings=EngineSettings())
    engine.load_bindings(BINDINGS)
    first = Buffer.from_text("one", name="one")
    second = Buffer.from_text("two", name="two")
    engine.open(first)

    engine.handle_key("t")
    assert engine.mode == "capture"

    engine.open(second)
    engine.focus("one")

    assert engine.mode == "normal"
    assert engine.session.capture is None


def test_cancel_leaves_search_mode_without_live_search() -> None:
    engine, _buffer = build("abc")
    session = engine.session
    session.mode = "search"

    assert session.search.cancel() is True
    assert engine.mode == "normal"


def test_signals_from_other_documents_are_ignored() -> None:
    engine, _buffer = build("abc")

    engine.text_changed("elsewhere")
    engine.handle_key("l")

    assert engine.tracker.last is None


def test_close_detaches_host() -> None:
    engine, buffer = build("abc")

    engine.close(buffer.document_id)

    assert buffer.document_id not in engine.sessions
    assert engine.modes.persisted_mode(buffer.document_id) is None
