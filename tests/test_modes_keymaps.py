from __future__ import annotations

from typing import List

import pytest

from modal_engine.buffer import Buffer, Selection
from modal_engine.engine import ModalEngine
from modal_engine.modes import (
    CaptureMode,
    KeyInput,
    KeymapMode,
    ModeBus,
    ModeChange,
)
from modal_engine.runtime import EngineSettings


def make_engine(text: str = "abc") -> tuple[ModalEngine, Buffer]:
    engine = ModalEngine(settings=EngineSettings())
    engine.load_bindings(
        {
            "i": "modal.enterInsert",
            "/": "modal.search",
            "l": {"modal.moveCursor": {"value": 1}},
        }
    )
    buffer = Buffer.from_text(text)
    engine.open(buffer)
    return engine, buffer


@pytest.mark.parametrize(
    ("event", "token", "printable"),
    [
        (KeyInput("a"), "a", "a"),
        (KeyInput("escape"), "<escape>", None),
        (KeyInput("<Esc>"), "<escape>", None),
        (KeyInput(" "), "<space>", " "),
        (KeyInput("w", modifiers=("ctrl",)), "<ctrl+w>", None),
        (KeyInput("question_mark", text="?"), "<question_mark>", "?"),
    ],
)
def test_key_input_token_and_printable(
    event: KeyInput, token: str, printable: str | None
) -> None:
    assert event.token == token
    assert event.printable == printable


def test_mode_bus_subscribe_and_unsubscribe() -> None:
    bus = ModeBus()
    seen: List[object] = []

    bus.subscribe("ping", seen.append)
    bus.emit("ping", 1)
    bus.unsubscribe("ping", seen.append)
    bus.emit("ping", 2)

    assert seen == [1]


def test_register_mode_rejects_duplicates() -> None:
    engine, _buffer = make_engine()

    with pytest.raises(ValueError):
        engine.modes.register_mode(KeymapMode("normal"))
    engine.modes.register_mode(KeymapMode("normal"), replace=True)


def test_unknown_mode_becomes_binding_table_mode() -> None:
    engine, _buffer = make_engine()

    handler = engine.modes.handler_for("window")

    assert isinstance(handler, KeymapMode)
    assert handler.name == "window"
    assert engine.modes.handler_for("window") is handler


def test_visual_is_never_stored() -> None:
    engine, _buffer = make_engine()
    session = engine.session

    engine.modes.enter(session, "visual")

    assert session.mode == "normal"
    assert session.visual_flag
    assert engine.modes.effective_mode(session) == "visual"
    assert engine.modes.persisted_mode(session.document_id) == "normal"


def test_effective_mode_follows_host_selection() -> None:
    engine, buffer = make_engine()
    session = engine.session

    buffer.set_selections([Selection((0, 0), (0, 2))])
    assert engine.modes.effective_mode(session) == "visual"

    engine.modes.enter(session, "insert")
    assert engine.modes.effective_mode(session) == "insert"


def test_enter_announces_every_transition() -> None:
    engine, _buffer = make_engine()
    session = engine.session
    changes: List[ModeChange] = []
    engine.bus.subscribe("mode.changed", changes.append)

    engine.modes.enter(session, "insert")
    engine.modes.enter(session, "insert")

    assert [(c.previous, c.mode) for c in changes] == [
        ("normal", "insert"),
        ("insert", "insert"),
    ]


def test_mode_change_discards_half_typed_keys() -> None:
    engine, _buffer = make_engine()
    engine.load_bindings({"gg": "modal.ignore"})
    session = engine.session

    engine.handle_key("g")
    assert session.root_matcher.waiting

    engine.modes.enter(session, "insert")

    assert not session.root_matcher.waiting


def test_leaving_search_mode_abandons_search() -> None:
    engine, buffer = make_engine("one two")

    engine.handle_key("/")
    engine.handle_key("t")
    assert buffer.get_selections()[0].active == (0, 4)

    engine.run_command({"modal.enterMode": {"mode": "normal"}})

    assert engine.mode == "normal"
    assert engine.session.search.active is None
    assert buffer.get_selections()[0].active == (0, 0)


def test_restore_uses_start_mode_for_new_documents() -> None:
    engine = ModalEngine(settings=EngineSettings(start_mode="insert"))
    buffer = Buffer.from_text("")

    engine.open(buffer)

    assert engine.mode == "insert"


def test_capture_mode_without_state_falls_back_to_normal() -> None:
    engine, _buffer = make_engine()
    session = engine.session
    session.mode = "capture"

    result = CaptureMode().handle_key(session, KeyInput("x"))

    assert result.consumed is False
    assert result.switch_to == "normal"


def test_controller_applies_switch_requests() -> None:
    engine, _buffer = make_engine()
    session = engine.session
    session.mode = "capture"

    engine.dispatch(session, "x")

    assert session.mode == "normal"


def test_unbound_key_in_normal_mode_is_not_consumed() -> None:
    engine, _buffer = make_engine()

    result = engine.handle_key("z")

    assert result.consumed is False
    assert engine.session.status == ""
