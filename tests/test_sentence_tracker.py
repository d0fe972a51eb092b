from __future__ import annotations

import pytest

from modal_engine.errors import ReplayDepthExceeded
from modal_engine.keymaps import SingleCommand
from modal_engine.sentence import CLEAR_SELECTIONS, Sentence, SentenceTracker, Word


def type_word(tracker: SentenceTracker, keys: str, mode: str = "normal") -> None:
    for key in keys:
        tracker.begin_key(key, mode)
    tracker.end_word()


def test_word_requires_keys_or_command() -> None:
    with pytest.raises(ValueError):
        Word()
    assert Word.typed(["d", "w"], "normal").keys == ("d", "w")
    assert Word.invocation(SingleCommand("modal.undo"), "normal").is_direct


def test_text_change_finalizes_sentence_on_next_key() -> None:
    tracker = SentenceTracker()
    type_word(tracker, "dd")
    tracker.text_changed()

    tracker.begin_key("j", "normal")

    assert tracker.last == Sentence(
        noun=CLEAR_SELECTIONS, verb=Word.typed(("d", "d"), "normal")
    )
    assert tracker.current_keys == ("j",)


def test_text_change_settles_when_word_ends() -> None:
    tracker = SentenceTracker()
    tracker.begin_key("x", "normal")
    tracker.text_changed()

    tracker.end_word()

    assert tracker.last is not None
    assert tracker.last.verb == Word.typed(("x",), "normal")
    assert tracker.last_word is None


def test_extended_selection_becomes_pending_noun() -> None:
    tracker = SentenceTracker()
    type_word(tracker, "w")
    tracker.selection_changed(extended=True)
    type_word(tracker, "d")
    tracker.text_changed()
    tracker.end_word()

    assert tracker.last == Sentence(
        noun=Word.typed(("w",), "normal"), verb=Word.typed(("d",), "normal")
    )
    assert tracker.pending == Sentence()


def test_collapsed_selection_resets_noun() -> None:
    tracker = SentenceTracker()
    type_word(tracker, "w")
    tracker.selection_changed(extended=True)
    type_word(tracker, "h")
    tracker.selection_changed(extended=False)
    type_word(tracker, "l")

    assert tracker.pending.noun == CLEAR_SELECTIONS


def test_text_change_wins_over_selection_change() -> None:
    tracker = SentenceTracker()
    type_word(tracker, "w")
    tracker.selection_changed(extended=True)
    tracker.text_changed()

    tracker.begin_key("u", "normal")

    assert tracker.last is not None
    assert tracker.last.noun == CLEAR_SELECTIONS
    assert tracker.pending.noun == CLEAR_SELECTIONS


def test_untouch_suppresses_bookkeeping() -> None:
    tracker = SentenceTracker()
    type_word(tracker, "x")
    tracker.text_changed()
    tracker.begin_key("u", "normal")
    first = tracker.last

    tracker.text_changed()
    tracker.untouch()
    tracker.end_word()

    assert tracker.last is first
    assert tracker.last_word == Word.typed(("u",), "normal")


def test_touch_marks_command_as_change() -> None:
    tracker = SentenceTracker()
    tracker.begin_key("s", "normal")
    tracker.touch()

    tracker.end_word()

    assert tracker.last is not None
    assert tracker.last.verb == Word.typed(("s",), "normal")


def test_text_entry_modes_do_not_start_words() -> None:
    tracker = SentenceTracker()
    for mode in ("insert", "search", "capture", "replace"):
        tracker.begin_key("a", mode)
        assert tracker.current_keys == ()
        tracker.end_word()

    assert tracker.last_word is None


def test_record_invocation_sets_direct_word() -> None:
    tracker = SentenceTracker()
    command = SingleCommand("modal.insertText")

    tracker.record_invocation(command, "normal", "z")

    assert tracker.last_word == Word.invocation(command, "normal", "z")


def test_replaying_ignores_signals_and_words() -> None:
    tracker = SentenceTracker()
    type_word(tracker, "x")
    tracker.text_changed()
    tracker.begin_key(".", "normal")
    expected = tracker.last

    with tracker.replaying() as depth:
        assert depth == 1
        tracker.begin_key("x", "normal")
        tracker.text_changed()
        tracker.record_invocation(SingleCommand("other"), "normal")
        tracker.end_word()
    tracker.end_word()

    assert tracker.last is expected
    assert tracker.current_keys == ()
    assert not tracker.is_replaying


def test_replaying_nests_up_to_the_limit() -> None:
    tracker = SentenceTracker(max_replay_depth=2)

    with tracker.replaying():
        with tracker.replaying() as depth:
            assert depth == 2
            with pytest.raises(ReplayDepthExceeded):
                with tracker.replaying():
                    pass
        assert tracker.replay_depth == 1

    assert tracker.replay_depth == 0
