"""``repeatLastChange`` and ``repeatLastUsedSelection``."""

from __future__ import annotations

from typing import Mapping, Optional

from modal_engine.keymaps.executor import CommandContext
from modal_engine.sentence import Word

from .keys import feed_keys


def replay_word(context: CommandContext, word: Word) -> None:
    """Run ``word`` again under the tracker's replay guard.

    Typed words are fed key by key in the mode they were typed in; the mode
    active before the replay is restored afterwards.
    """

    session = context.session
    engine = session.engine
    with engine.tracker.replaying():
        if word.command is not None:
            nested = context.matcher.nested(replaying=True)
            nested.run(word.command, word.mode, captured=word.captured)
            return
        previous = session.mode
        feed_keys(context, word.keys, word.mode, replaying=True)
        if session.mode != previous:
            engine.modes.enter(session, previous)


def _replay_or_report(context: CommandContext, word: Optional[Word]) -> None:
    if word is None:
        context.session.set_status("Nothing to repeat")
        return
    replay_word(context, word)


def repeat_last_change(context: CommandContext, args: Mapping[str, object]) -> None:
    del args
    last = context.engine.tracker.last
    _replay_or_report(context, last.verb if last else None)


def repeat_last_used_selection(
    context: CommandContext, args: Mapping[str, object]
) -> None:
    del args
    last = context.engine.tracker.last
    _replay_or_report(context, last.noun if last else None)


__all__ = ["repeat_last_change", "repeat_last_used_selection", "replay_word"]
