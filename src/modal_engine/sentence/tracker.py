"""Noun/verb bookkeeping behind ``repeatLastChange`` and ``repeatLastUsedSelection``.

The host reports edits and selection moves through explicit signals. They are
settled at fixed points (when a word ends and when the next key arrives) so
that their arrival order relative to key events never matters:

* a text change turns the pending sentence plus the last word into the last
  sentence, then seeds a fresh pending sentence whose noun clears selections;
* otherwise a selection change makes the last word the pending noun when the
  selection was extended, or resets the noun to "clear selections".
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, List, Optional

from modal_engine.errors import ReplayDepthExceeded
from modal_engine.keymaps.models import TEXT_ENTRY_MODES, CommandSpec
from modal_engine.runtime import telemetry
from modal_engine.runtime.settings import DEFAULT_MAX_REPLAY_DEPTH

from .models import CLEAR_SELECTIONS, Sentence, Word

logger = telemetry.get_logger("modal_engine.sentence")


class SentenceTracker:
    def __init__(self, *, max_replay_depth: int = DEFAULT_MAX_REPLAY_DEPTH) -> None:
        self.max_replay_depth = max_replay_depth
        self.last_word: Optional[Word] = None
        self.pending = Sentence()
        self.last: Optional[Sentence] = None
        self._keys: List[str] = []
        self._mode: Optional[str] = None
        self._text_changed = False
        self._selection_changed = False
        self._extended = False
        self._untouched = False
        self._depth = 0

    # -- signals ----------------------------------------------------------

    def text_changed(self) -> None:
        if not self._depth:
            self._text_changed = True

    def selection_changed(self, extended: bool) -> None:
        if not self._depth:
            self._selection_changed = True
            self._extended = self._extended or extended

    def touch(self) -> None:
        """Treat the current command as a change even if no text moved."""

        if not self._depth:
            self._text_changed = True
            self._untouched = False

    def untouch(self) -> None:
        """Treat the current command as no change (undo, redo, ...)."""

        if not self._depth:
            self._untouched = True

    # -- words ------------------------------------------------------------

    @property
    def current_keys(self) -> tuple[str, ...]:
        return tuple(self._keys)

    @property
    def replay_depth(self) -> int:
        return self._depth

    @property
    def is_replaying(self) -> bool:
        return self._depth > 0

    def begin_key(self, key: str, mode: str) -> None:
        if self._depth:
            return
        self.settle()
        if mode in TEXT_ENTRY_MODES:
            return
        if not self._keys:
            self._mode = mode
        self._keys.append(key)

    def end_word(self) -> None:
        if self._depth:
            return
        if self._keys and self._mode is not None:
            self.last_word = Word.typed(self._keys, self._mode)
        self._keys.clear()
        self._mode = None
        self.settle()

    def discard_word(self) -> None:
        self._keys.clear()
        self._mode = None

    def record_invocation(
        self, command: CommandSpec, mode: str, captured: Optional[str] = None
    ) -> None:
        """Remember a command that ran without being typed as keys."""

        if self._depth:
            return
        self.last_word = Word.invocation(command, mode, captured)

    def settle(self) -> None:
        """Apply the signals received since the last settle."""

        text, selection, extended = (
            self._text_changed,
            self._selection_changed,
            self._extended,
        )
        untouched = self._untouched
        self._clear_signals()
        if untouched:
            return
        if text:
            if self.last_word is not None:
                self.last = Sentence(noun=self.pending.noun, verb=self.last_word)
                logger.debug("sentence finalized: %s", self.last)
                # one mutation finalizes at most one sentence
                self.last_word = None
            self.pending = Sentence()
        elif selection:
            if extended and self.last_word is not None:
                self.pending = Sentence(noun=self.last_word)
            else:
                self.pending = Sentence(noun=CLEAR_SELECTIONS)

    # -- replay guard -----------------------------------------------------

    @contextmanager
    def replaying(self) -> Iterator[int]:
        """Ignore signals and words while a repeat or macro replays.

        Guards nest; the word of the key that started the outermost replay is
        dropped so the repeat command never becomes a word itself.
        """

        if self._depth >= self.max_replay_depth:
            raise ReplayDepthExceeded(self.max_replay_depth)
        self._depth += 1
        try:
            yield self._depth
        finally:
            self._depth -= 1
            if not self._depth:
                self.discard_word()
                self._clear_signals()

    def _clear_signals(self) -> None:
        self._text_changed = False
        self._selection_changed = False
        self._extended = False
        self._untouched = False


__all__ = ["SentenceTracker", "TEXT_ENTRY_MODES"]
