"""Words and sentences recorded for the repeat commands."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from modal_engine.keymaps.models import CommandSpec, SingleCommand


@dataclass(frozen=True, slots=True)
class Word:
    """Keys typed for one command, or a command invoked without keys.

    Exactly one of ``keys`` and ``command`` is meaningful: a word with a
    ``command`` is a direct invocation and ``captured`` is handed back to it
    when it is repeated.
    """

    keys: tuple[str, ...] = ()
    mode: str = "normal"
    command: Optional[CommandSpec] = None
    captured: Optional[str] = None

    def __post_init__(self) -> None:
        if self.command is None and not self.keys:
            raise ValueError("a word needs keys or a command")

    @classmethod
    def typed(cls, keys: tuple[str, ...] | list[str], mode: str) -> "Word":
        return cls(keys=tuple(keys), mode=mode)

    @classmethod
    def invocation(
        cls, command: CommandSpec, mode: str, captured: Optional[str] = None
    ) -> "Word":
        return cls(mode=mode, command=command, captured=captured)

    @property
    def is_direct(self) -> bool:
        return self.command is not None


CLEAR_SELECTIONS = Word.invocation(SingleCommand("modal.cancelSelection"), "normal")


@dataclass(frozen=True, slots=True)
class Sentence:
    """A noun (what got selected) followed by a verb (what changed it)."""

    noun: Word = CLEAR_SELECTIONS
    verb: Optional[Word] = None


__all__ = ["CLEAR_SELECTIONS", "Sentence", "Word"]
