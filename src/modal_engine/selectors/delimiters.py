"""Grow or shrink a selection to the text between two delimiters."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

from modal_engine.buffer.document import LineSource
from modal_engine.buffer.state import Position, Selection
from modal_engine.errors import InvalidCommandArguments, InvalidPattern

_COMMAND = "modal.selectBetween"


@dataclass(frozen=True, slots=True)
class BetweenArgs:
    """Arguments of ``selectBetween``; ``from``/``to`` are the delimiters."""

    from_: Optional[str] = None
    to: Optional[str] = None
    regex: bool = False
    inclusive: bool = False
    case_sensitive: bool = False
    doc_scope: bool = False

    @classmethod
    def from_args(cls, args: Mapping[str, object]) -> "BetweenArgs":
        return cls(
            from_=_delimiter(args, "from"),
            to=_delimiter(args, "to"),
            regex=_flag(args, "regex"),
            inclusive=_flag(args, "inclusive"),
            case_sensitive=_flag(args, "caseSensitive"),
            doc_scope=_flag(args, "docScope"),
        )


def _delimiter(args: Mapping[str, object], key: str) -> Optional[str]:
    value = args.get(key)
    if value is not None and not isinstance(value, str):
        raise InvalidCommandArguments(_COMMAND, f"'{key}' must be a string")
    return value or None


def _flag(args: Mapping[str, object], key: str) -> bool:
    value = args.get(key, False)
    if not isinstance(value, bool):
        raise InvalidCommandArguments(_COMMAND, f"'{key}' must be a boolean")
    return value


class _Scope:
    """Text of the current line or the whole document plus offset mapping."""

    def __init__(self, source: LineSource, selection: Selection, doc_scope: bool) -> None:
        if doc_scope:
            self.first_line = 0
            last_line = source.line_count() - 1
        else:
            self.first_line, last_line = selection.start[0], selection.end[0]
        self._lines = [
            source.line_at(index) for index in range(self.first_line, last_line + 1)
        ]
        self.text = "\n".join(self._lines)

    def offset(self, position: Position) -> int:
        line, column = position
        line = min(max(line, self.first_line), self.first_line + len(self._lines) - 1)
        relative = line - self.first_line
        before = sum(len(text) + 1 for text in self._lines[:relative])
        return before + min(column, len(self._lines[relative]))

    def position(self, offset: int) -> Position:
        running = 0
        for index, text in enumerate(self._lines):
            if offset <= running + len(text):
                return (self.first_line + index, offset - running)
            running += len(text) + 1
        last = len(self._lines) - 1
        return (self.first_line + last, len(self._lines[last]))


def _find_last(
    haystack: str, needle: str, *, regex: bool, case_sensitive: bool
) -> Optional[Tuple[int, int]]:
    if regex:
        compiled = _compile(needle, case_sensitive)
        last = None
        for match in compiled.finditer(haystack):
            last = match.span()
        return last
    if not case_sensitive:
        haystack, needle = haystack.lower(), needle.lower()
    index = haystack.rfind(needle)
    return None if index == -1 else (index, index + len(needle))


def _find_first(
    haystack: str, needle: str, *, regex: bool, case_sensitive: bool
) -> Optional[Tuple[int, int]]:
    if regex:
        match = _compile(needle, case_sensitive).search(haystack)
        return match.span() if match else None
    if not case_sensitive:
        haystack, needle = haystack.lower(), needle.lower()
    index = haystack.find(needle)
    return None if index == -1 else (index, index + len(needle))


def _compile(pattern: str, case_sensitive: bool) -> re.Pattern[str]:
    try:
        return re.compile(pattern, 0 if case_sensitive else re.IGNORECASE)
    except re.error as exc:
        raise InvalidPattern(pattern, str(exc)) from exc


def select_between(
    source: LineSource, selection: Selection, args: BetweenArgs
) -> Selection:
    """Selection spanning the text between ``args.from_`` and ``args.to``.

    The left delimiter is the last one before the selection's low bound, the
    right delimiter the first one after its high bound. A delimiter that is
    not found falls back to the scope boundary; an omitted one keeps the
    current bound. Direction is preserved.
    """

    if args.from_ is None and args.to is None:
        return selection

    scope = _Scope(source, selection, args.doc_scope)
    low = scope.offset(selection.start)
    high = scope.offset(selection.end)
    left, right = low, high

    if args.from_ is not None:
        hit = _find_last(
            scope.text[:low],
            args.from_,
            regex=args.regex,
            case_sensitive=args.case_sensitive,
        )
        if hit is None:
            left = 0
        else:
            left = hit[0] if args.inclusive else hit[1]

    if args.to is not None:
        hit = _find_first(
            scope.text[high:],
            args.to,
            regex=args.regex,
            case_sensitive=args.case_sensitive,
        )
        if hit is None:
            right = len(scope.text)
        else:
            right = high + (hit[1] if args.inclusive else hit[0])

    start, end = scope.position(left), scope.position(right)
    if selection.is_reversed:
        return Selection(end, start)
    return Selection(start, end)


__all__ = ["BetweenArgs", "select_between"]
