"""Line-scanning search with offset policies, wraparound, and highlights."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple

from modal_engine.buffer.document import LineSource, translate
from modal_engine.buffer.state import Position, Selection
from modal_engine.errors import InvalidPattern
from modal_engine.runtime import telemetry

from .models import SearchOptions

LineRange = Tuple[int, int]


@dataclass(frozen=True, slots=True)
class SearchMatch:
    """A hit inside one line, ``[start, end)``."""

    start: Position
    end: Position

    @property
    def length(self) -> int:
        return self.end[1] - self.start[1]

    def as_selection(self) -> Selection:
        return Selection(self.start, self.end)


@dataclass(frozen=True, slots=True)
class SearchHit:
    """Where one origin landed and the match that put it there."""

    selection: Selection
    match: SearchMatch


@dataclass(frozen=True, slots=True)
class HighlightSet:
    current: tuple[Selection, ...] = ()
    others: tuple[Selection, ...] = ()


class LinePattern:
    """Compiled literal or regex pattern applied one line at a time."""

    def __init__(self, pattern: str, *, regex: bool, case_sensitive: bool) -> None:
        self.pattern = pattern
        self.regex = regex
        self.case_sensitive = case_sensitive
        self._compiled: Optional[re.Pattern[str]] = None
        self._needle = pattern if case_sensitive else pattern.lower()
        if regex:
            flags = 0 if case_sensitive else re.IGNORECASE
            try:
                self._compiled = re.compile(pattern, flags)
            except re.error as exc:
                raise InvalidPattern(pattern, str(exc)) from exc

    def spans(self, text: str) -> List[Tuple[int, int]]:
        if self._compiled is not None:
            return [match.span() for match in self._compiled.finditer(text)]
        if not self._needle:
            return []
        haystack = text if self.case_sensitive else text.lower()
        found: List[Tuple[int, int]] = []
        index = haystack.find(self._needle)
        while index != -1:
            found.append((index, index + len(self._needle)))
            index = haystack.find(self._needle, index + 1)
        return found


class LineRing:
    """Visits lines from a start line toward one end, then (once) from the other.

    The start line is visited first with a column cut-off, and again in full
    after wrapping.
    """

    def __init__(
        self, line_count: int, start_line: int, *, backwards: bool, wrap: bool
    ) -> None:
        self.line_count = line_count
        self.start_line = start_line
        self.backwards = backwards
        self.wrap = wrap
        self.wrapped = False

    def __iter__(self) -> Iterator[Tuple[int, bool]]:
        """Yield ``(line, is_start_line_first_visit)``."""

        step = -1 if self.backwards else 1
        end = -1 if self.backwards else self.line_count
        yield self.start_line, True
        for line in range(self.start_line + step, end, step):
            yield line, False
        if not self.wrap:
            return
        self.wrapped = True
        first = self.line_count - 1 if self.backwards else 0
        for line in range(first, self.start_line + step, step):
            yield line, False


def offset_delta(options: SearchOptions, length: int) -> int:
    """Characters to move the landed active position for the offset policy."""

    offset = options.offset
    if options.backwards:
        return length if offset in ("exclusive", "end") else 0
    if offset == "exclusive":
        return -length - (0 if options.select_till_match else 1)
    if offset == "start":
        return -length
    if offset == "inclusive":
        return 0 if options.select_till_match else -1
    return 0


class SearchEngine:
    """Stateless search/selection computations over an ``EditorHost``-like source."""

    def __init__(self, *, logger_name: str | None = None) -> None:
        self._logger_name = logger_name

    def compile(self, pattern: str, options: SearchOptions) -> LinePattern:
        return LinePattern(
            pattern, regex=options.regex, case_sensitive=options.case_sensitive
        )

    def scan(
        self,
        source: LineSource,
        position: Position,
        pattern: LinePattern,
        options: SearchOptions,
    ) -> Iterator[SearchMatch]:
        """Matches in scan order from ``position``.

        On the start line a forward scan only yields matches starting after the
        cursor column and a backward scan only those ending at or before it,
        so the match under the cursor is never yielded again.
        """

        line_count = source.line_count()
        start_line, column = position
        ring = LineRing(
            line_count,
            min(start_line, line_count - 1),
            backwards=options.backwards,
            wrap=options.wrap_around,
        )
        for line, first_visit in ring:
            spans = pattern.spans(source.line_at(line))
            if first_visit:
                if options.backwards:
                    spans = [span for span in spans if span[1] <= column]
                else:
                    spans = [span for span in spans if span[0] > column]
            if options.backwards:
                spans = list(reversed(spans))
            for lo, hi in spans:
                yield SearchMatch((line, lo), (line, hi))

    def land(
        self,
        source: LineSource,
        origin: Selection,
        match: SearchMatch,
        options: SearchOptions,
    ) -> Selection:
        """Selection produced by landing on ``match`` under the offset policy."""

        if options.backwards:
            landed = Selection(match.end, match.start)
        else:
            landed = Selection(match.start, match.end)
        delta = offset_delta(options, match.length)
        if delta:
            position = translate(source, landed.active, delta)
            landed = Selection(position, position)
        if options.select_till_match:
            landed = Selection(origin.anchor, landed.active)
        return landed

    def find_one(
        self,
        source: LineSource,
        origin: Selection,
        pattern: LinePattern,
        options: SearchOptions,
    ) -> Optional[SearchHit]:
        for match in self.scan(source, origin.active, pattern, options):
            landed = self.land(source, origin, match, options)
            if landed.same_range(origin):
                continue
            return SearchHit(selection=landed, match=match)
        return None

    def find(
        self,
        source: LineSource,
        origins: Sequence[Selection],
        pattern: str,
        options: SearchOptions,
    ) -> List[Optional[SearchHit]]:
        """Search from every origin independently; ``None`` means not found.

        Results are not merged: several origins may land on the same match.
        """

        with telemetry.span(
            "search::find",
            logger_name=self._logger_name,
            component="search",
            metadata={"pattern": pattern, "origins": len(origins)},
        ) as handle:
            compiled = self.compile(pattern, options)
            hits = [self.find_one(source, origin, compiled, options) for origin in origins]
            handle.add_metadata("found", sum(hit is not None for hit in hits))
            return hits

    def highlights(
        self,
        source: LineSource,
        line_ranges: Sequence[LineRange],
        pattern: str,
        options: SearchOptions,
        current: Sequence[SearchMatch] = (),
    ) -> HighlightSet:
        """Split matches in the visible ranges into current and other matches."""

        if not pattern:
            return HighlightSet()
        compiled = self.compile(pattern, options)
        current_ranges = tuple(dict.fromkeys(match.as_selection() for match in current))
        others: list[Selection] = []
        last = source.line_count() - 1
        for first, final in line_ranges:
            for line in range(max(0, first), min(final, last) + 1):
                for lo, hi in compiled.spans(source.line_at(line)):
                    selection = Selection((line, lo), (line, hi))
                    if selection not in current_ranges:
                        others.append(selection)
        return HighlightSet(current=current_ranges, others=tuple(others))


__all__ = [
    "HighlightSet",
    "LinePattern",
    "LineRing",
    "SearchEngine",
    "SearchHit",
    "SearchMatch",
    "offset_delta",
]
