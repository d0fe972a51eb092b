"""Search arguments, offset policies, and per-register search state."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Literal, Mapping, Optional, Sequence, cast, get_args

from modal_engine.buffer.state import Selection
from modal_engine.errors import InvalidCommandArguments, InvalidOffsetPolicy

OffsetPolicy = Literal["inclusive", "exclusive", "start", "end"]
OFFSET_POLICIES: tuple[str, ...] = get_args(OffsetPolicy)

_COMMAND = "modal.search"
_BOOL_FIELDS = {
    "backwards": "backwards",
    "caseSensitive": "case_sensitive",
    "wrapAround": "wrap_around",
    "selectTillMatch": "select_till_match",
    "regex": "regex",
    "highlightMatches": "highlight_matches",
}


@dataclass(frozen=True, slots=True)
class SearchOptions:
    """How to scan and where to land; shared by search and motions."""

    backwards: bool = False
    case_sensitive: bool = False
    wrap_around: bool = False
    regex: bool = False
    offset: OffsetPolicy = "inclusive"
    select_till_match: bool = False

    def __post_init__(self) -> None:
        if self.offset not in OFFSET_POLICIES:
            raise InvalidOffsetPolicy(self.offset)

    def reversed(self) -> "SearchOptions":
        return replace(self, backwards=not self.backwards)


@dataclass(frozen=True, slots=True)
class SearchArgs:
    """Validated arguments of the search command."""

    options: SearchOptions = field(default_factory=SearchOptions)
    accept_after: Optional[int] = None
    execute_after: object = None
    text: Optional[str] = None
    highlight_matches: bool = True
    register: str = "default"

    @classmethod
    def from_args(
        cls, args: Mapping[str, object], *, default_register: str = "default"
    ) -> "SearchArgs":
        flags: dict[str, bool] = {}
        for key, attr in _BOOL_FIELDS.items():
            if key not in args:
                continue
            value = args[key]
            if not isinstance(value, bool):
                raise InvalidCommandArguments(_COMMAND, f"'{key}' must be a boolean")
            flags[attr] = value

        offset = args.get("offset", "inclusive")
        if not isinstance(offset, str) or offset not in OFFSET_POLICIES:
            raise InvalidOffsetPolicy(offset)

        accept_after = args.get("acceptAfter")
        if accept_after is not None and (
            isinstance(accept_after, bool)
            or not isinstance(accept_after, int)
            or accept_after < 1
        ):
            raise InvalidCommandArguments(
                _COMMAND, "'acceptAfter' must be a positive integer"
            )

        text = args.get("text")
        if text is not None and not isinstance(text, str):
            raise InvalidCommandArguments(_COMMAND, "'text' must be a string")

        options = SearchOptions(
            backwards=flags.get("backwards", False),
            case_sensitive=flags.get("case_sensitive", False),
            wrap_around=flags.get("wrap_around", False),
            regex=flags.get("regex", False),
            offset=cast(OffsetPolicy, offset),
            select_till_match=flags.get("select_till_match", False),
        )
        return cls(
            options=options,
            accept_after=accept_after,
            execute_after=args.get("executeAfter"),
            text=text,
            highlight_matches=flags.get("highlight_matches", True),
            register=register_name(args.get("register"), default_register),
        )

    def to_args(self, text: str) -> dict[str, object]:
        """Arguments that re-run this search for ``text`` without prompting."""

        args: dict[str, object] = {
            "text": text,
            "backwards": self.options.backwards,
            "caseSensitive": self.options.case_sensitive,
            "wrapAround": self.options.wrap_around,
            "regex": self.options.regex,
            "offset": self.options.offset,
            "selectTillMatch": self.options.select_till_match,
            "highlightMatches": self.highlight_matches,
            "register": self.register,
        }
        if self.execute_after is not None:
            args["executeAfter"] = self.execute_after
        return args


def register_name(value: object, default: str = "default") -> str:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise InvalidCommandArguments("register", "register must be a name or number")
    if isinstance(value, (str, int)):
        return str(value)
    raise InvalidCommandArguments("register", "register must be a name or number")


@dataclass(slots=True)
class SearchSession:
    """Search state kept per register.

    ``origin`` is where the search started (restored on cancel); ``old_mode``
    is the mode to go back to when the search ends.
    """

    args: SearchArgs
    origin: tuple[Selection, ...]
    old_mode: str
    text: str = ""
    found: bool = True
    highlights: tuple[Selection, ...] = ()
    other_highlights: tuple[Selection, ...] = ()

    @property
    def register(self) -> str:
        return self.args.register

    def restart(self, origin: Sequence[Selection]) -> None:
        self.origin = tuple(origin)


__all__ = [
    "OFFSET_POLICIES",
    "OffsetPolicy",
    "SearchArgs",
    "SearchOptions",
    "SearchSession",
    "register_name",
]
