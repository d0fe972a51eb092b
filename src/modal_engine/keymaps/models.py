"""Dataclasses describing commands, key sequences, and bindings."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Iterable, Mapping, Optional, Union

INSERT_MODE = "insert"
# modes where typed keys are text; default-scope bindings stay out of them
TEXT_ENTRY_MODES = frozenset({INSERT_MODE, "replace", "search", "capture"})

_TOKEN = re.compile(r"<[^<>\s]+>|.", re.DOTALL)
_NAMED_KEYS = {
    "<esc>": "<escape>",
    "<cr>": "<enter>",
    "<return>": "<enter>",
    "<bs>": "<backspace>",
}


def normalize_key(key: str) -> str:
    """Canonical token for one key event (``"<Esc>"`` -> ``"<escape>"``)."""

    if len(key) > 1 and key.startswith("<") and key.endswith(">"):
        lowered = key.lower()
        return _NAMED_KEYS.get(lowered, lowered)
    if key == "\n":
        return "<enter>"
    if key == "\t":
        return "<tab>"
    if key == " ":
        return "<space>"
    return key


@dataclass(frozen=True, slots=True)
class KeySequence:
    """Immutable run of key tokens, e.g. ``('d', 'd')`` or ``('<escape>',)``."""

    tokens: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.tokens:
            raise ValueError("KeySequence requires at least one key")
        object.__setattr__(
            self, "tokens", tuple(normalize_key(token) for token in self.tokens)
        )

    @classmethod
    def parse(cls, keys: str) -> "KeySequence":
        """Split ``"d<escape>w"`` into ``('d', '<escape>', 'w')``."""

        return cls(tuple(_TOKEN.findall(keys)))

    @classmethod
    def from_strings(cls, *keys: str) -> "KeySequence":
        return cls(tuple(key for key in keys if key))

    def __len__(self) -> int:
        return len(self.tokens)

    def __str__(self) -> str:
        return "".join(self.tokens)


@dataclass(frozen=True, slots=True)
class SingleCommand:
    name: str

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("command name cannot be empty")


@dataclass(frozen=True, slots=True)
class ParameterizedCommand:
    """Command with ``args`` (mapping or expression) and an optional ``repeat``."""

    name: str
    args: Union[Mapping[str, object], str, None] = None
    repeat: Union[int, str, None] = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("command name cannot be empty")
        if isinstance(self.args, Mapping):
            object.__setattr__(self, "args", MappingProxyType(dict(self.args)))


@dataclass(frozen=True, slots=True)
class CommandSequence:
    steps: tuple["CommandSpec", ...]


@dataclass(frozen=True, slots=True)
class ConditionalCommand:
    condition: str
    then: Optional["CommandSpec"] = None
    otherwise: Optional["CommandSpec"] = None


@dataclass(frozen=True, slots=True)
class KeymapAlias:
    """Integer reference into a keymap table; kept opaque."""

    target: int


CommandSpec = Union[
    SingleCommand,
    ParameterizedCommand,
    CommandSequence,
    ConditionalCommand,
    KeymapAlias,
]


def describe_command(spec: CommandSpec) -> str:
    if isinstance(spec, (SingleCommand, ParameterizedCommand)):
        return spec.name
    if isinstance(spec, CommandSequence):
        return "[" + ", ".join(describe_command(step) for step in spec.steps) + "]"
    if isinstance(spec, ConditionalCommand):
        return f"if({spec.condition})"
    return f"alias({spec.target})"


@dataclass(frozen=True, slots=True)
class ActionRef:
    """Built-in command handler registered under a command name."""

    id: str
    handler: Callable[..., object]
    telemetry_name: str | None = None
    description: str = ""
    metadata: Mapping[str, object] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("ActionRef id cannot be empty")
        if not callable(self.handler):
            raise TypeError("handler must be callable")
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))
        if self.telemetry_name is None:
            object.__setattr__(self, "telemetry_name", self.id)

    def __call__(self, *args: object, **kwargs: object) -> object:
        return self.handler(*args, **kwargs)


def _normalize_modes(modes: Iterable[str] | None) -> tuple[str, ...] | None:
    if modes is None:
        return None
    values = tuple(dict.fromkeys(m.strip() for m in modes if m.strip()))
    if not values:
        raise ValueError("binding modes cannot be empty; use None for the default scope")
    return values


@dataclass(frozen=True, slots=True)
class Binding:
    """Associates a key sequence with a command in one or more modes.

    ``modes=None`` is the default scope: every mode except the text-entry ones.
    """

    id: str
    sequence: KeySequence
    command: CommandSpec
    modes: tuple[str, ...] | None = None
    description: str = ""
    source: str | None = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("binding id cannot be empty")
        object.__setattr__(self, "modes", _normalize_modes(self.modes))

    @property
    def key_signature(self) -> str:
        return " ".join(self.sequence.tokens)

    @property
    def is_default_scope(self) -> bool:
        return self.modes is None

    def applies_to(self, mode: str) -> bool:
        if self.modes is None:
            return mode not in TEXT_ENTRY_MODES
        return mode in self.modes


__all__ = [
    "INSERT_MODE",
    "TEXT_ENTRY_MODES",
    "ActionRef",
    "Binding",
    "CommandSequence",
    "CommandSpec",
    "ConditionalCommand",
    "KeySequence",
    "KeymapAlias",
    "ParameterizedCommand",
    "SingleCommand",
    "describe_command",
    "normalize_key",
]
