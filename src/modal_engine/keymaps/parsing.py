"""Turn user binding tables into ``Binding`` objects.

A table maps keys to commands::

    {
        "dd": "editor.deleteLine",
        "normal|visual::w": {"modal.search": {"text": "\\\\w+", "regex": True}},
        "i(": {"command": "modal.selectBetween", "args": {"from": "(", "to": ")"}},
        "::using::modal.typeKeys": {"C": {"keys": "Di"}},
    }
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

from modal_engine.errors import MalformedCommand
from modal_engine.runtime import telemetry

from .models import (
    Binding,
    CommandSequence,
    CommandSpec,
    ConditionalCommand,
    KeymapAlias,
    KeySequence,
    ParameterizedCommand,
    SingleCommand,
)
from .registry import KeymapConflictError, KeymapRegistry

logger = telemetry.get_logger("modal_engine.keymaps.parsing")

_MODE_PREFIX = re.compile(r"^(?:(?P<modes>[A-Za-z_][\w|]*)::)?(?P<keys>.+)$", re.DOTALL)
_SINGLE_COLON = re.compile(r"^[A-Za-z_][\w|]*:[^:]")
_USING = re.compile(r"^::using::(?P<command>.+)$")
_RESERVED = {"command", "args", "repeat"}


@dataclass(frozen=True, slots=True)
class BindingIssue:
    """Problem found while loading one entry of a binding table."""

    key: str
    message: str
    severity: str = "error"


def parse_command(raw: object) -> CommandSpec:
    """Interpret one binding value as a ``CommandSpec``."""

    if isinstance(
        raw,
        (SingleCommand, ParameterizedCommand, CommandSequence, ConditionalCommand, KeymapAlias),
    ):
        return raw
    if isinstance(raw, str):
        if not raw:
            raise MalformedCommand("command name cannot be empty", raw=raw)
        return SingleCommand(raw)
    if isinstance(raw, bool):
        raise MalformedCommand("a boolean is not a command", raw=raw)
    if isinstance(raw, int):
        return KeymapAlias(raw)
    if isinstance(raw, (list, tuple)):
        return CommandSequence(tuple(parse_command(step) for step in raw))
    if isinstance(raw, Mapping):
        return _parse_mapping(raw)
    raise MalformedCommand(f"cannot interpret {type(raw).__name__} as a command", raw=raw)


def _parse_mapping(raw: Mapping[object, object]) -> CommandSpec:
    if "if" in raw:
        condition = raw["if"]
        if not isinstance(condition, str):
            raise MalformedCommand("'if' must be an expression string", raw=raw)
        then = raw.get("then")
        otherwise = raw.get("else")
        return ConditionalCommand(
            condition=condition,
            then=parse_command(then) if then is not None else None,
            otherwise=parse_command(otherwise) if otherwise is not None else None,
        )

    repeat = _repeat(raw)

    if "command" in raw:
        name = raw["command"]
        if not isinstance(name, str) or not name:
            raise MalformedCommand("'command' must be a non-empty string", raw=raw)
        return ParameterizedCommand(name, _args(raw.get("args"), raw), repeat)

    if "args" in raw:
        raise MalformedCommand("object has 'args' but is missing 'command'", raw=raw)

    heads = [key for key in raw if key not in _RESERVED]
    if not heads:
        raise MalformedCommand("object is missing 'command'", raw=raw)
    if len(heads) > 1:
        raise MalformedCommand(
            f"command object has multiple heads {sorted(map(str, heads))}", raw=raw
        )
    head = heads[0]
    if not isinstance(head, str) or not head:
        raise MalformedCommand("command name must be a non-empty string", raw=raw)
    return ParameterizedCommand(head, _args(raw[head], raw), repeat)


def _repeat(raw: Mapping[object, object]) -> int | str | None:
    repeat = raw.get("repeat")
    if repeat is None or (isinstance(repeat, (int, str)) and not isinstance(repeat, bool)):
        return repeat
    raise MalformedCommand("'repeat' must be a number or an expression", raw=raw)


def _args(value: object, raw: object) -> Mapping[str, object] | str | None:
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, Mapping):
        return {str(key): item for key, item in value.items()}
    raise MalformedCommand("'args' must be an object or an expression", raw=raw)


def parse_binding_key(key: str) -> tuple[Optional[tuple[str, ...]], KeySequence]:
    """Split ``"normal|visual::dd"`` into its modes and key sequence."""

    if _SINGLE_COLON.match(key):
        logger.warning(
            "binding key %r has a single ':'; mode prefixes use '::' (e.g. 'normal::x')",
            key,
        )
    match = _MODE_PREFIX.match(key)
    if match is None:
        raise MalformedCommand("binding key cannot be empty", raw=key)
    modes_text = match.group("modes")
    modes = (
        tuple(mode for mode in modes_text.split("|") if mode)
        if modes_text
        else None
    )
    return modes, KeySequence.parse(match.group("keys"))


def expand_table(table: Mapping[str, object]) -> Iterable[tuple[str, object]]:
    """Flatten ``::using::<command>`` groups into plain entries."""

    for key, value in table.items():
        using = _USING.match(key)
        if using is None:
            yield key, value
            continue
        if not isinstance(value, Mapping):
            raise MalformedCommand(f"'{key}' must map keys to arguments", raw=value)
        command = using.group("command")
        for inner_key, args in value.items():
            yield str(inner_key), {command: args}


def load_bindings(
    registry: KeymapRegistry,
    table: Mapping[str, object],
    *,
    source: str | None = None,
) -> list[BindingIssue]:
    """Register every entry of ``table``; problems are returned, not raised.

    An entry that repeats an existing sequence in the same mode replaces it
    (with a warning). Prefix conflicts reject the new entry.
    """

    issues: list[BindingIssue] = []
    try:
        entries = list(expand_table(table))
    except MalformedCommand as exc:
        return [BindingIssue(key="::using::", message=exc.message)]

    for key, value in entries:
        try:
            modes, sequence = parse_binding_key(key)
            command = parse_command(value)
            binding = Binding(
                id=registry.next_binding_id(source or "binding"),
                sequence=sequence,
                command=command,
                modes=modes,
                source=source,
            )
            duplicates = [
                existing
                for existing in registry.detect_conflicts(binding)
                if existing.sequence == binding.sequence
            ]
            registry.register_binding(binding, replace=True)
        except (MalformedCommand, KeymapConflictError, ValueError) as exc:
            message = exc.message if isinstance(exc, MalformedCommand) else str(exc)
            logger.error("invalid binding %r: %s", key, message)
            issues.append(BindingIssue(key=key, message=message))
            continue
        if duplicates:
            logger.warning("binding %r overrides an earlier definition", key)
            issues.append(
                BindingIssue(
                    key=key,
                    message="overrides an earlier binding",
                    severity="warning",
                )
            )
    return issues


__all__ = [
    "BindingIssue",
    "expand_table",
    "load_bindings",
    "parse_binding_key",
    "parse_command",
]
