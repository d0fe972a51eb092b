"""Incremental key-sequence resolution (one buffer per matcher instance)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, List, Literal, Mapping, Optional

from modal_engine.errors import UnboundKeySequence
from modal_engine.runtime import telemetry

from .executor import CommandContext, CommandExecutor
from .models import (
    TEXT_ENTRY_MODES,
    Binding,
    CommandSpec,
    KeySequence,
    normalize_key,
)
from .resolver import KeymapResolver, KeyTip

if TYPE_CHECKING:  # pragma: no cover
    from modal_engine.session import EditorSession

logger = telemetry.get_logger("modal_engine.keymaps.matcher")


@dataclass(frozen=True, slots=True)
class MatchOutcome:
    """Result of feeding one key: a command ran, or more keys are needed."""

    status: Literal["executed", "waiting"]
    keys: tuple[str, ...]
    command: Optional[CommandSpec] = None
    binding: Optional[Binding] = None
    count: Optional[int] = None

    @property
    def waiting(self) -> bool:
        return self.status == "waiting"


class KeySequenceMatcher:
    """Accumulates keys until they resolve to a command or fail.

    ``local`` overrides map key strings (``"dd"``) to commands and are checked
    before the shared table. Nested matchers share the table, inherit the
    overrides, and own their own buffer, so keys they consume never show up in
    the outer matcher.
    """

    def __init__(
        self,
        session: "EditorSession",
        resolver: KeymapResolver,
        executor: CommandExecutor,
        *,
        local: Optional[Mapping[str, CommandSpec]] = None,
        parent: Optional["KeySequenceMatcher"] = None,
        replaying: bool = False,
    ) -> None:
        self.session = session
        self.resolver = resolver
        self.executor = executor
        self.parent = parent
        self.replaying = replaying or bool(parent and parent.replaying)
        inherited = dict(parent.local) if parent is not None else {}
        inherited.update(
            {
                KeySequence.parse(keys).tokens: spec
                for keys, spec in (local or {}).items()
            }
        )
        self.local: Dict[tuple[str, ...], CommandSpec] = inherited
        self.keys: List[str] = []
        self.mode: Optional[str] = None
        self.count: Optional[int] = None
        self.count_finalized = False
        self.executing = False
        self._sequence: List[str] = []

    @property
    def depth(self) -> int:
        return 0 if self.parent is None else self.parent.depth + 1

    @property
    def waiting(self) -> bool:
        return bool(self.keys)

    @property
    def pending_keys(self) -> str:
        return "".join(self.keys)

    def keytips(self) -> tuple[KeyTip, ...]:
        """Keys that would continue the half-typed sequence (none while idle)."""

        if not self._sequence or self.mode is None:
            return ()
        return self.resolver.continuations(self.mode, self._sequence)

    def nested(
        self,
        *,
        local: Optional[Mapping[str, CommandSpec]] = None,
        replaying: bool = False,
    ) -> "KeySequenceMatcher":
        return KeySequenceMatcher(
            self.session,
            self.resolver,
            self.executor,
            local=local,
            parent=self,
            replaying=replaying,
        )

    def reset(self) -> None:
        self.keys.clear()
        self._sequence.clear()
        self.mode = None
        self.count = None
        self.count_finalized = False

    def handle_key(self, key: str, mode: str) -> MatchOutcome:
        """Feed one key typed in ``mode``.

        Raises ``UnboundKeySequence`` (after resetting) when the keys typed so
        far cannot lead to any binding.
        """

        token = normalize_key(key)
        if self.mode is not None and self.mode != mode:
            self.reset()
        self.mode = mode
        self.keys.append(token)

        if self._extends_count(token):
            return MatchOutcome(status="waiting", keys=tuple(self.keys), count=self.count)

        candidate = tuple(self._sequence) + (token,)
        local = self._resolve_local(candidate)
        if local == "match":
            return self._execute(self.local[candidate], None, mode)
        if local == "pending":
            self._sequence.append(token)
            self.count_finalized = self.count is not None
            return MatchOutcome(status="waiting", keys=tuple(self.keys), count=self.count)

        result = self.resolver.resolve(mode, candidate)
        if result.status == "match" and result.match is not None:
            binding = result.match.binding
            return self._execute(binding.command, binding, mode)
        if result.status == "pending":
            self._sequence.append(token)
            self.count_finalized = self.count is not None
            return MatchOutcome(status="waiting", keys=tuple(self.keys), count=self.count)

        if (
            not self._sequence
            and not self.count_finalized
            and token.isdigit()
            and mode not in TEXT_ENTRY_MODES
        ):
            self.count = (self.count or 0) * 10 + int(token)
            return MatchOutcome(status="waiting", keys=tuple(self.keys), count=self.count)

        keys = tuple(self.keys)
        self.reset()
        raise UnboundKeySequence(keys, mode)

    def run(
        self,
        spec: CommandSpec,
        mode: str,
        *,
        captured: Optional[str] = None,
        count: Optional[int] = None,
    ) -> bool:
        """Execute ``spec`` directly, as if a binding had matched."""

        context = CommandContext(
            session=self.session,
            matcher=self,
            mode=mode,
            count=count,
            captured=captured,
        )
        return self.executor.execute(spec, context)

    def _extends_count(self, token: str) -> bool:
        if self.count is None or self.count_finalized or self._sequence:
            return False
        if not token.isdigit():
            return False
        self.count = self.count * 10 + int(token)
        return True

    def _resolve_local(self, candidate: tuple[str, ...]) -> Optional[str]:
        if not self.local:
            return None
        if candidate in self.local:
            return "match"
        size = len(candidate)
        if any(len(keys) > size and keys[:size] == candidate for keys in self.local):
            return "pending"
        return None

    def _execute(
        self, spec: CommandSpec, binding: Optional[Binding], mode: str
    ) -> MatchOutcome:
        keys = tuple(self.keys)
        count = self.count
        self.reset()
        logger.debug("keys %r resolved in %s (depth %d)", keys, mode, self.depth)
        self.executing = True
        try:
            self.run(spec, mode, count=count)
        finally:
            self.executing = False
        return MatchOutcome(
            status="executed", keys=keys, command=spec, binding=binding, count=count
        )


__all__ = ["KeySequenceMatcher", "MatchOutcome"]
