"""Trie-based keymap resolution with telemetry instrumentation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Literal, Optional, Sequence

from modal_engine.runtime.telemetry import span

from .models import (
    TEXT_ENTRY_MODES,
    Binding,
    ParameterizedCommand,
    SingleCommand,
    describe_command,
)
from .registry import DEFAULT_SCOPE, KeymapRegistry

Tier = Literal["mode", "default"]


@dataclass(slots=True)
class TrieNode:
    """Single trie node tracking a binding and child transitions."""

    binding: Optional[str] = None
    children: Dict[str, "TrieNode"] = field(default_factory=dict)

    def child(self, token: str) -> "TrieNode":
        return self.children.setdefault(token, TrieNode())

    def next_tokens(self) -> tuple[str, ...]:
        return tuple(sorted(self.children.keys()))

    def binding_count(self) -> int:
        own = 1 if self.binding is not None else 0
        return own + sum(child.binding_count() for child in self.children.values())


@dataclass(slots=True)
class KeymapTrie:
    """Concrete trie built for one scope (a mode, or the default scope)."""

    scope: str
    root: TrieNode = field(default_factory=TrieNode)

    def add_binding(self, binding: Binding) -> None:
        node = self.root
        for token in binding.sequence.tokens:
            node = node.child(token)
        node.binding = binding.id

    def walk(self, tokens: Sequence[str]) -> Optional[TrieNode]:
        node = self.root
        for token in tokens:
            child = node.children.get(token)
            if child is None:
                return None
            node = child
        return node


@dataclass(frozen=True, slots=True)
class ResolutionMatch:
    """Resolved binding and the tier that produced it."""

    binding: Binding
    tier: Tier


@dataclass(frozen=True, slots=True)
class ResolutionResult:
    """Outcome returned from the resolver."""

    status: Literal["match", "pending", "miss"]
    match: Optional[ResolutionMatch] = None
    consumed: int = 0
    next_expected: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class KeyTip:
    """One key that can follow a pending sequence.

    ``prefix`` tips need more keys; their description counts what they lead to.
    """

    key: str
    description: str
    prefix: bool = False


class KeymapResolver:
    """Resolves key sequences in three tiers.

    1. exact match among bindings scoped to the mode
    2. exact match among default-scope bindings (never in text-entry modes)
    3. the sequence is a prefix of something in either -> pending
    """

    def __init__(
        self, registry: KeymapRegistry, *, logger_name: str | None = None
    ) -> None:
        self._registry = registry
        self._logger_name = logger_name
        self._cache: Dict[str, tuple[int, KeymapTrie]] = {}

    @property
    def registry(self) -> KeymapRegistry:
        return self._registry

    def resolve(self, mode: str, tokens: Sequence[str]) -> ResolutionResult:
        normalized = tuple(tokens)
        with span(
            "keymaps::resolve",
            logger_name=self._logger_name,
            component="keymaps",
            metadata={"mode": mode, "length": len(normalized)},
        ) as handle:
            nodes = [(tier, trie.walk(normalized)) for tier, trie in self._tries(mode)]
            for tier, node in nodes:
                if node is not None and node.binding is not None:
                    binding = self._registry.get_binding(node.binding)
                    handle.add_metadata("status", "match")
                    handle.add_metadata("binding_id", binding.id)
                    return ResolutionResult(
                        status="match",
                        match=ResolutionMatch(binding=binding, tier=tier),
                        consumed=len(normalized),
                    )

            next_expected: set[str] = set()
            for _tier, node in nodes:
                if node is not None:
                    next_expected.update(node.children)
            if next_expected:
                handle.add_metadata("status", "pending")
                return ResolutionResult(
                    status="pending",
                    consumed=len(normalized),
                    next_expected=tuple(sorted(next_expected)),
                )

            handle.add_metadata("status", "miss")
            return ResolutionResult(status="miss")

    def continuations(self, mode: str, tokens: Sequence[str]) -> tuple[KeyTip, ...]:
        """Keys that extend the pending ``tokens`` in ``mode``, and what each does."""

        prefix = tuple(tokens)
        result = self.resolve(mode, prefix)
        if result.status != "pending":
            return ()
        tries = self._tries(mode)
        tips: list[KeyTip] = []
        for token in result.next_expected:
            nodes = [trie.walk(prefix + (token,)) for _tier, trie in tries]
            bound = next(
                (node.binding for node in nodes if node is not None and node.binding),
                None,
            )
            if bound is not None:
                binding = self._registry.get_binding(bound)
                tips.append(KeyTip(token, self.describe(binding)))
                continue
            reachable = sum(node.binding_count() for node in nodes if node is not None)
            tips.append(KeyTip(token, f"+{reachable} more", prefix=True))
        return tuple(tips)

    def describe(self, binding: Binding) -> str:
        """Help text for ``binding``: its own, else its action's, else the command."""

        if binding.description:
            return binding.description
        command = binding.command
        if isinstance(command, (SingleCommand, ParameterizedCommand)):
            action = self._registry.find_action(command.name)
            if action is not None and action.description:
                return action.description
        return describe_command(command)

    def reset(self, scope: Optional[str] = None) -> None:
        if scope is None:
            self._cache.clear()
        else:
            self._cache.pop(scope, None)

    def _tries(self, mode: str) -> list[tuple[Tier, KeymapTrie]]:
        tries: list[tuple[Tier, KeymapTrie]] = [("mode", self._ensure_trie(mode))]
        if mode not in TEXT_ENTRY_MODES:
            tries.append(("default", self._ensure_trie(DEFAULT_SCOPE)))
        return tries

    def _ensure_trie(self, scope: str) -> KeymapTrie:
        revision = self._registry.revision()
        cached = self._cache.get(scope)
        if cached and cached[0] == revision:
            return cached[1]

        trie = KeymapTrie(scope=scope)
        for binding in self._registry.iter_bindings(scope):
            trie.add_binding(binding)
        self._cache[scope] = (revision, trie)
        return trie


__all__ = [
    "KeyTip",
    "KeymapResolver",
    "KeymapTrie",
    "ResolutionResult",
    "ResolutionMatch",
]
