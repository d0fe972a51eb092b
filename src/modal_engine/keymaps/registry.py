"""Keymap registry responsible for storing command handlers and bindings."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, Iterable, Iterator, Literal, Optional

from modal_engine.errors import ModalEngineError
from modal_engine.runtime.telemetry import span

from .models import TEXT_ENTRY_MODES, ActionRef, Binding

DEFAULT_SCOPE = "__all__"

ConflictKind = Literal["duplicate", "prefix"]


@dataclass(slots=True)
class RegistryStats:
    """Lightweight snapshot describing registry state."""

    action_count: int
    binding_count: int
    scopes: tuple[str, ...]


class KeymapConflictError(ModalEngineError):
    """Raised when a new binding collides with existing entries."""

    def __init__(
        self, binding: Binding, conflicts: Iterable[Binding], *, kind: ConflictKind
    ) -> None:
        conflicts_tuple = tuple(conflicts)
        noun = "is a prefix conflict with" if kind == "prefix" else "duplicates"
        message = f"Binding '{binding.id}' {noun} {[b.id for b in conflicts_tuple]}"
        super().__init__(message)
        self.binding = binding
        self.conflicts = conflicts_tuple
        self.kind = kind


def binding_scopes(binding: Binding) -> tuple[str, ...]:
    return (DEFAULT_SCOPE,) if binding.modes is None else binding.modes


def _scopes_overlap(left: str, right: str) -> bool:
    if left == right:
        return True
    if DEFAULT_SCOPE in (left, right):
        other = right if left == DEFAULT_SCOPE else left
        return other not in TEXT_ENTRY_MODES
    return False


def _is_strict_prefix(short: tuple[str, ...], long: tuple[str, ...]) -> bool:
    return len(short) < len(long) and long[: len(short)] == short


class KeymapRegistry:
    """Owns command handlers and binding metadata, indexed per scope."""

    def __init__(self, *, logger_name: str | None = None) -> None:
        self._actions: Dict[str, ActionRef] = {}
        self._bindings: Dict[str, Binding] = {}
        self._scope_index: Dict[str, Dict[str, str]] = {}
        self._logger_name = logger_name
        self._revision = 0
        self._counter = 0

    def revision(self) -> int:
        return self._revision

    def get_action(self, action_id: str) -> ActionRef:
        try:
            return self._actions[action_id]
        except KeyError as exc:
            raise KeyError(f"Action '{action_id}' is not registered") from exc

    def find_action(self, action_id: str) -> Optional[ActionRef]:
        return self._actions.get(action_id)

    def get_binding(self, binding_id: str) -> Binding:
        try:
            return self._bindings[binding_id]
        except KeyError as exc:
            raise KeyError(f"Binding '{binding_id}' is not registered") from exc

    def next_binding_id(self, prefix: str = "binding") -> str:
        self._counter += 1
        return f"{prefix}.{self._counter}"

    def register_action(self, action: ActionRef, *, replace: bool = False) -> ActionRef:
        with span(
            "keymaps::register_action",
            logger_name=self._logger_name,
            component="keymaps",
            metadata={"action_id": action.id},
        ):
            if not replace and action.id in self._actions:
                raise ValueError(f"Action '{action.id}' already registered")
            self._actions[action.id] = action
            return action

    def register_binding(self, binding: Binding, *, replace: bool = False) -> Binding:
        """Add ``binding``; identical sequences need ``replace=True``.

        Prefix relations inside overlapping scopes always raise: one of the
        two bindings could never be reached.
        """

        with span(
            "keymaps::register_binding",
            logger_name=self._logger_name,
            component="keymaps",
            metadata={"binding_id": binding.id, "scopes": binding_scopes(binding)},
        ) as handle:
            if binding.id in self._bindings and not replace:
                raise ValueError(f"Binding id '{binding.id}' already registered")

            prefix = self._prefix_conflicts(binding)
            if prefix:
                handle.add_metadata("conflicts", ",".join(b.id for b in prefix))
                raise KeymapConflictError(binding, prefix, kind="prefix")

            duplicates = self._duplicate_conflicts(binding)
            if duplicates and not replace:
                handle.add_metadata("conflicts", ",".join(b.id for b in duplicates))
                raise KeymapConflictError(binding, duplicates, kind="duplicate")

            for existing in duplicates:
                self._narrow(existing, binding_scopes(binding))
            previous = self._bindings.get(binding.id)
            if previous is not None:
                self._remove_binding(previous)

            self._bindings[binding.id] = binding
            self._index_binding(binding)
            self._touch_bindings()
            return binding

    def unregister_binding(self, binding_id: str) -> Optional[Binding]:
        with span(
            "keymaps::unregister_binding",
            logger_name=self._logger_name,
            component="keymaps",
            metadata={"binding_id": binding_id},
        ):
            binding = self._bindings.get(binding_id)
            if not binding:
                return None
            self._remove_binding(binding)
            self._touch_bindings()
            return binding

    def clear_bindings(self) -> None:
        self._bindings.clear()
        self._scope_index.clear()
        self._touch_bindings()

    def iter_bindings(self, scope: Optional[str] = None) -> Iterator[Binding]:
        """All bindings, or those indexed under one scope (mode or default)."""

        if scope is None:
            yield from self._bindings.values()
            return
        for binding_id in self._scope_index.get(scope, {}).values():
            yield self._bindings[binding_id]

    def stats(self) -> RegistryStats:
        return RegistryStats(
            action_count=len(self._actions),
            binding_count=len(self._bindings),
            scopes=tuple(sorted(self._scope_index)),
        )

    def detect_conflicts(self, binding: Binding) -> list[Binding]:
        return self._prefix_conflicts(binding) + self._duplicate_conflicts(binding)

    def _overlapping(self, binding: Binding) -> Iterator[tuple[str, str, Binding]]:
        for scope in binding_scopes(binding):
            for other_scope, signatures in self._scope_index.items():
                if not _scopes_overlap(scope, other_scope):
                    continue
                for binding_id in signatures.values():
                    if binding_id == binding.id:
                        continue
                    yield scope, other_scope, self._bindings[binding_id]

    def _prefix_conflicts(self, binding: Binding) -> list[Binding]:
        tokens = binding.sequence.tokens
        found: Dict[str, Binding] = {}
        for _scope, _other, existing in self._overlapping(binding):
            other = existing.sequence.tokens
            if _is_strict_prefix(tokens, other) or _is_strict_prefix(other, tokens):
                found[existing.id] = existing
        return list(found.values())

    def _duplicate_conflicts(self, binding: Binding) -> list[Binding]:
        found: Dict[str, Binding] = {}
        for scope, other_scope, existing in self._overlapping(binding):
            if scope == other_scope and existing.sequence == binding.sequence:
                found[existing.id] = existing
        return list(found.values())

    def _narrow(self, existing: Binding, scopes: tuple[str, ...]) -> None:
        """Drop ``scopes`` from ``existing``; remove it when nothing is left."""

        self._remove_binding(existing)
        if existing.modes is None:
            return
        remaining = tuple(mode for mode in existing.modes if mode not in scopes)
        if remaining:
            narrowed = replace(existing, modes=remaining)
            self._bindings[existing.id] = narrowed
            self._index_binding(narrowed)

    def _index_binding(self, binding: Binding) -> None:
        for scope in binding_scopes(binding):
            by_signature = self._scope_index.setdefault(scope, {})
            by_signature[binding.key_signature] = binding.id

    def _remove_binding(self, binding: Binding) -> None:
        self._bindings.pop(binding.id, None)
        for scope in binding_scopes(binding):
            signatures = self._scope_index.get(scope)
            if not signatures:
                continue
            if signatures.get(binding.key_signature) == binding.id:
                signatures.pop(binding.key_signature)
            if not signatures:
                self._scope_index.pop(scope, None)

    def _touch_bindings(self) -> None:
        self._revision += 1


__all__ = [
    "DEFAULT_SCOPE",
    "KeymapConflictError",
    "KeymapRegistry",
    "RegistryStats",
    "binding_scopes",
]
