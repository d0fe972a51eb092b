"""Base classes and shared utilities for editor modes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Dict, Optional, Tuple

from modal_engine.keymaps.models import normalize_key
from modal_engine.runtime import telemetry

if TYPE_CHECKING:  # pragma: no cover
    from modal_engine.session import EditorSession


@dataclass(slots=True)
class KeyInput:
    """Normalized key event passed to modes."""

    key: str
    modifiers: Tuple[str, ...] = ()
    text: Optional[str] = None

    @property
    def token(self) -> str:
        if self.modifiers:
            modifier = "+".join(self.modifiers)
            return normalize_key(f"<{modifier}+{self.key.strip('<>')}>")
        if len(self.key) > 1 and not self.key.startswith("<"):
            return normalize_key(f"<{self.key}>")
        return normalize_key(self.key)

    @property
    def printable(self) -> Optional[str]:
        """The character this key types, if it types one."""

        if self.modifiers:
            return None
        if self.text is not None:
            return self.text if len(self.text) == 1 and self.text.isprintable() else None
        if len(self.key) == 1 and self.key.isprintable():
            return self.key
        if normalize_key(self.key) == "<space>":
            return " "
        return None


@dataclass(slots=True)
class ModeResult:
    """Result returned from ``Mode.handle_key``."""

    consumed: bool
    switch_to: Optional[str] = None
    status: str = "ok"
    message: Optional[str] = None


@dataclass(frozen=True, slots=True)
class ModeChange:
    """Payload of the ``mode.changed`` bus event."""

    document_id: str
    previous: str
    mode: str
    selecting: bool


class ModeBus:
    """Minimal event bus letting modes exchange structured signals."""

    def __init__(self) -> None:
        self._subscribers: Dict[str, list[Callable[[object], None]]] = {}

    def subscribe(self, event: str, callback: Callable[[object], None]) -> None:
        self._subscribers.setdefault(event, []).append(callback)

    def unsubscribe(self, event: str, callback: Callable[[object], None]) -> None:
        callbacks = self._subscribers.get(event, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def emit(self, event: str, payload: object | None = None) -> None:
        for callback in list(self._subscribers.get(event, [])):
            callback(payload)


class Mode:
    """Base class all concrete editor modes inherit from.

    A mode is a strategy shared by every session; per-editor state lives on
    the ``EditorSession`` passed to each hook.
    """

    name: str = "mode"

    def __init__(self, name: Optional[str] = None) -> None:
        if name is not None:
            self.name = name
        self.logger = telemetry.get_logger(f"modal_engine.modes.{self.name}")

    def on_enter(
        self, session: "EditorSession", previous: Optional[str]
    ) -> None:  # pragma: no cover - default no-op
        del session, previous

    def on_exit(
        self, session: "EditorSession", next_mode: Optional[str]
    ) -> None:  # pragma: no cover - default no-op
        del session, next_mode

    def handle_key(
        self, session: "EditorSession", key: KeyInput
    ) -> ModeResult:  # pragma: no cover - abstract override
        raise NotImplementedError


__all__ = ["KeyInput", "Mode", "ModeBus", "ModeChange", "ModeResult"]
