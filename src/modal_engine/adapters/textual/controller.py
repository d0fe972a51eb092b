"""Minimal Textual adapter that wires ModalEngine events into UI callbacks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional

from modal_engine.buffer import Buffer, BufferView
from modal_engine.engine import ModalEngine
from modal_engine.keymaps import KeyTip
from modal_engine.modes import KeyInput, ModeResult

# Textual key names that differ from binding-table tokens
_KEY_ALIASES = {
    "escape": "<escape>",
    "enter": "<enter>",
    "return": "<enter>",
    "backspace": "<backspace>",
    "tab": "<tab>",
    "space": "<space>",
}

_EVENTS = ("mode.changed", "status.changed", "search.highlights", "macro.recording")


def _noop(*_args, **_kwargs) -> None:  # pragma: no cover - default hook
    return None


@dataclass(slots=True)
class TextualUIHooks:
    """Callbacks invoked by the adapter to update Textual widgets."""

    update_buffer: Callable[[BufferView], None]
    update_status: Callable[[str], None] = _noop
    update_mode: Callable[[str], None] = _noop
    handle_event: Callable[[str, object | None], None] = _noop
    # Optional realtime log callback a host may use to surface debug lines
    log: Callable[[str], None] = _noop
    # Called after every key with the continuations of a half-typed sequence
    show_keytips: Callable[[tuple[KeyTip, ...]], None] = _noop


def format_keytips(tips: Iterable[KeyTip]) -> str:
    """One-line help, e.g. ``d Delete line  i +2 more``."""

    return "  ".join(f"{tip.key} {tip.description}" for tip in tips)


def normalize_textual_key(key: str, character: Optional[str]) -> str:
    """Token for a Textual key event (``"escape"`` -> ``"<escape>"``)."""

    if key in _KEY_ALIASES:
        return _KEY_ALIASES[key]
    if character and len(character) == 1 and character.isprintable():
        return character
    return f"<{key}>"


class TextualModalAdapter:
    """Bridges ModalEngine + bus events to a Textual-friendly surface."""

    def __init__(self, engine: ModalEngine, buffer: Buffer, hooks: TextualUIHooks) -> None:
        self.engine = engine
        self.buffer = buffer
        self.hooks = hooks
        self.session = engine.open(buffer)
        self._subscribe_events()
        self._refresh()

    def handle_textual_key(
        self,
        key: str,
        *,
        text: Optional[str] = None,
        modifiers: Iterable[str] = (),
    ) -> ModeResult:
        """Translate a Textual key event into a KeyInput and dispatch it."""

        normalized_modifiers = tuple(str(mod).lower() for mod in modifiers)
        token = key if normalized_modifiers else normalize_textual_key(key, text)
        self._log_state("key ->", key=key, text=text, mods=normalized_modifiers)
        result = self.engine.handle_key(
            KeyInput(key=token, text=text, modifiers=normalized_modifiers)
        )
        self._refresh()
        self._log_state(
            "result <-",
            consumed=result.consumed,
            status=result.status,
            message=result.message,
            switch_to=result.switch_to,
        )
        return result

    def _subscribe_events(self) -> None:
        bus = self.engine.bus
        for event in _EVENTS:
            bus.subscribe(
                event, lambda payload, name=event: self._handle_event(name, payload)
            )

    def _handle_event(self, name: str, payload: object | None) -> None:
        self._log_state("event ->", event=name, payload=payload)
        self.hooks.handle_event(name, payload)
        if name == "mode.changed":
            self.hooks.update_mode(self.engine.flags.mode)
        elif name == "search.highlights":
            self.hooks.update_buffer(self.buffer.snapshot())

    def _refresh(self) -> None:
        self.hooks.update_buffer(self.buffer.snapshot())
        self.hooks.update_status(self.engine.status_text)
        self.hooks.update_mode(self.engine.flags.mode)
        self.hooks.show_keytips(self.engine.keytips)

    def _log_state(self, prefix: str, **fields: object) -> None:
        snapshot = self._state_metadata()
        snapshot.update({k: v for k, v in fields.items() if v is not None})
        parts = [prefix]
        for key, value in snapshot.items():
            parts.append(f"{key}={value!r}")
        self.hooks.log(" ".join(parts))

    def _state_metadata(self) -> Dict[str, object]:
        flags = self.engine.flags
        return {
            "mode": flags.mode,
            "waiting": flags.waiting,
            "recording": flags.recording,
            "cursor": self.buffer.state.cursor,
            "buffer": self.buffer.name,
            "buffer_version": self.buffer.document.version,
        }


__all__ = [
    "TextualModalAdapter",
    "TextualUIHooks",
    "format_keytips",
    "normalize_textual_key",
]
