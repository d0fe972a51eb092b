"""Keyboard macros stored in named registers."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

from modal_engine.runtime import telemetry

logger = telemetry.get_logger("modal_engine.macros")


@dataclass(slots=True)
class Macro:
    """Keys recorded into ``register``; ``mode`` is where replay starts."""

    register: str
    mode: str
    keys: List[str] = field(default_factory=list)


class MacroRecorder:
    """Taps the key stream while recording.

    Keys of the word in progress are held back until the word completes
    (``commit``), so the keys that stop a recording are never part of it.
    Every recording command is ignored while a macro replays.
    """

    def __init__(self) -> None:
        self._macros: Dict[str, Macro] = {}
        self._recording: Optional[Macro] = None
        self._pending: List[str] = []
        self._replaying = 0

    @property
    def is_recording(self) -> bool:
        return self._recording is not None

    @property
    def is_replaying(self) -> bool:
        return self._replaying > 0

    @property
    def recording_register(self) -> Optional[str]:
        return self._recording.register if self._recording else None

    def get(self, register: str) -> Optional[Macro]:
        return self._macros.get(register)

    def registers(self) -> tuple[str, ...]:
        return tuple(sorted(self._macros))

    def start(self, register: str, mode: str) -> bool:
        if self.is_replaying:
            return False
        self._recording = Macro(register=register, mode=mode)
        self._pending.clear()
        telemetry.record_event(
            "macro.start", data={"register": register, "mode": mode}
        )
        return True

    def stop(self) -> Optional[Macro]:
        if self.is_replaying or self._recording is None:
            return None
        macro, self._recording = self._recording, None
        self._pending.clear()
        self._macros[macro.register] = macro
        telemetry.record_event(
            "macro.stop", data={"register": macro.register, "keys": len(macro.keys)}
        )
        return macro

    def cancel(self) -> None:
        if self.is_replaying:
            return
        if self._recording is not None:
            logger.debug("macro recording into %r cancelled", self._recording.register)
        self._recording = None
        self._pending.clear()

    def toggle(self, register: str, mode: str) -> bool:
        """Start or stop recording; returns whether a recording is active."""

        if self._recording is None:
            self.start(register, mode)
        else:
            self.stop()
        return self.is_recording

    def record(self, key: str, mode: str) -> None:
        macro = self._recording
        if macro is None or self.is_replaying:
            return
        if not macro.keys and not self._pending:
            # the first recorded key decides the replay mode
            macro.mode = mode
        self._pending.append(key)

    def commit(self) -> None:
        if self._recording is not None:
            self._recording.keys.extend(self._pending)
        self._pending.clear()

    @contextmanager
    def replaying(self) -> Iterator[None]:
        self._replaying += 1
        try:
            yield
        finally:
            self._replaying -= 1


__all__ = ["Macro", "MacroRecorder"]
