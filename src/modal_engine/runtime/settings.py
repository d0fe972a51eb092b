"""Engine-wide settings resolved from ``MODAL_ENGINE_*`` environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .telemetry import ENV_PREFIX

DEFAULT_MAX_REPEAT = 1000
DEFAULT_MAX_REPLAY_DEPTH = 16


def _env(
    name: str, default: Optional[str] = None, *, environ: Mapping[str, str]
) -> Optional[str]:
    return environ.get(f"{ENV_PREFIX}{name}", default)


def _env_int(name: str, default: int, *, environ: Mapping[str, str]) -> int:
    raw = _env(name, environ=environ)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}") from exc


@dataclass(frozen=True, slots=True)
class EngineSettings:
    """Tunables shared by every editor session of an engine."""

    start_mode: str = "normal"
    max_repeat: int = DEFAULT_MAX_REPEAT
    max_replay_depth: int = DEFAULT_MAX_REPLAY_DEPTH
    default_register: str = "default"

    def __post_init__(self) -> None:
        if not self.start_mode:
            raise ValueError("start_mode cannot be empty")
        if self.start_mode == "visual":
            raise ValueError("start_mode cannot be 'visual'; it is derived")
        if self.max_repeat < 1:
            raise ValueError("max_repeat must be positive")
        if self.max_replay_depth < 1:
            raise ValueError("max_replay_depth must be positive")
        if not self.default_register:
            raise ValueError("default_register cannot be empty")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineSettings":
        env = os.environ if environ is None else environ
        return cls(
            start_mode=_env("START_MODE", "normal", environ=env) or "normal",
            max_repeat=_env_int("MAX_REPEAT", DEFAULT_MAX_REPEAT, environ=env),
            max_replay_depth=_env_int(
                "MAX_REPLAY_DEPTH", DEFAULT_MAX_REPLAY_DEPTH, environ=env
            ),
            default_register=_env("DEFAULT_REGISTER", "default", environ=env)
            or "default",
        )


__all__ = ["EngineSettings", "DEFAULT_MAX_REPEAT", "DEFAULT_MAX_REPLAY_DEPTH"]
