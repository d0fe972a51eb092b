"""Telemetry services built on the standard ``logging`` package.

This module exposes a narrow surface area for the rest of the engine:

``configure(...)`` -- override or preset the logging configuration
``get_logger(name)`` -- fetch (and cache) a configured logger
``record_event(name, ...)`` -- emit structured events at a chosen level
``span(name, ...)`` -- context manager timing a block + tagging its component
"""

from __future__ import annotations

import json
import logging
import os
import sys
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, MutableMapping, Optional

ENV_PREFIX = "MODAL_ENGINE_"
DEFAULT_LOGGER_NAME = os.getenv(f"{ENV_PREFIX}LOGGER", "modal_engine")
DEFAULT_LOG_FILE = os.getenv(f"{ENV_PREFIX}LOG_FILE", "")

_LOGGER_CACHE: MutableMapping[str, logging.Logger] = {}
_ACTIVE_CONFIG: Optional["TelemetryConfig"] = None
_INSTALLED_HANDLERS: list[logging.Handler] = []


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(f"{ENV_PREFIX}{name}", default)


def _env_flag(name: str, default: bool) -> bool:
    raw = _env(name)
    if raw is None:
        return default
    return raw.lower() in {"1", "true", "yes", "on"}


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    return repr(value) if isinstance(value, (dict, list, tuple, set)) else str(value)


def _format_pairs(data: Dict[str, Any]) -> str:
    return " ".join(f"{key}={_stringify(value)}" for key, value in data.items())


def _resolve_level() -> str:
    return (_env("LOG_LEVEL") or "INFO").upper()


@dataclass(slots=True)
class TelemetryConfig:
    """Handler layout applied to the engine's root logger."""

    level: str = "INFO"
    console: bool = True
    json_format: bool = False
    log_file: str = ""

    def __post_init__(self) -> None:
        self.level = self.level.upper()
        if logging.getLevelName(self.level) == f"Level {self.level}":
            raise ValueError(f"Unknown log level '{self.level}'.")


class JsonFormatter(logging.Formatter):
    """One JSON object per record, carrying the structured payload."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": round(record.created, 6),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        data = getattr(record, "telemetry", None)
        if data:
            payload["data"] = data
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=_stringify)


def _build_preset_config(preset: str) -> TelemetryConfig:
    key = preset.lower()

    if key == "development":
        return TelemetryConfig(level="DEBUG", console=True)
    if key == "production":
        log_path = _env("LOG_FILE", DEFAULT_LOG_FILE) or "modal_engine.log"
        return TelemetryConfig(level="INFO", console=False, log_file=log_path)
    if key in {"performance", "performance_analysis"}:
        log_path = (
            _env("LOG_FILE", DEFAULT_LOG_FILE) or "modal_engine-performance.log"
        )
        return TelemetryConfig(
            level="DEBUG", console=False, json_format=True, log_file=log_path
        )
    raise ValueError(f"Unknown preset '{preset}'.")


def _build_default_config() -> TelemetryConfig:
    return TelemetryConfig(
        level=_resolve_level(),
        console=not _env_flag("DISABLE_CONSOLE", False),
        json_format=_env_flag("LOG_JSON", False),
        log_file=_env("LOG_FILE") or DEFAULT_LOG_FILE,
    )


def _install(config: TelemetryConfig) -> None:
    root = logging.getLogger(DEFAULT_LOGGER_NAME)
    for handler in _INSTALLED_HANDLERS:
        root.removeHandler(handler)
        handler.close()
    _INSTALLED_HANDLERS.clear()

    formatter: logging.Formatter
    if config.json_format:
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
        )

    handlers: list[logging.Handler] = []
    if config.console:
        handlers.append(logging.StreamHandler(sys.stderr))
    if config.log_file:
        handlers.append(logging.FileHandler(config.log_file, encoding="utf-8"))
    if not handlers:
        handlers.append(logging.NullHandler())

    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
        _INSTALLED_HANDLERS.append(handler)
    root.setLevel(config.level)


def configure(
    *, config: Optional[TelemetryConfig] = None, preset: Optional[str] = None
) -> None:
    """Override the active logging configuration.

    Parameters
    ----------
    config:
        Explicit ``TelemetryConfig`` instance to adopt.
    preset:
        Named preset (``"development"``, ``"production"``,
        ``"performance"``). ``config`` and ``preset`` are mutually exclusive.
    """

    global _ACTIVE_CONFIG
    if config and preset:
        raise ValueError("Provide either `config` or `preset`, not both.")

    if preset:
        config = _build_preset_config(preset)
    elif config is None:
        config = _build_default_config()

    _ACTIVE_CONFIG = config
    _install(config)
    _LOGGER_CACHE.clear()


def active_config() -> TelemetryConfig:
    return _ensure_config()


def _ensure_config() -> TelemetryConfig:
    if _ACTIVE_CONFIG is None:
        configure()
    assert _ACTIVE_CONFIG is not None
    return _ACTIVE_CONFIG


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a cached logger living under the engine's logger hierarchy."""

    _ensure_config()
    logger_name = name or DEFAULT_LOGGER_NAME
    if logger_name not in _LOGGER_CACHE:
        _LOGGER_CACHE[logger_name] = logging.getLogger(logger_name)
    return _LOGGER_CACHE[logger_name]


def _resolve_level_number(level: str | int) -> int:
    if isinstance(level, int):
        return level
    number = logging.getLevelName(str(level).upper())
    if not isinstance(number, int):
        raise ValueError(f"Unsupported log level '{level}'.")
    return number


def record_event(
    name: str,
    *,
    level: str | int = "info",
    data: Optional[Dict[str, Any]] = None,
    logger_name: Optional[str] = None,
) -> None:
    """Emit a structured ``event::<name>`` record."""

    log = get_logger(logger_name)
    number = _resolve_level_number(level)
    if not log.isEnabledFor(number):
        return
    payload = {"event": name, **(data or {})}
    log.log(
        number,
        "event::%s %s",
        name,
        _format_pairs(payload),
        extra={"telemetry": payload},
    )


@dataclass
class SpanHandle:
    """Handle returned from ``span`` for optional metadata updates."""

    logger: logging.Logger
    span_name: str
    component_name: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    started: float = field(default_factory=time.perf_counter)
    failed: bool = False
    cancelled: bool = False

    def add_metadata(self, key: str, value: Any) -> None:
        self.metadata[key] = _stringify(value)

    @property
    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self.started) * 1000.0

    def _emit(
        self, level: int, message: str, extra: Optional[Dict[str, Any]] = None
    ) -> None:
        if not self.logger.isEnabledFor(level):
            return
        payload: Dict[str, Any] = {"span": self.span_name, **self.metadata}
        if self.component_name:
            payload["component"] = self.component_name
        if extra:
            payload.update({key: _stringify(val) for key, val in extra.items()})
        self.logger.log(
            level,
            "%s %s",
            message,
            _format_pairs(payload),
            extra={"telemetry": payload},
        )

    def fail(self, reason: str) -> None:
        self.failed = True
        self._emit(logging.ERROR, "span::fail", {"reason": reason})

    def cancel(self, reason: str | None = None) -> None:
        self.cancelled = True
        extra = {"reason": reason} if reason else None
        self._emit(logging.WARNING, "span::cancel", extra)

    def finish(self) -> None:
        self._emit(
            logging.DEBUG, "span::end", {"duration_ms": f"{self.elapsed_ms:.3f}"}
        )


@contextmanager
def span(
    name: str,
    *,
    logger_name: Optional[str] = None,
    component: Optional[str | bool] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Iterator[SpanHandle]:
    """Time a code block and (optionally) tag it with a component.

    Parameters
    ----------
    name:
        Operation name written on every span record.
    logger_name:
        Target logger; defaults to the engine logger.
    component:
        If ``True`` use the same name as the span; if a string, use it as the
        component identifier.
    metadata:
        Optional key/value pairs attached to every record the span emits.
    """

    log = get_logger(logger_name)
    component_name = None
    if component is True:
        component_name = name
    elif isinstance(component, str):
        component_name = component

    handle = SpanHandle(
        logger=log,
        span_name=name,
        component_name=component_name,
        metadata={key: _stringify(value) for key, value in (metadata or {}).items()},
    )
    try:
        yield handle
    except Exception as exc:
        handle.fail(str(exc))
        raise
    finally:
        handle.finish()


logger = get_logger()

__all__ = [
    "JsonFormatter",
    "SpanHandle",
    "TelemetryConfig",
    "active_config",
    "configure",
    "get_logger",
    "record_event",
    "span",
    "logger",
]
