"""Macro recording commands."""

from __future__ import annotations

from typing import Mapping

from modal_engine.errors import InvalidCommandArguments
from modal_engine.keymaps.executor import CommandContext
from modal_engine.search.models import register_name

from .keys import feed_keys


def _register(context: CommandContext, args: Mapping[str, object]) -> str:
    return register_name(args.get("register"), context.engine.settings.default_register)


def toggle_recording_macro(context: CommandContext, args: Mapping[str, object]) -> None:
    macros = context.engine.macros
    if macros.is_replaying:
        return
    macros.toggle(_register(context, args), context.session.mode)
    context.engine.bus.emit("macro.recording", macros.recording_register)


def cancel_recording_macro(context: CommandContext, args: Mapping[str, object]) -> None:
    del args
    macros = context.engine.macros
    if macros.is_replaying:
        return
    macros.cancel()
    context.engine.bus.emit("macro.recording", None)


def replay_macro(context: CommandContext, args: Mapping[str, object]) -> None:
    engine = context.engine
    register = _register(context, args)
    macro = engine.macros.get(register)
    if macro is None:
        raise InvalidCommandArguments("modal.replayMacro", f"register {register!r} is empty")
    with engine.tracker.replaying(), engine.macros.replaying():
        feed_keys(context, tuple(macro.keys), macro.mode, replaying=True)


__all__ = ["cancel_recording_macro", "replay_macro", "toggle_recording_macro"]
