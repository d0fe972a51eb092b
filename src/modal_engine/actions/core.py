"""Mode switching, selection toggles, and sentence signals."""

from __future__ import annotations

from typing import Mapping

from modal_engine.errors import InvalidCommandArguments
from modal_engine.keymaps.executor import CommandContext
from modal_engine.keymaps.models import INSERT_MODE
from modal_engine.modes.mode_manager import NORMAL_MODE, VISUAL_MODE


def enter_mode(context: CommandContext, args: Mapping[str, object]) -> None:
    mode = args.get("mode")
    if not isinstance(mode, str) or not mode:
        raise InvalidCommandArguments("modal.enterMode", "'mode' must be a non-empty string")
    context.engine.modes.enter(context.session, mode)


def enter_insert(context: CommandContext, args: Mapping[str, object]) -> None:
    del args
    context.engine.modes.enter(context.session, INSERT_MODE)


def enter_normal(context: CommandContext, args: Mapping[str, object]) -> None:
    del args
    context.engine.modes.enter(context.session, NORMAL_MODE)


def toggle_selection(context: CommandContext, args: Mapping[str, object]) -> None:
    session = context.session
    if context.engine.modes.is_selecting(session):
        cancel_selection(context, args)
    else:
        context.engine.modes.enter(session, VISUAL_MODE)


def cancel_selection(context: CommandContext, args: Mapping[str, object]) -> None:
    """Collapse every selection onto its active end and clear the visual flag."""

    del args
    session = context.session
    host = context.host
    host.set_selections([sel.collapse() for sel in host.get_selections()])
    if session.visual_flag:
        context.engine.modes.enter(session, session.mode)


def cancel_multiple_selections(
    context: CommandContext, args: Mapping[str, object]
) -> None:
    del args
    host = context.host
    host.set_selections(list(host.get_selections())[:1])


def touch_document(context: CommandContext, args: Mapping[str, object]) -> None:
    del args
    context.engine.tracker.touch()


def untouch_document(context: CommandContext, args: Mapping[str, object]) -> None:
    del args
    context.engine.tracker.untouch()


def ignore(context: CommandContext, args: Mapping[str, object]) -> None:
    del context, args


__all__ = [
    "cancel_multiple_selections",
    "cancel_selection",
    "enter_insert",
    "enter_mode",
    "enter_normal",
    "ignore",
    "toggle_selection",
    "touch_document",
    "untouch_document",
]
