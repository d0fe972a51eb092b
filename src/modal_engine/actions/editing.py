"""Minimal editing verbs so the engine is usable without host commands."""

from __future__ import annotations

from typing import Mapping

from modal_engine.buffer.document import translate
from modal_engine.buffer.state import Selection
from modal_engine.errors import InvalidCommandArguments
from modal_engine.host import TextEdit
from modal_engine.keymaps.executor import CommandContext

_UNITS = ("character", "line")


def insert_text(context: CommandContext, args: Mapping[str, object]) -> None:
    text = args.get("text", context.captured)
    if not isinstance(text, str):
        raise InvalidCommandArguments("modal.insertText", "'text' must be a string")
    host = context.host
    host.apply_edits([TextEdit(sel.start, sel.end, text) for sel in host.get_selections()])


def delete_selection(context: CommandContext, args: Mapping[str, object]) -> None:
    """Delete each selection; an empty one deletes the character after it."""

    del args
    host = context.host
    edits = []
    for sel in host.get_selections():
        end = sel.end if not sel.is_empty else translate(host, sel.end, 1)
        if end != sel.start:
            edits.append(TextEdit(sel.start, end))
    host.apply_edits(edits)


def move_cursor(context: CommandContext, args: Mapping[str, object]) -> None:
    unit = args.get("by", "character")
    if unit not in _UNITS:
        raise InvalidCommandArguments("modal.moveCursor", f"'by' must be one of {_UNITS}")
    value = args.get("value", 1)
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidCommandArguments("modal.moveCursor", "'value' must be an integer")
    select = bool(args.get("select", False)) or context.session.visual_flag
    distance = value * (context.count or 1)
    host = context.host
    last_line = host.line_count() - 1
    moved = []
    for sel in host.get_selections():
        if unit == "character":
            target = translate(host, sel.active, distance)
        else:
            line = max(0, min(sel.active[0] + distance, last_line))
            target = (line, min(sel.active[1], len(host.line_at(line))))
        moved.append(sel.with_active(target) if select else Selection.caret(target))
    host.set_selections(moved)


def undo(context: CommandContext, args: Mapping[str, object]) -> None:
    del args
    context.engine.tracker.untouch()
    if not context.host.undo():
        context.session.set_status("Already at oldest change")


def redo(context: CommandContext, args: Mapping[str, object]) -> None:
    del args
    context.engine.tracker.untouch()
    if not context.host.redo():
        context.session.set_status("Already at newest change")


__all__ = ["delete_selection", "insert_text", "move_cursor", "redo", "undo"]
