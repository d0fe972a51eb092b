"""Built-in ``modal.*`` commands and the bindings every mode starts with."""

from __future__ import annotations

from typing import Callable, Iterable

from modal_engine import actions

from .models import ActionRef, Binding, KeySequence, SingleCommand
from .registry import KeymapRegistry


def _action(name: str, handler: Callable[..., object], description: str) -> ActionRef:
    return ActionRef(
        id=f"modal.{name}",
        handler=handler,
        telemetry_name=f"actions.{name}",
        description=description,
    )


DEFAULT_ACTIONS: tuple[ActionRef, ...] = (
    _action("enterMode", actions.enter_mode, "Switch to the mode named by 'mode'"),
    _action("enterInsert", actions.enter_insert, "Enter insert mode"),
    _action("enterNormal", actions.enter_normal, "Return to normal mode"),
    _action("toggleSelection", actions.toggle_selection, "Toggle visual selection"),
    _action("cancelSelection", actions.cancel_selection, "Collapse selections"),
    _action(
        "cancelMultipleSelections",
        actions.cancel_multiple_selections,
        "Keep only the primary selection",
    ),
    _action("touchDocument", actions.touch_document, "Treat the command as a change"),
    _action(
        "untouchDocument", actions.untouch_document, "Treat the command as no change"
    ),
    _action("ignore", actions.ignore, "Do nothing"),
    _action("search", actions.search, "Search for text"),
    _action("acceptSearch", actions.accept_search, "Accept the active search"),
    _action("cancelSearch", actions.cancel_search, "Cancel the active search"),
    _action(
        "deleteLastSearchChar",
        actions.delete_last_search_char,
        "Remove the last search character",
    ),
    _action("nextMatch", actions.next_match, "Jump to the next match"),
    _action("previousMatch", actions.previous_match, "Jump to the previous match"),
    _action(
        "clearSearchDecorations",
        actions.clear_search_decorations,
        "Remove search highlights",
    ),
    _action(
        "selectBetween", actions.select_between_command, "Select between delimiters"
    ),
    _action("captureChar", actions.capture_char, "Capture keys for a follow-up"),
    _action("typeKeys", actions.type_keys, "Type keys through the binding table"),
    _action(
        "toggleRecordingMacro",
        actions.toggle_recording_macro,
        "Start or stop recording a macro",
    ),
    _action(
        "cancelRecordingMacro",
        actions.cancel_recording_macro,
        "Abort the macro being recorded",
    ),
    _action("replayMacro", actions.replay_macro, "Replay a recorded macro"),
    _action("repeatLastChange", actions.repeat_last_change, "Repeat the last change"),
    _action(
        "repeatLastUsedSelection",
        actions.repeat_last_used_selection,
        "Repeat the last selection",
    ),
    _action("insertText", actions.insert_text, "Insert text at every selection"),
    _action("deleteSelection", actions.delete_selection, "Delete selected text"),
    _action("moveCursor", actions.move_cursor, "Move or extend selections"),
    _action("undo", actions.undo, "Undo the last change"),
    _action("redo", actions.redo, "Redo the last undone change"),
)


def _binding(mode: str, keys: str, command: str, description: str) -> Binding:
    return Binding(
        id=f"{mode}.{command.rsplit('.', 1)[-1]}",
        sequence=KeySequence.parse(keys),
        command=SingleCommand(command),
        modes=(mode,),
        description=description,
        source="defaults",
    )


DEFAULT_BINDINGS: tuple[Binding, ...] = (
    _binding("insert", "<escape>", "modal.enterNormal", "Leave insert mode"),
    _binding("replace", "<escape>", "modal.enterNormal", "Leave replace mode"),
    _binding("search", "<escape>", "modal.cancelSearch", "Cancel the search"),
    _binding("search", "<enter>", "modal.acceptSearch", "Accept the search"),
    _binding(
        "search", "<backspace>", "modal.deleteLastSearchChar", "Delete a search character"
    ),
)


def register_default_actions(
    registry: KeymapRegistry, actions_: Iterable[ActionRef] = DEFAULT_ACTIONS
) -> None:
    for action in actions_:
        registry.register_action(action, replace=True)


def load_default_keymaps(
    registry: KeymapRegistry,
    *,
    bindings: Iterable[Binding] = DEFAULT_BINDINGS,
) -> None:
    """Register built-in commands plus the bindings that leave text modes."""

    register_default_actions(registry)
    for binding in bindings:
        registry.register_binding(binding, replace=True)


__all__ = [
    "DEFAULT_ACTIONS",
    "DEFAULT_BINDINGS",
    "load_default_keymaps",
    "register_default_actions",
]
