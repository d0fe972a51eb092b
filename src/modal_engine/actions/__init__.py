"""Built-in command handlers registered under ``modal.*`` names."""

from .capture import capture_char
from .core import (
    cancel_multiple_selections,
    cancel_selection,
    enter_insert,
    enter_mode,
    enter_normal,
    ignore,
    toggle_selection,
    touch_document,
    untouch_document,
)
from .editing import delete_selection, insert_text, move_cursor, redo, undo
from .keys import feed_keys, type_keys
from .macros import cancel_recording_macro, replay_macro, toggle_recording_macro
from .repeat import repeat_last_change, repeat_last_used_selection, replay_word
from .search import (
    accept_search,
    cancel_search,
    clear_search_decorations,
    delete_last_search_char,
    next_match,
    previous_match,
    search,
)
from .selection import select_between_command

__all__ = [
    "accept_search",
    "cancel_multiple_selections",
    "cancel_recording_macro",
    "cancel_search",
    "cancel_selection",
    "capture_char",
    "clear_search_decorations",
    "delete_last_search_char",
    "delete_selection",
    "enter_insert",
    "enter_mode",
    "enter_normal",
    "feed_keys",
    "ignore",
    "insert_text",
    "move_cursor",
    "next_match",
    "previous_match",
    "redo",
    "repeat_last_change",
    "repeat_last_used_selection",
    "replay_macro",
    "replay_word",
    "search",
    "select_between_command",
    "toggle_recording_macro",
    "toggle_selection",
    "touch_document",
    "type_keys",
    "undo",
    "untouch_document",
]
