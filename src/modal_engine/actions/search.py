"""Search commands: prompt, accept/cancel, match navigation."""

from __future__ import annotations

from typing import Mapping, Optional

from modal_engine.keymaps.executor import CommandContext
from modal_engine.search.models import SearchArgs, register_name


def _default_register(context: CommandContext) -> str:
    return context.engine.settings.default_register


def _register(context: CommandContext, args: Mapping[str, object]) -> Optional[str]:
    if "register" not in args:
        return None
    return register_name(args.get("register"), _default_register(context))


def search(context: CommandContext, args: Mapping[str, object]) -> None:
    parsed = SearchArgs.from_args(args, default_register=_default_register(context))
    context.session.search.start(parsed)


def accept_search(context: CommandContext, args: Mapping[str, object]) -> None:
    del args
    context.session.search.accept()


def cancel_search(context: CommandContext, args: Mapping[str, object]) -> None:
    del args
    context.session.search.cancel()


def delete_last_search_char(context: CommandContext, args: Mapping[str, object]) -> None:
    del args
    context.session.search.delete_last_char()


def next_match(context: CommandContext, args: Mapping[str, object]) -> None:
    context.session.search.repeat(_register(context, args))


def previous_match(context: CommandContext, args: Mapping[str, object]) -> None:
    context.session.search.repeat(_register(context, args), reverse=True)


def clear_search_decorations(context: CommandContext, args: Mapping[str, object]) -> None:
    del args
    context.session.search.clear_highlights()


__all__ = [
    "accept_search",
    "cancel_search",
    "clear_search_decorations",
    "delete_last_search_char",
    "next_match",
    "previous_match",
    "search",
]
