"""Scripted key injection through nested matchers."""

from __future__ import annotations

from typing import Mapping, Optional, Sequence

from modal_engine.errors import InvalidCommandArguments, ReplayDepthExceeded
from modal_engine.keymaps.executor import CommandContext
from modal_engine.keymaps.models import KeySequence


def feed_keys(
    context: CommandContext,
    keys: Sequence[str],
    mode: Optional[str] = None,
    *,
    replaying: bool = False,
) -> None:
    """Dispatch ``keys`` one by one through a fresh nested matcher.

    The keys go through the mode handlers exactly like typed keys, but they
    never enter the outer matcher's buffer, the macro recording or the
    current sentence word.
    """

    session = context.session
    engine = session.engine
    limit = engine.settings.max_replay_depth
    if context.matcher.depth >= limit:
        raise ReplayDepthExceeded(limit)
    if mode is not None and mode != session.mode:
        engine.modes.enter(session, mode)
    nested = context.matcher.nested(replaying=replaying)
    with session.using_matcher(nested):
        for key in keys:
            engine.dispatch(session, key)
    nested.reset()


def type_keys(context: CommandContext, args: Mapping[str, object]) -> None:
    keys = args.get("keys")
    if not isinstance(keys, str) or not keys:
        raise InvalidCommandArguments("modal.typeKeys", "'keys' must be a non-empty string")
    mode = args.get("mode")
    if mode is not None and not isinstance(mode, str):
        raise InvalidCommandArguments("modal.typeKeys", "'mode' must be a string")
    feed_keys(context, KeySequence.parse(keys).tokens, mode)


__all__ = ["feed_keys", "type_keys"]
