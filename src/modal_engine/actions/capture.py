"""``captureChar``: read the next keys and pass them to a follow-up command."""

from __future__ import annotations

from typing import Mapping

from modal_engine.errors import InvalidCommandArguments
from modal_engine.keymaps.executor import CommandContext
from modal_engine.keymaps.parsing import parse_command
from modal_engine.modes.capture_mode import CAPTURE_MODE, CaptureState

_COMMAND = "modal.captureChar"


def capture_char(context: CommandContext, args: Mapping[str, object]) -> None:
    accept_after = args.get("acceptAfter", 1)
    if isinstance(accept_after, bool) or not isinstance(accept_after, int) or accept_after < 1:
        raise InvalidCommandArguments(_COMMAND, "'acceptAfter' must be a positive integer")
    raw = args.get("executeAfter")
    session = context.session
    state = CaptureState(
        accept_after=accept_after,
        execute_after=parse_command(raw) if raw is not None else None,
        previous_mode=session.mode,
        count=context.count,
    )
    session.capture = state
    context.engine.modes.enter(session, CAPTURE_MODE)


__all__ = ["capture_char"]
