"""Selection-shaping commands built on the delimiter selector."""

from __future__ import annotations

from typing import Mapping

from modal_engine.keymaps.executor import CommandContext
from modal_engine.selectors import BetweenArgs, select_between


def select_between_command(context: CommandContext, args: Mapping[str, object]) -> None:
    parsed = BetweenArgs.from_args(args)
    host = context.host
    host.set_selections(
        [select_between(host, sel, parsed) for sel in host.get_selections()]
    )


__all__ = ["select_between_command"]
