"""Macro recording and replay registers."""

from .recorder import Macro, MacroRecorder

__all__ = ["Macro", "MacroRecorder"]
