"""Mode controller and the built-in mode handlers."""

from .base_mode import KeyInput, Mode, ModeBus, ModeChange, ModeResult
from .capture_mode import CAPTURE_MODE, CaptureMode, CaptureState
from .insert_mode import InsertMode, ReplaceMode
from .keymap_mode import KeymapMode
from .mode_manager import NORMAL_MODE, VISUAL_MODE, ModeController
from .search_mode import SearchMode

__all__ = [
    "CAPTURE_MODE",
    "CaptureMode",
    "CaptureState",
    "InsertMode",
    "KeyInput",
    "KeymapMode",
    "Mode",
    "ModeBus",
    "ModeChange",
    "ModeController",
    "ModeResult",
    "NORMAL_MODE",
    "ReplaceMode",
    "SearchMode",
    "VISUAL_MODE",
]
