"""Textual host adapter; the demo app lives in ``app`` and needs Textual."""

from .controller import (
    TextualModalAdapter,
    TextualUIHooks,
    format_keytips,
    normalize_textual_key,
)

__all__ = [
    "TextualModalAdapter",
    "TextualUIHooks",
    "format_keytips",
    "normalize_textual_key",
]
