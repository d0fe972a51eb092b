"""UI-agnostic modal editing engine: modes, key sequences, search, repeat."""

__all__ = [
    "actions",
    "adapters",
    "buffer",
    "engine",
    "errors",
    "expressions",
    "host",
    "keymaps",
    "macros",
    "modes",
    "runtime",
    "search",
    "selectors",
    "sentence",
    "session",
]

__version__ = "0.1.0"
