"""Host adapters for the modal engine."""

__all__ = ["textual"]
