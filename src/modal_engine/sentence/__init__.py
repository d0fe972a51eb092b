"""Sentence tracking for Kakoune-style repeat."""

from .models import CLEAR_SELECTIONS, Sentence, Word
from .tracker import TEXT_ENTRY_MODES, SentenceTracker

__all__ = [
    "CLEAR_SELECTIONS",
    "Sentence",
    "SentenceTracker",
    "TEXT_ENTRY_MODES",
    "Word",
]
