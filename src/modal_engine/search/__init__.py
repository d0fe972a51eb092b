"""Search engine, search arguments, and per-register search sessions."""

from .engine import (
    HighlightSet,
    LinePattern,
    LineRing,
    SearchEngine,
    SearchHit,
    SearchMatch,
    offset_delta,
)
from .interactive import NOT_FOUND, SEARCH_MODE, InteractiveSearch
from .models import (
    OFFSET_POLICIES,
    OffsetPolicy,
    SearchArgs,
    SearchOptions,
    SearchSession,
    register_name,
)

__all__ = [
    "HighlightSet",
    "InteractiveSearch",
    "LinePattern",
    "LineRing",
    "NOT_FOUND",
    "OFFSET_POLICIES",
    "OffsetPolicy",
    "SEARCH_MODE",
    "SearchArgs",
    "SearchEngine",
    "SearchHit",
    "SearchMatch",
    "SearchOptions",
    "SearchSession",
    "offset_delta",
    "register_name",
]
