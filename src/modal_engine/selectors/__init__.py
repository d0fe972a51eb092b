"""Selection helpers built on top of the search primitives."""

from .delimiters import BetweenArgs, select_between

__all__ = ["BetweenArgs", "select_between"]
