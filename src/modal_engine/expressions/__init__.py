"""Restricted evaluator for expressions embedded in binding tables."""

from .evaluator import (
    EvalContext,
    ExpressionEvaluator,
    SafeEvaluator,
    contains_expression,
    normalize,
)

__all__ = [
    "EvalContext",
    "ExpressionEvaluator",
    "SafeEvaluator",
    "contains_expression",
    "normalize",
]
