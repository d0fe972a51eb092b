"""Restricted expression language used in binding arguments.

Binding tables carry small expressions such as ``"__count || 1"``,
``"!__selecting"`` or ``"__captured == 'x'"``. They are parsed with ``ast`` and
walked by a whitelist interpreter: names resolve only against the
``EvalContext``, and there is no attribute access, no assignment and no
imports. Calls are limited to a handful of pure builtins.
"""

from __future__ import annotations

import ast
import operator
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Callable, Dict, Mapping, Protocol

from modal_engine.errors import ExpressionEvaluationFailure
from modal_engine.runtime import telemetry

logger = telemetry.get_logger("modal_engine.expressions")


@dataclass(frozen=True, slots=True)
class EvalContext:
    """Values an expression may read."""

    count: int | None = None
    selecting: bool = False
    mode: str = "normal"
    captured: str | None = None
    selection: str = ""
    line: int = 0

    def names(self) -> Dict[str, Any]:
        return {
            "__count": self.count,
            "__selecting": self.selecting,
            "__mode": self.mode,
            "__captured": self.captured,
            "__selection": self.selection,
            "__line": self.line,
        }


class ExpressionEvaluator(Protocol):
    def evaluate(self, expression: str, context: EvalContext) -> Any: ...


_CONSTANTS: Mapping[str, Any] = {
    "true": True,
    "false": False,
    "null": None,
    "undefined": None,
    "True": True,
    "False": False,
    "None": None,
}

_FUNCTIONS: Mapping[str, Callable[..., Any]] = {
    "len": len,
    "min": min,
    "max": max,
    "abs": abs,
    "int": int,
    "str": str,
    "bool": bool,
}

_BINARY: Mapping[type, Callable[[Any, Any], Any]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
}

_COMPARE: Mapping[type, Callable[[Any, Any], bool]] = {
    ast.Eq: operator.eq,
    ast.NotEq: operator.ne,
    ast.Lt: operator.lt,
    ast.LtE: operator.le,
    ast.Gt: operator.gt,
    ast.GtE: operator.ge,
    ast.In: lambda left, right: left in right,
    ast.NotIn: lambda left, right: left not in right,
}

_STRING_LITERAL = re.compile(r"""('(?:[^'\\]|\\.)*'|"(?:[^"\\]|\\.)*")""")
_JS_OPERATORS = (
    (re.compile(r"&&"), " and "),
    (re.compile(r"\|\|"), " or "),
    (re.compile(r"!"), " not "),
)


def normalize(expression: str) -> str:
    """Rewrite C-style boolean operators outside string literals."""

    parts = _STRING_LITERAL.split(expression)
    for index in range(0, len(parts), 2):
        chunk = parts[index]
        # placeholders keep '!=' from being split by the lone '!' rule
        chunk = chunk.replace("!==", "\0").replace("!=", "\0")
        chunk = chunk.replace("===", "\1").replace("==", "\1")
        for pattern, replacement in _JS_OPERATORS:
            chunk = pattern.sub(replacement, chunk)
        parts[index] = chunk.replace("\0", " != ").replace("\1", " == ")
    return "".join(parts).strip()


@lru_cache(maxsize=512)
def _parse(expression: str) -> ast.expr:
    try:
        tree = ast.parse(normalize(expression), mode="eval")
    except SyntaxError as exc:
        raise ExpressionEvaluationFailure(expression, f"syntax error: {exc.msg}") from exc
    return tree.body


class SafeEvaluator:
    """Walks a whitelisted subset of Python expression nodes."""

    def evaluate(self, expression: str, context: EvalContext) -> Any:
        node = _parse(expression)
        names = {**_CONSTANTS, **context.names()}
        try:
            return self._eval(node, names, expression)
        except ExpressionEvaluationFailure:
            raise
        except (TypeError, ValueError, ZeroDivisionError, IndexError, KeyError) as exc:
            logger.debug("expression %r failed: %s", expression, exc)
            raise ExpressionEvaluationFailure(expression, str(exc)) from exc

    def _eval(self, node: ast.AST, names: Mapping[str, Any], source: str) -> Any:
        if isinstance(node, ast.Constant):
            return node.value
        if isinstance(node, ast.Name):
            if node.id not in names:
                raise ExpressionEvaluationFailure(source, f"unknown name '{node.id}'")
            return names[node.id]
        if isinstance(node, ast.BoolOp):
            return self._bool_op(node, names, source)
        if isinstance(node, ast.UnaryOp):
            operand = self._eval(node.operand, names, source)
            if isinstance(node.op, ast.Not):
                return not operand
            if isinstance(node.op, ast.USub):
                return -operand
            if isinstance(node.op, ast.UAdd):
                return +operand
        if isinstance(node, ast.BinOp) and type(node.op) in _BINARY:
            left = self._eval(node.left, names, source)
            right = self._eval(node.right, names, source)
            return _BINARY[type(node.op)](left, right)
        if isinstance(node, ast.Compare):
            left = self._eval(node.left, names, source)
            for op, comparator in zip(node.ops, node.comparators):
                if type(op) not in _COMPARE:
                    break
                right = self._eval(comparator, names, source)
                if not _COMPARE[type(op)](left, right):
                    return False
                left = right
            else:
                return True
        if isinstance(node, ast.IfExp):
            if self._eval(node.test, names, source):
                return self._eval(node.body, names, source)
            return self._eval(node.orelse, names, source)
        if isinstance(node, ast.Subscript):
            target = self._eval(node.value, names, source)
            return target[self._eval(node.slice, names, source)]
        if isinstance(node, ast.Slice):
            return slice(
                self._eval(node.lower, names, source) if node.lower else None,
                self._eval(node.upper, names, source) if node.upper else None,
                self._eval(node.step, names, source) if node.step else None,
            )
        if isinstance(node, (ast.List, ast.Tuple)):
            return [self._eval(item, names, source) for item in node.elts]
        if isinstance(node, ast.Dict):
            return {
                self._eval(key, names, source): self._eval(value, names, source)
                for key, value in zip(node.keys, node.values)
                if key is not None
            }
        if isinstance(node, ast.Call):
            return self._call(node, names, source)
        raise ExpressionEvaluationFailure(
            source, f"unsupported syntax '{type(node).__name__}'"
        )

    def _bool_op(self, node: ast.BoolOp, names: Mapping[str, Any], source: str) -> Any:
        value: Any = None
        for operand in node.values:
            value = self._eval(operand, names, source)
            if isinstance(node.op, ast.And) and not value:
                return value
            if isinstance(node.op, ast.Or) and value:
                return value
        return value

    def _call(self, node: ast.Call, names: Mapping[str, Any], source: str) -> Any:
        if not isinstance(node.func, ast.Name) or node.func.id not in _FUNCTIONS:
            raise ExpressionEvaluationFailure(source, "only builtin helpers can be called")
        if node.keywords:
            raise ExpressionEvaluationFailure(source, "keyword arguments are not allowed")
        args = [self._eval(arg, names, source) for arg in node.args]
        return _FUNCTIONS[node.func.id](*args)


def contains_expression(value: object) -> bool:
    """Strings mentioning a ``__`` context name are evaluated, others are literal."""

    return isinstance(value, str) and "__" in value


__all__ = [
    "EvalContext",
    "ExpressionEvaluator",
    "SafeEvaluator",
    "contains_expression",
    "normalize",
]
