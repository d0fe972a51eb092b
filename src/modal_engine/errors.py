"""Error taxonomy shared by every engine component.

Nothing here is fatal to a session: each error degrades to "no-op for this
key" plus a status message decided by ``severity``.
"""

from __future__ import annotations

from typing import Literal, Optional, Sequence

Severity = Literal["silent", "warning", "error"]


class ModalEngineError(RuntimeError):
    """Base class for recoverable engine failures."""

    severity: Severity = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def user_message(self) -> str:
        return self.message


class UnboundKeySequence(ModalEngineError):
    """Typed keys are neither a binding nor a prefix of one."""

    severity: Severity = "silent"

    def __init__(self, keys: Sequence[str], mode: str) -> None:
        self.keys = tuple(keys)
        self.mode = mode
        super().__init__(f"No binding for '{''.join(self.keys)}' in mode '{mode}'")


class MalformedCommand(ModalEngineError):
    """A binding value cannot be interpreted as a command."""

    def __init__(self, message: str, *, raw: object = None) -> None:
        super().__init__(message)
        self.raw = raw


class UnknownCommand(ModalEngineError):
    """Neither the engine nor the host knows the command name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown command '{name}'")
        self.name = name


class InvalidCommandArguments(ModalEngineError):
    """Arguments passed to a built-in command failed validation."""

    def __init__(self, command: str, problem: str) -> None:
        super().__init__(f"{command}: {problem}")
        self.command = command
        self.problem = problem


class MissingExecuteAfterCommand(ModalEngineError):
    """A capture finished without a command to hand the text to."""

    severity: Severity = "warning"

    def __init__(self, captured: str) -> None:
        super().__init__("Capture finished but no 'executeAfter' command was given")
        self.captured = captured


class InvalidPattern(ModalEngineError):
    """A search or delimiter regex failed to compile."""

    def __init__(self, pattern: str, reason: str) -> None:
        super().__init__(f"Invalid pattern {pattern!r}: {reason}")
        self.pattern = pattern
        self.reason = reason


class InvalidOffsetPolicy(ModalEngineError):
    def __init__(self, value: object) -> None:
        super().__init__(
            f"Invalid search offset {value!r}; "
            "expected 'inclusive', 'exclusive', 'start' or 'end'"
        )
        self.value = value


class ExpressionEvaluationFailure(ModalEngineError):
    """An argument, repeat or condition expression could not be evaluated."""

    def __init__(self, expression: str, reason: str) -> None:
        super().__init__(f"Cannot evaluate {expression!r}: {reason}")
        self.expression = expression
        self.reason = reason


class ReplayDepthExceeded(ModalEngineError):
    def __init__(self, depth: int) -> None:
        super().__init__(f"Replay nested deeper than {depth} levels")
        self.depth = depth


class CommandFailed(ModalEngineError):
    """A command handler raised something outside this taxonomy."""

    def __init__(self, name: str, cause: Optional[BaseException] = None) -> None:
        reason = f": {cause}" if cause is not None else ""
        super().__init__(f"Command '{name}' failed{reason}")
        self.name = name
        self.cause = cause


__all__ = [
    "Severity",
    "ModalEngineError",
    "UnboundKeySequence",
    "MalformedCommand",
    "UnknownCommand",
    "InvalidCommandArguments",
    "MissingExecuteAfterCommand",
    "InvalidPattern",
    "InvalidOffsetPolicy",
    "ExpressionEvaluationFailure",
    "ReplayDepthExceeded",
    "CommandFailed",
]
