"""Execute ``CommandSpec`` values against the active editor session."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Mapping, Optional

from modal_engine.errors import (
    CommandFailed,
    ExpressionEvaluationFailure,
    ModalEngineError,
    UnknownCommand,
)
from modal_engine.expressions import ExpressionEvaluator, contains_expression
from modal_engine.runtime import telemetry
from modal_engine.runtime.settings import DEFAULT_MAX_REPEAT

from .models import (
    CommandSequence,
    CommandSpec,
    ConditionalCommand,
    KeymapAlias,
    ParameterizedCommand,
    SingleCommand,
)
from .registry import KeymapRegistry

if TYPE_CHECKING:  # pragma: no cover
    from modal_engine.host import EditorHost
    from modal_engine.session import EditorSession

    from .matcher import KeySequenceMatcher


@dataclass(slots=True)
class CommandContext:
    """Everything a command handler receives besides its arguments."""

    session: "EditorSession"
    matcher: "KeySequenceMatcher"
    mode: str
    count: Optional[int] = None
    captured: Optional[str] = None

    @property
    def host(self) -> "EditorHost":
        return self.session.host

    @property
    def engine(self) -> Any:
        return self.session.engine

    @property
    def is_nested(self) -> bool:
        return self.matcher.parent is not None

    def with_captured(self, captured: Optional[str]) -> "CommandContext":
        return CommandContext(
            session=self.session,
            matcher=self.matcher,
            mode=self.mode,
            count=self.count,
            captured=captured,
        )


CommandHandler = Callable[[CommandContext, Mapping[str, object]], object]


class CommandExecutor:
    """Runs commands: args, repeat, sequences, conditionals, host fallthrough."""

    def __init__(
        self,
        registry: KeymapRegistry,
        evaluator: ExpressionEvaluator,
        *,
        max_repeat: int = DEFAULT_MAX_REPEAT,
        logger_name: str | None = None,
    ) -> None:
        self.registry = registry
        self.evaluator = evaluator
        self.max_repeat = max_repeat
        self._logger_name = logger_name
        self.logger = telemetry.get_logger(logger_name or "modal_engine.commands")

    def execute(self, spec: CommandSpec, context: CommandContext) -> bool:
        """Run ``spec``; a failure is reported on the session and returns False."""

        try:
            self.run(spec, context)
        except ModalEngineError as exc:
            context.session.report(exc)
            return False
        return True

    def run(self, spec: CommandSpec, context: CommandContext) -> None:
        """Like ``execute`` but lets ``ModalEngineError`` propagate."""

        if isinstance(spec, SingleCommand):
            self.invoke(spec.name, {}, context)
        elif isinstance(spec, ParameterizedCommand):
            self._run_parameterized(spec, context)
        elif isinstance(spec, CommandSequence):
            # one failing step is reported; later steps still run
            for step in spec.steps:
                self.execute(step, context)
        elif isinstance(spec, ConditionalCommand):
            if self.evaluate(spec.condition, context):
                branch = spec.then
            else:
                branch = spec.otherwise
            if branch is not None:
                self.run(branch, context)
        elif isinstance(spec, KeymapAlias):
            self.logger.debug("keymap alias %d is not expanded", spec.target)
        else:  # pragma: no cover - closed union
            raise TypeError(f"not a command spec: {spec!r}")

    def evaluate(self, expression: str, context: CommandContext) -> Any:
        return self.evaluator.evaluate(
            expression, context.session.eval_context(context)
        )

    def resolve_args(
        self, args: Mapping[str, object] | str | None, context: CommandContext
    ) -> dict[str, object]:
        if args is None:
            return {}
        if isinstance(args, str):
            value = self.evaluate(args, context)
            if not isinstance(value, Mapping):
                raise ExpressionEvaluationFailure(args, "arguments must evaluate to an object")
            return dict(value)
        resolved: dict[str, object] = {}
        for key, value in args.items():
            if contains_expression(value):
                resolved[key] = self.evaluate(str(value), context)
            else:
                resolved[key] = value
        return resolved

    def invoke(
        self, name: str, args: Mapping[str, object], context: CommandContext
    ) -> object:
        action = self.registry.find_action(name)
        with telemetry.span(
            "commands::invoke",
            logger_name=self._logger_name,
            component="commands",
            metadata={"command": name, "mode": context.mode},
        ) as handle:
            if action is None:
                if context.host.execute_command(name, args):
                    handle.add_metadata("target", "host")
                    return None
                raise UnknownCommand(name)
            try:
                return action(context, args)
            except ModalEngineError:
                raise
            except Exception as exc:
                self.logger.exception("command %s raised", name)
                raise CommandFailed(name, exc) from exc

    def _run_parameterized(
        self, spec: ParameterizedCommand, context: CommandContext
    ) -> None:
        args = self.resolve_args(spec.args, context)
        repeat = spec.repeat
        if repeat is None:
            self.invoke(spec.name, args, context)
            return
        if isinstance(repeat, int):
            self._run_times(spec.name, args, context, repeat)
            return

        value = self.evaluate(repeat, context)
        if isinstance(value, bool):
            self._run_while(spec, args, context)
        elif isinstance(value, int):
            self._run_times(spec.name, args, context, value)
        elif value is None:
            self.invoke(spec.name, args, context)
        else:
            self.logger.warning(
                "repeat %r evaluated to %r; running once", repeat, value
            )
            self.invoke(spec.name, args, context)

    def _run_times(
        self,
        name: str,
        args: Mapping[str, object],
        context: CommandContext,
        times: int,
    ) -> None:
        for _ in range(max(0, min(times, self.max_repeat))):
            self.invoke(name, args, context)

    def _run_while(
        self,
        spec: ParameterizedCommand,
        args: Mapping[str, object],
        context: CommandContext,
    ) -> None:
        """Run once, then again while the repeat expression holds."""

        cycles = 0
        while True:
            self.invoke(spec.name, args, context)
            cycles += 1
            if not self.evaluate(str(spec.repeat), context):
                return
            if cycles >= self.max_repeat:
                self.logger.warning(
                    "repeat condition %r still true after %d cycles; stopping",
                    spec.repeat,
                    self.max_repeat,
                )
                return


__all__ = ["CommandContext", "CommandExecutor", "CommandHandler"]
