"""Declarative keymap registry, command models, and key-sequence matching."""

from .executor import CommandContext, CommandExecutor, CommandHandler
from .matcher import KeySequenceMatcher, MatchOutcome
from .models import (
    INSERT_MODE,
    TEXT_ENTRY_MODES,
    ActionRef,
    Binding,
    CommandSequence,
    CommandSpec,
    ConditionalCommand,
    KeymapAlias,
    KeySequence,
    ParameterizedCommand,
    SingleCommand,
    describe_command,
    normalize_key,
)
from .parsing import BindingIssue, load_bindings, parse_binding_key, parse_command
from .registry import DEFAULT_SCOPE, KeymapConflictError, KeymapRegistry, RegistryStats
from .resolver import KeymapResolver, KeyTip, ResolutionMatch, ResolutionResult

__all__ = [
    "DEFAULT_SCOPE",
    "INSERT_MODE",
    "ActionRef",
    "Binding",
    "BindingIssue",
    "CommandContext",
    "CommandExecutor",
    "CommandHandler",
    "CommandSequence",
    "CommandSpec",
    "ConditionalCommand",
    "KeySequence",
    "KeySequenceMatcher",
    "KeyTip",
    "KeymapAlias",
    "KeymapConflictError",
    "KeymapRegistry",
    "KeymapResolver",
    "MatchOutcome",
    "ParameterizedCommand",
    "RegistryStats",
    "ResolutionMatch",
    "ResolutionResult",
    "SingleCommand",
    "TEXT_ENTRY_MODES",
    "describe_command",
    "load_bindings",
    "normalize_key",
    "parse_binding_key",
    "parse_command",
]
