"""Command registry and dispatch for cortex."""

from .dispatcher import Dispatcher
from .errors import (
    CommandError,
    CommandFileError,
    DuplicateCommand,
    ReferenceNotFound,
    ReferenceUnreadable,
    ScriptFailed,
    ScriptTimeout,
    ScriptUnavailable,
    ToolNotAllowed,
    UnknownCommand,
    UnresolvedVariable,
)
from .loader import ReferenceLoader
from .registry import SYSTEM_COMMANDS_DIR, CommandRegistry
from .render import format_error, render_command_list
from .runner import ScriptRunner
from .types import (
    CommandDefinition,
    DispatchResult,
    DispatchState,
    ExecutionResult,
    LiteralSection,
    ReferenceContent,
    ReferenceSection,
    ResolvedInvocation,
    ScriptSection,
)

__all__ = [
    "CommandDefinition",
    "CommandError",
    "CommandFileError",
    "CommandRegistry",
    "Dispatcher",
    "DispatchResult",
    "DispatchState",
    "DuplicateCommand",
    "ExecutionResult",
    "LiteralSection",
    "ReferenceContent",
    "ReferenceLoader",
    "ReferenceNotFound",
    "ReferenceSection",
    "ReferenceUnreadable",
    "ResolvedInvocation",
    "ScriptFailed",
    "ScriptRunner",
    "ScriptSection",
    "ScriptTimeout",
    "ScriptUnavailable",
    "SYSTEM_COMMANDS_DIR",
    "ToolNotAllowed",
    "UnknownCommand",
    "UnresolvedVariable",
    "format_error",
    "render_command_list",
]
