"""Error taxonomy for command registration and dispatch."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Optional

if TYPE_CHECKING:
    from .types import ExecutionResult


class CommandError(Exception):
    """Base class for every failure surfaced by the dispatcher.

    ``section`` is filled in by the dispatcher with a label of the body section
    that failed, so the user can tell which step broke.
    """

    kind = "CommandError"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
        self.section: Optional[str] = None


class UnresolvedVariable(CommandError):
    kind = "UnresolvedVariable"

    def __init__(self, name: str) -> None:
        super().__init__(f"Unresolved variable '${{{name}}}'")
        self.name = name


class DuplicateCommand(CommandError):
    kind = "DuplicateCommand"

    def __init__(self, name: str, source: Optional[Path] = None) -> None:
        message = f"Command '/{name}' is already registered"
        if source is not None:
            message += f" (duplicate in {source})"
        super().__init__(message)
        self.name = name


class UnknownCommand(CommandError):
    kind = "UnknownCommand"

    def __init__(self, name: str) -> None:
        if name:
            message = f"Unknown command '/{name}'"
        else:
            message = "No command given"
        super().__init__(message)
        self.name = name


class ToolNotAllowed(CommandError):
    kind = "ToolNotAllowed"

    def __init__(self, command: str, tool: str, allowed: Iterable[str]) -> None:
        allowed = tuple(allowed)
        shown = ", ".join(allowed) if allowed else "none"
        super().__init__(
            f"Command '/{command}' uses tool '{tool}' which is not in its allowed tools ({shown})"
        )
        self.command = command
        self.tool = tool
        self.allowed = allowed


class ScriptFailed(CommandError):
    kind = "ScriptFailed"

    def __init__(self, result: "ExecutionResult") -> None:
        message = f"Script '{result.argv[0]}' exited with code {result.exit_code}"
        detail = result.stderr.strip()
        if detail:
            message += f": {detail.splitlines()[-1]}"
        super().__init__(message)
        self.code = result.exit_code
        self.result = result


class ScriptUnavailable(CommandError):
    kind = "ScriptUnavailable"

    def __init__(self, executable: str, reason: str) -> None:
        super().__init__(f"Script '{executable}' cannot be executed: {reason}")
        self.executable = executable
        self.reason = reason


class ScriptTimeout(CommandError):
    kind = "ScriptTimeout"

    def __init__(self, executable: str, timeout: float) -> None:
        super().__init__(f"Script '{executable}' timed out after {timeout:g} seconds")
        self.executable = executable
        self.timeout = timeout


class ReferenceNotFound(CommandError):
    kind = "ReferenceNotFound"

    def __init__(self, path: str) -> None:
        super().__init__(f"Reference not found: {path}")
        self.path = path


class ReferenceUnreadable(CommandError):
    kind = "ReferenceUnreadable"

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Reference unreadable: {path} ({reason})")
        self.path = path
        self.reason = reason


class CommandFileError(CommandError):
    kind = "CommandFileError"

    def __init__(self, path: Path | str, reason: str) -> None:
        super().__init__(f"Invalid command file {path}: {reason}")
        self.path = path
        self.reason = reason
