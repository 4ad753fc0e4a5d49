"""Data models for command definitions and dispatch results."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from .errors import CommandError

BASH_TOOL = "Bash"
READ_TOOL = "Read"

FAILURE_POLICIES = ("abort", "continue")


@dataclass(frozen=True)
class LiteralSection:
    text: str

    kind = "literal"
    tool = None


@dataclass(frozen=True)
class ScriptSection:
    executable: str
    arguments: tuple[str, ...] = ()

    kind = "script"
    tool = BASH_TOOL


@dataclass(frozen=True)
class ReferenceSection:
    path: str

    kind = "reference"
    tool = READ_TOOL


Section = Union[LiteralSection, ScriptSection, ReferenceSection]


@dataclass(frozen=True)
class CommandDefinition:
    name: str
    description: str = ""
    allowed_tools: tuple[str, ...] = ()
    sections: tuple[Section, ...] = ()
    argument_hint: str = ""
    on_script_failure: str | None = None
    source: Path | None = None

    @property
    def display(self) -> str:
        if self.argument_hint:
            return f"/{self.name} {self.argument_hint}"
        return f"/{self.name}"

    def required_tools(self) -> list[str]:
        """Tools used by the body, in order of first use."""
        tools: list[str] = []
        for section in self.sections:
            if section.tool and section.tool not in tools:
                tools.append(section.tool)
        return tools

    def undeclared_tools(self) -> list[str]:
        return [tool for tool in self.required_tools() if tool not in self.allowed_tools]


@dataclass(frozen=True)
class ResolvedInvocation:
    definition: CommandDefinition
    arguments: str
    variables: dict[str, str]
    sections: tuple[Section, ...]


@dataclass(frozen=True)
class ExecutionResult:
    argv: tuple[str, ...]
    exit_code: int
    stdout: str
    stderr: str
    duration: float

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0

    @property
    def output(self) -> str:
        if self.stderr:
            return self.stdout + self.stderr
        return self.stdout


@dataclass(frozen=True)
class ReferenceContent:
    path: str
    text: str


class DispatchState(Enum):
    PARSED = "parsed"
    TOOLS_CHECKED = "tools_checked"
    RESOLVING = "resolving"
    RUNNING = "running"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


@dataclass
class DispatchResult:
    """Outcome of one command invocation.

    Attributes:
        command: Command name as typed (without the leading slash)
        arguments: Raw argument string passed after the command name
        state: Terminal state, READY or FAILED
        states: Every state visited, in order
        transcript: Rendered output; only set when READY
        error: Triggering error; only set when FAILED
        executions: Results of the scripts that ran
        references: Reference documents that were loaded
    """

    command: str
    arguments: str = ""
    state: DispatchState = DispatchState.PARSED
    states: list[DispatchState] = field(default_factory=list)
    transcript: str | None = None
    error: CommandError | None = None
    executions: list[ExecutionResult] = field(default_factory=list)
    references: list[ReferenceContent] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.state is DispatchState.READY

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1
