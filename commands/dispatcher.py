"""Command dispatch: parse, check tools, resolve, run, load, render."""

from __future__ import annotations

import os
import shlex
from typing import Mapping, Optional

from utils import get_logger

from .errors import CommandError, ScriptFailed, ToolNotAllowed, UnknownCommand
from .loader import ReferenceLoader
from .registry import CommandRegistry
from .resolver import resolve_section
from .runner import ScriptRunner
from .types import (
    FAILURE_POLICIES,
    CommandDefinition,
    DispatchResult,
    DispatchState,
    LiteralSection,
    ReferenceSection,
    ResolvedInvocation,
    ScriptSection,
    Section,
)

logger = get_logger(__name__)


def section_label(index: int, section: Section) -> str:
    return f"section {index + 1} ({section.kind})"


class Dispatcher:
    """Execute registered commands one invocation at a time.

    Each call to ``dispatch`` walks the states
    PARSED -> TOOLS_CHECKED -> RESOLVING -> RUNNING -> LOADING -> READY,
    dropping to FAILED on the first error. Nothing is shared between
    invocations except the read-only registry.
    """

    def __init__(
        self,
        registry: CommandRegistry,
        runner: Optional[ScriptRunner] = None,
        loader: Optional[ReferenceLoader] = None,
        variables: Optional[Mapping[str, str]] = None,
        on_script_failure: str = "abort",
        script_timeout: Optional[float] = None,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            registry: Registry to look commands up in
            runner: Script runner (a default ScriptRunner if omitted)
            loader: Reference loader (a default ReferenceLoader if omitted)
            variables: Placeholder bindings available to every command
            on_script_failure: Default policy, "abort" or "continue"
            script_timeout: Per-script timeout override in seconds
        """
        if on_script_failure not in FAILURE_POLICIES:
            raise ValueError(
                f"on_script_failure must be one of {', '.join(FAILURE_POLICIES)}, "
                f"got '{on_script_failure}'"
            )
        self.registry = registry
        self.runner = runner or ScriptRunner()
        self.loader = loader or ReferenceLoader()
        self.variables = dict(variables or {})
        self.on_script_failure = on_script_failure
        self.script_timeout = script_timeout

    @staticmethod
    def parse(command_line: str) -> tuple[str, list[str]]:
        """Split a command line into command name and arguments.

        Raises:
            UnknownCommand: If the line is empty or cannot be tokenized
        """
        try:
            tokens = shlex.split(command_line)
        except ValueError as e:
            raise UnknownCommand(command_line.strip()) from e
        if not tokens:
            raise UnknownCommand("")
        name = tokens[0].lstrip("/")
        if not name:
            raise UnknownCommand("")
        return name, tokens[1:]

    def check_tools(self, definition: CommandDefinition) -> None:
        for index, section in enumerate(definition.sections):
            if section.tool and section.tool not in definition.allowed_tools:
                error = ToolNotAllowed(definition.name, section.tool, definition.allowed_tools)
                error.section = section_label(index, section)
                raise error

    def resolve(self, definition: CommandDefinition, arguments: str) -> ResolvedInvocation:
        variables = {**self.variables, "ARGUMENTS": arguments}
        sections: list[Section] = []
        for index, section in enumerate(definition.sections):
            try:
                sections.append(resolve_section(section, variables))
            except CommandError as e:
                e.section = section_label(index, section)
                raise
        return ResolvedInvocation(
            definition=definition,
            arguments=arguments,
            variables=variables,
            sections=tuple(sections),
        )

    async def dispatch(self, command_line: str) -> DispatchResult:
        """Run one command line to completion.

        Returns:
            DispatchResult in state READY (with transcript) or FAILED (with error)
        """
        result = DispatchResult(command=command_line.strip())
        try:
            name, args = self.parse(command_line)
            result.command = name
            result.arguments = shlex.join(args)
            self._enter(result, DispatchState.PARSED)

            definition = self.registry.lookup(name)
            self.check_tools(definition)
            self._enter(result, DispatchState.TOOLS_CHECKED)

            self._enter(result, DispatchState.RESOLVING)
            invocation = self.resolve(definition, result.arguments)

            self._enter(result, DispatchState.RUNNING)
            rendered = await self._run_scripts(invocation, result)

            self._enter(result, DispatchState.LOADING)
            await self._load_references(invocation, result, rendered)

            result.transcript = "\n\n".join(
                rendered[index] for index in range(len(invocation.sections)) if rendered.get(index)
            )
            self._enter(result, DispatchState.READY)
        except CommandError as e:
            result.error = e
            result.transcript = None
            self._enter(result, DispatchState.FAILED)
            logger.error(
                "/%s failed: %s%s",
                result.command,
                e,
                f" [{e.section}]" if e.section else "",
            )
        return result

    def _enter(self, result: DispatchResult, state: DispatchState) -> None:
        result.state = state
        result.states.append(state)
        logger.debug("/%s -> %s", result.command, state.value)

    def _policy(self, definition: CommandDefinition) -> str:
        return definition.on_script_failure or self.on_script_failure

    async def _run_scripts(
        self, invocation: ResolvedInvocation, result: DispatchResult
    ) -> dict[int, str]:
        rendered: dict[int, str] = {}
        env = {**os.environ, **invocation.variables}
        policy = self._policy(invocation.definition)

        for index, section in enumerate(invocation.sections):
            if isinstance(section, LiteralSection):
                rendered[index] = section.text.strip("\n")
                continue
            if not isinstance(section, ScriptSection):
                continue

            try:
                execution = await self.runner.run(
                    section.executable,
                    section.arguments,
                    timeout=self.script_timeout,
                    env=env,
                )
            except CommandError as e:
                e.section = section_label(index, section)
                if isinstance(e, ScriptFailed):
                    result.executions.append(e.result)
                if policy != "continue":
                    raise
                logger.warning("Continuing after script failure: %s", e)
                note = f"[{e.kind}: {e.message}]"
                if isinstance(e, ScriptFailed) and e.result.output.strip():
                    note = f"{e.result.output.strip()}\n{note}"
                rendered[index] = note
                continue

            result.executions.append(execution)
            rendered[index] = execution.output.strip()
        return rendered

    async def _load_references(
        self,
        invocation: ResolvedInvocation,
        result: DispatchResult,
        rendered: dict[int, str],
    ) -> None:
        for index, section in enumerate(invocation.sections):
            if not isinstance(section, ReferenceSection):
                continue
            try:
                content = await self.loader.load(section.path)
            except CommandError as e:
                e.section = section_label(index, section)
                raise
            result.references.append(content)
            rendered[index] = content.text.strip()
