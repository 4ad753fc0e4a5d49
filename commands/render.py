"""Render command listings and diagnostics."""

from __future__ import annotations

from typing import Iterable

from .errors import CommandError
from .types import CommandDefinition


def render_command_list(definitions: Iterable[CommandDefinition]) -> str | None:
    """Render registered commands as a markdown section.

    Args:
        definitions: Command definitions to list.

    Returns:
        Formatted markdown section, or None if there are no commands.
    """
    definitions = list(definitions)
    if not definitions:
        return None

    lines: list[str] = []
    lines.append("## Commands")

    for definition in sorted(definitions, key=lambda d: d.name):
        entry = f"- `{definition.display}`"
        if definition.description:
            entry += f": {definition.description}"
        if definition.allowed_tools:
            entry += f" (tools: {', '.join(definition.allowed_tools)})"
        lines.append(entry)

    return "\n".join(lines)


def format_error(error: CommandError) -> str:
    text = f"{error.kind}: {error.message}"
    if error.section:
        text += f" [in {error.section}]"
    return text
