"""Placeholder substitution for command templates."""

from __future__ import annotations

import dataclasses
import re
from typing import Mapping

from .errors import UnresolvedVariable
from .types import LiteralSection, ReferenceSection, ScriptSection, Section

_PLACEHOLDER_RE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def find_placeholders(template: str) -> list[str]:
    return [match.group(1) for match in _PLACEHOLDER_RE.finditer(template)]


def resolve(template: str, variables: Mapping[str, str]) -> str:
    """Substitute every ``${NAME}`` placeholder in a template.

    Substitution is a single textual pass: values are inserted as-is and never
    scanned for further placeholders.

    Args:
        template: Text containing zero or more placeholders
        variables: Mapping of variable name to value

    Returns:
        The template with all placeholders replaced

    Raises:
        UnresolvedVariable: If a placeholder has no binding (the first one found)
    """
    for name in find_placeholders(template):
        if name not in variables:
            raise UnresolvedVariable(name)
    return _PLACEHOLDER_RE.sub(lambda match: str(variables[match.group(1)]), template)


def resolve_section(section: Section, variables: Mapping[str, str]) -> Section:
    if isinstance(section, ScriptSection):
        return dataclasses.replace(
            section,
            executable=resolve(section.executable, variables),
            arguments=tuple(resolve(arg, variables) for arg in section.arguments),
        )
    if isinstance(section, ReferenceSection):
        return dataclasses.replace(section, path=resolve(section.path, variables))
    if isinstance(section, LiteralSection):
        return dataclasses.replace(section, text=resolve(section.text, variables))
    raise TypeError(f"Unsupported section type: {type(section).__name__}")
