"""Parsing helpers for markdown command files."""

from __future__ import annotations

import asyncio
import re
import shlex
from pathlib import Path

import aiofiles
import aiofiles.os
import yaml

from .errors import CommandFileError
from .types import (
    FAILURE_POLICIES,
    CommandDefinition,
    LiteralSection,
    ReferenceSection,
    ScriptSection,
    Section,
)

_FENCE_RE = re.compile(r"^\s*(```|~~~)\s*([A-Za-z0-9_+-]*)\s*$")
_REFERENCE_RE = re.compile(r"^(?:[^@`]*:\s*)?@(\S*/\S*|\S+\.[A-Za-z0-9]+)\s*$")
_SCRIPT_LANGUAGES = {"bash", "sh", "shell"}


def split_frontmatter(text: str) -> tuple[dict[str, object], str]:
    """Split YAML frontmatter from a markdown document.

    Raises:
        ValueError: If the frontmatter is not valid YAML or not a mapping
    """
    lines = text.splitlines()
    if not lines or lines[0].strip() != "---":
        return {}, text

    end_idx = None
    for i in range(1, len(lines)):
        if lines[i].strip() == "---":
            end_idx = i
            break

    if end_idx is None:
        return {}, text

    yaml_text = "\n".join(lines[1:end_idx])
    body = "\n".join(lines[end_idx + 1 :])

    try:
        data = yaml.safe_load(yaml_text) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"malformed frontmatter: {e}") from e

    if not isinstance(data, dict):
        raise ValueError("frontmatter must be a mapping")

    return data, body


def normalize_tool(value: str) -> str:
    """Reduce a tool entry such as ``Bash(git:*)`` to its identifier."""
    name, _, _ = value.strip().partition("(")
    return name.strip()


def parse_allowed_tools(value: object) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, list):
        items = [str(item) for item in value]
    else:
        raise ValueError(f"allowed-tools must be a string or list, got {type(value).__name__}")

    tools: list[str] = []
    for item in items:
        tool = normalize_tool(item)
        if tool and tool not in tools:
            tools.append(tool)
    return tuple(tools)


def parse_body(body: str) -> tuple[Section, ...]:
    """Split a command body into literal, script and reference sections.

    Raises:
        ValueError: On an unterminated script block or an unparsable script line
    """
    sections: list[Section] = []
    literal: list[str] = []
    in_script = False
    in_code = False
    fence = ""

    def flush() -> None:
        text = "\n".join(literal).strip("\n")
        literal.clear()
        if text.strip():
            sections.append(LiteralSection(text=text))

    for lineno, line in enumerate(body.splitlines(), start=1):
        fence_match = _FENCE_RE.match(line)

        if in_script:
            if fence_match and fence_match.group(1) == fence and not fence_match.group(2):
                in_script = False
                continue
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            try:
                tokens = shlex.split(stripped)
            except ValueError as e:
                raise ValueError(f"line {lineno}: cannot parse script invocation ({e})") from e
            sections.append(ScriptSection(executable=tokens[0], arguments=tuple(tokens[1:])))
            continue

        if in_code:
            if fence_match and fence_match.group(1) == fence and not fence_match.group(2):
                in_code = False
            literal.append(line)
            continue

        if fence_match and fence_match.group(2).lower() in _SCRIPT_LANGUAGES:
            flush()
            in_script = True
            fence = fence_match.group(1)
            continue

        if fence_match:
            in_code = True
            fence = fence_match.group(1)
            literal.append(line)
            continue

        reference_match = _REFERENCE_RE.match(line.strip())
        if reference_match:
            flush()
            sections.append(ReferenceSection(path=reference_match.group(1)))
            continue

        literal.append(line)

    if in_script:
        raise ValueError("unterminated script block")

    flush()
    return tuple(sections)


def parse_command(text: str, name: str, source: Path | None = None) -> CommandDefinition:
    """Build a command definition from the contents of a command file.

    Args:
        text: Full file content (frontmatter + body)
        name: Fallback command name, normally the file stem
        source: File the text came from, used in error messages

    Raises:
        CommandFileError: If the file cannot be turned into a definition
    """
    where = source if source is not None else name
    try:
        frontmatter, body = split_frontmatter(text)
        allowed_tools = parse_allowed_tools(frontmatter.get("allowed-tools"))
        sections = parse_body(body)
    except ValueError as e:
        raise CommandFileError(where, str(e)) from e

    command_name = str(frontmatter.get("name") or name).strip().lstrip("/")
    if not command_name:
        raise CommandFileError(where, "command name is empty")

    policy = frontmatter.get("on-script-failure")
    if policy is not None:
        policy = str(policy).strip().lower()
        if policy not in FAILURE_POLICIES:
            raise CommandFileError(
                where,
                f"on-script-failure must be one of {', '.join(FAILURE_POLICIES)}, got '{policy}'",
            )

    return CommandDefinition(
        name=command_name,
        description=str(frontmatter.get("description", "") or "").strip(),
        allowed_tools=allowed_tools,
        sections=sections,
        argument_hint=str(frontmatter.get("argument-hint", "") or "").strip(),
        on_script_failure=policy,
        source=source,
    )


async def read_text(path: Path) -> str:
    async with aiofiles.open(path, encoding="utf-8") as handle:
        return await handle.read()


async def load_command_file(path: Path) -> CommandDefinition:
    try:
        text = await read_text(path)
    except (OSError, UnicodeDecodeError) as e:
        raise CommandFileError(path, str(e)) from e
    return parse_command(text, path.stem, source=path)


async def list_command_files(commands_dir: Path) -> list[Path]:
    if not await aiofiles.os.path.exists(commands_dir):
        return []

    def _collect() -> list[Path]:
        return sorted(p for p in commands_dir.glob("*.md") if p.is_file())

    return await asyncio.to_thread(_collect)
