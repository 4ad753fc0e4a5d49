"""Command registry implementation."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from utils import get_logger

from .errors import DuplicateCommand, UnknownCommand
from .parser import list_command_files, load_command_file
from .types import CommandDefinition

logger = get_logger(__name__)

# System commands are bundled with cortex
SYSTEM_COMMANDS_DIR = Path(__file__).parent / "system"


class CommandRegistry:
    """Index command definitions by name.

    The registry is filled once at startup and sealed; after that only lookups
    are possible, so a single instance can be shared by concurrent dispatches.
    """

    def __init__(self, definitions: Iterable[CommandDefinition] = ()) -> None:
        self._commands: dict[str, CommandDefinition] = {}
        self._sealed = False
        for definition in definitions:
            self.register(definition)

    def register(self, definition: CommandDefinition) -> None:
        if self._sealed:
            raise RuntimeError("Command registry is read-only once loaded")
        if definition.name in self._commands:
            raise DuplicateCommand(definition.name, definition.source)

        undeclared = definition.undeclared_tools()
        if undeclared:
            logger.warning(
                "Command /%s uses tools missing from allowed-tools: %s",
                definition.name,
                ", ".join(undeclared),
            )
        self._commands[definition.name] = definition
        logger.debug("Registered command /%s", definition.name)

    def lookup(self, name: str) -> CommandDefinition:
        key = name.strip().lstrip("/")
        definition = self._commands.get(key)
        if definition is None:
            raise UnknownCommand(key)
        return definition

    def names(self) -> list[str]:
        return sorted(self._commands)

    def definitions(self) -> list[CommandDefinition]:
        return [self._commands[name] for name in self.names()]

    def seal(self) -> None:
        self._sealed = True

    @property
    def sealed(self) -> bool:
        return self._sealed

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lstrip("/") in self._commands

    def __len__(self) -> int:
        return len(self._commands)

    async def load(
        self,
        directories: Iterable[Path] = (),
        include_system: bool = True,
    ) -> None:
        """Register command files from disk, then seal the registry.

        Directories are loaded in order and must not define the same command
        twice. Bundled system commands are added afterwards unless a loaded
        command already uses their name.

        Raises:
            DuplicateCommand: If two loaded directories define the same name
            CommandFileError: If a command file cannot be parsed
        """
        for directory in directories:
            for command_file in await list_command_files(Path(directory)):
                self.register(await load_command_file(command_file))

        if include_system:
            for command_file in await list_command_files(SYSTEM_COMMANDS_DIR):
                definition = await load_command_file(command_file)
                if definition.name in self._commands:
                    logger.info("User command /%s overrides bundled command", definition.name)
                    continue
                self.register(definition)

        self.seal()
        logger.info("Loaded %d commands", len(self._commands))
