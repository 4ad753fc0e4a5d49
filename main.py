"""Main entry point for the cortex command runner."""

import argparse
import asyncio
import importlib.metadata
import os
import shlex
import sys
from typing import Optional, Sequence

from commands import (
    CommandError,
    CommandRegistry,
    Dispatcher,
    ReferenceLoader,
    ScriptRunner,
    format_error,
    render_command_list,
)
from config import Config
from utils import close_logger, setup_logger, terminal_ui
from utils.runtime import ensure_runtime_dirs, get_commands_dir


def _parse_var(value: str) -> tuple[str, str]:
    name, sep, bound = value.partition("=")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(f"expected NAME=VALUE, got '{value}'")
    return name.strip(), bound


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cortex",
        description="Run a registered command: bootstrap scripts, load references, print the ready menu",
    )

    try:
        version = importlib.metadata.version("cortex-commands")
    except importlib.metadata.PackageNotFoundError:
        version = "dev"
    parser.add_argument("--version", "-V", action="version", version=f"cortex {version}")

    parser.add_argument(
        "command",
        nargs=argparse.REMAINDER,
        help="Command name (leading '/' optional) followed by its arguments",
    )
    parser.add_argument(
        "--root",
        type=str,
        default=None,
        help="Directory bound to ${PLUGIN_ROOT} (default: PLUGIN_ROOT from ~/.cortex/config)",
    )
    parser.add_argument(
        "--commands-dir",
        action="append",
        default=[],
        metavar="DIR",
        help="Additional directory of command files (repeatable)",
    )
    parser.add_argument(
        "--var",
        action="append",
        type=_parse_var,
        default=[],
        metavar="NAME=VALUE",
        help="Bind an extra placeholder variable (repeatable)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Timeout in seconds for each script",
    )
    parser.add_argument(
        "--on-script-failure",
        choices=["abort", "continue"],
        default=None,
        help="What to do when a script fails (default: abort)",
    )
    parser.add_argument(
        "--cache-references",
        action="store_true",
        help="Cache reference documents until they change on disk",
    )
    parser.add_argument("--list", "-l", action="store_true", help="List available commands")
    parser.add_argument(
        "--raw",
        action="store_true",
        help="Print the transcript verbatim instead of rendering markdown",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging to ~/.cortex/logs/",
    )
    return parser


def command_directories(root: str, extra: Sequence[str]) -> list[str]:
    """Directories searched for command files, in registration order."""
    candidates = [
        os.path.join(root, "commands"),
        get_commands_dir(),
        *Config.COMMANDS_DIRS,
        *extra,
    ]
    directories: list[str] = []
    seen: set[str] = set()
    for directory in candidates:
        resolved = os.path.realpath(os.path.expanduser(directory))
        if resolved in seen:
            continue
        seen.add(resolved)
        directories.append(resolved)
    return directories


async def run(args: argparse.Namespace) -> int:
    """Load commands and execute the requested one.

    Returns:
        Process exit status
    """
    root = os.path.abspath(os.path.expanduser(args.root or Config.PLUGIN_ROOT))

    registry = CommandRegistry()
    await registry.load(command_directories(root, args.commands_dir))

    if args.list or not args.command:
        listing = render_command_list(registry.definitions())
        if listing is None:
            terminal_ui.print_warning("No commands available")
        else:
            terminal_ui.print_markdown(listing)
        return 0

    variables = {"PLUGIN_ROOT": root}
    variables.update(dict(args.var))

    dispatcher = Dispatcher(
        registry,
        runner=ScriptRunner(timeout=Config.SCRIPT_TIMEOUT),
        loader=ReferenceLoader(cache=args.cache_references or Config.REFERENCE_CACHE),
        variables=variables,
        on_script_failure=args.on_script_failure or Config.SCRIPT_FAILURE_POLICY,
        script_timeout=args.timeout,
    )

    result = await dispatcher.dispatch(shlex.join(args.command))
    if not result.ok:
        terminal_ui.print_error(format_error(result.error), title=result.error.kind)
        return result.exit_code

    terminal_ui.print_transcript(result.transcript or "", raw=args.raw)
    return result.exit_code


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    ensure_runtime_dirs(create_logs=args.verbose)

    try:
        Config.validate()
    except ValueError as e:
        terminal_ui.print_error(str(e), title="Configuration Error")
        return 1

    if args.timeout is not None and args.timeout <= 0:
        terminal_ui.print_error("--timeout must be a positive number", title="Configuration Error")
        return 1

    log_file = None
    if args.verbose:
        log_file = setup_logger(None if args.list or not args.command else args.command[0])

    try:
        status = asyncio.run(run(args))
    except CommandError as e:
        # Registry load failures (duplicate names, malformed command files)
        terminal_ui.print_error(format_error(e), title=e.kind)
        status = 1
    finally:
        close_logger()

    if log_file:
        terminal_ui.print_log_location(log_file)
    return status


if __name__ == "__main__":
    sys.exit(main())
