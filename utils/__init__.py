"""Utility modules for cortex."""

from .logger import close_logger, get_logger, setup_logger

# Runtime paths and terminal_ui are NOT exported here: terminal_ui imports
# config, and the commands package must stay importable without it.
#   from utils import terminal_ui
#   from utils.runtime import get_commands_dir

__all__ = [
    "setup_logger",
    "get_logger",
    "close_logger",
]
