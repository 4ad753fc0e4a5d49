"""Runtime directory management for cortex.

All runtime data is stored under ~/.cortex/ directory:
- config: Configuration file (created by config.py on first import)
- commands/: User command files
- logs/: Log files (only created with --verbose)
"""

import os

RUNTIME_DIR = os.path.join(os.path.expanduser("~"), ".cortex")


def get_commands_dir() -> str:
    """Get the user commands directory path.

    Returns:
        Path to ~/.cortex/commands/
    """
    return os.path.join(RUNTIME_DIR, "commands")


def get_log_dir() -> str:
    return os.path.join(RUNTIME_DIR, "logs")


def ensure_runtime_dirs(create_logs: bool = False) -> None:
    """Ensure runtime directories exist.

    Creates:
    - ~/.cortex/commands/
    - ~/.cortex/logs/ (only if create_logs=True)

    Args:
        create_logs: Whether to create the logs directory (for --verbose mode)
    """
    os.makedirs(get_commands_dir(), exist_ok=True)

    if create_logs:
        os.makedirs(get_log_dir(), exist_ok=True)
