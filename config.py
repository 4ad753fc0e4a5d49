"""Configuration management for cortex."""

import os

# Paths are defined here rather than imported from utils.runtime
# (utils.terminal_ui imports Config, so config must not import utils)
_RUNTIME_DIR = os.path.join(os.path.expanduser("~"), ".cortex")
_CONFIG_FILE = os.path.join(_RUNTIME_DIR, "config")

_DEFAULT_CONFIG = """\
# Cortex Configuration

# Value bound to ${PLUGIN_ROOT} in command files
PLUGIN_ROOT=.

# Extra command directories, separated by the OS path separator
COMMANDS_DIRS=

# Script execution
SCRIPT_TIMEOUT=120
# abort or continue
SCRIPT_FAILURE_POLICY=abort

# Re-use reference documents until their mtime changes
REFERENCE_CACHE=false

LOG_LEVEL=DEBUG
TUI_THEME=dark
"""


def _load_config(path: str) -> dict[str, str]:
    """Parse a KEY=VALUE config file, skipping comments and blank lines."""
    cfg: dict[str, str] = {}
    if not os.path.isfile(path):
        return cfg
    with open(path, encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                continue
            key, _, value = line.partition("=")
            if "#" in value:
                value = value[: value.index("#")]
            cfg[key.strip()] = value.strip()
    return cfg


def _ensure_config():
    """Ensure ~/.cortex/config exists, create with defaults if not."""
    if not os.path.exists(_CONFIG_FILE):
        os.makedirs(_RUNTIME_DIR, exist_ok=True)
        with open(_CONFIG_FILE, "w", encoding="utf-8") as f:
            f.write(_DEFAULT_CONFIG)


_ensure_config()
_cfg = _load_config(_CONFIG_FILE)


class Config:
    """Configuration for cortex.

    Values come from ~/.cortex/config; command-line options override them.
    """

    PLUGIN_ROOT = _cfg.get("PLUGIN_ROOT") or "."
    COMMANDS_DIRS = [p for p in _cfg.get("COMMANDS_DIRS", "").split(os.pathsep) if p.strip()]

    SCRIPT_TIMEOUT = float(_cfg.get("SCRIPT_TIMEOUT", "120"))
    SCRIPT_FAILURE_POLICY = _cfg.get("SCRIPT_FAILURE_POLICY", "abort").lower()

    REFERENCE_CACHE = _cfg.get("REFERENCE_CACHE", "false").lower() == "true"

    # Logging is only enabled with --verbose
    LOG_LEVEL = _cfg.get("LOG_LEVEL", "DEBUG").upper()

    TUI_THEME = _cfg.get("TUI_THEME", "dark")

    @classmethod
    def validate(cls):
        """Validate configuration values.

        Raises:
            ValueError: If a value is out of range
        """
        if cls.SCRIPT_FAILURE_POLICY not in ("abort", "continue"):
            raise ValueError(
                f"SCRIPT_FAILURE_POLICY must be 'abort' or 'continue', "
                f"got '{cls.SCRIPT_FAILURE_POLICY}'. Please fix it in ~/.cortex/config."
            )
        if cls.SCRIPT_TIMEOUT <= 0:
            raise ValueError("SCRIPT_TIMEOUT must be a positive number of seconds.")
        if cls.TUI_THEME not in ("dark", "light"):
            raise ValueError(f"TUI_THEME must be 'dark' or 'light', got '{cls.TUI_THEME}'.")
