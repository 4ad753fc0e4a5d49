"""Per-run log files for cortex.

Logging stays silent unless ``--verbose`` is given. Then each run writes one
file under ~/.cortex/logs/ named after the command it executes, so the log of
a failed ``/start`` is easy to find among earlier runs.
"""

import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Optional

from .runtime import get_log_dir

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_handler: Optional[logging.FileHandler] = None
_log_file_path: Optional[str] = None


def log_file_name(command: Optional[str], now: Optional[datetime] = None) -> str:
    """File name for the log of one run, e.g. ``cortex_start_20260101_120000.log``.

    The command name is reduced to filename-safe characters; an empty or
    missing name is logged as ``list``, the CLI's no-command action.
    """
    slug = re.sub(r"[^A-Za-z0-9_-]+", "-", (command or "").lstrip("/")).strip("-")
    stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    return f"cortex_{slug or 'list'}_{stamp}.log"


def setup_logger(command: Optional[str] = None) -> str:
    """Start writing this run's log file.

    The level comes from ``Config.LOG_LEVEL``. Calling it again returns the
    file already in use.

    Args:
        command: Command being run, used to name the file

    Returns:
        Path of the log file
    """
    global _handler, _log_file_path

    if _handler is not None and _log_file_path is not None:
        return _log_file_path

    from config import Config

    level = getattr(logging, Config.LOG_LEVEL.upper(), logging.DEBUG)

    log_dir = Path(get_log_dir())
    log_dir.mkdir(exist_ok=True, parents=True)
    log_file = log_dir / log_file_name(command)

    _handler = logging.FileHandler(log_file, encoding="utf-8")
    _handler.setLevel(level)
    _handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logging.root.setLevel(level)
    logging.root.addHandler(_handler)
    _log_file_path = str(log_file)

    logging.getLogger(__name__).info("Running /%s, level %s", command or "list", Config.LOG_LEVEL)
    return _log_file_path


def close_logger() -> None:
    """Detach and close the run's log file, if one is open."""
    global _handler, _log_file_path

    if _handler is None:
        return
    logging.root.removeHandler(_handler)
    _handler.close()
    _handler = None
    _log_file_path = None


def get_logger(name: str) -> logging.Logger:
    """Module logger. Nothing is written to disk before setup_logger()."""
    return logging.getLogger(name)
