"""Child process execution for script sections."""

from __future__ import annotations

import asyncio
import os
import signal
import time
from typing import Mapping, Optional, Sequence

from utils import get_logger

from .errors import ScriptFailed, ScriptTimeout, ScriptUnavailable
from .types import ExecutionResult

logger = get_logger(__name__)


class ScriptRunner:
    """Run external scripts and capture their output."""

    DEFAULT_TIMEOUT = 120.0

    def __init__(self, timeout: Optional[float] = None) -> None:
        """Initialize the runner.

        Args:
            timeout: Default timeout in seconds for each script. None uses
                     DEFAULT_TIMEOUT.
        """
        self.timeout = timeout if timeout is not None else self.DEFAULT_TIMEOUT

    async def run(
        self,
        executable: str,
        arguments: Sequence[str] = (),
        timeout: Optional[float] = None,
        env: Optional[Mapping[str, str]] = None,
        cwd: Optional[str] = None,
    ) -> ExecutionResult:
        """Execute a script and wait for it to finish.

        Args:
            executable: Path of the program to run (no shell involved)
            arguments: Positional arguments passed to the program
            timeout: Override of the default timeout in seconds
            env: Full environment for the child, or None to inherit
            cwd: Working directory for the child

        Returns:
            ExecutionResult of a successful (exit code 0) run

        Raises:
            ScriptUnavailable: Executable missing, not executable, or a directory
            ScriptTimeout: The process did not exit in time and was killed
            ScriptFailed: The process exited with a non-zero code
        """
        argv = (executable, *arguments)
        actual_timeout = timeout if timeout is not None else self.timeout
        logger.debug("Running script: %s", argv)

        started = time.monotonic()
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=dict(env) if env is not None else None,
                cwd=cwd,
                start_new_session=True,
            )
        except FileNotFoundError as e:
            raise ScriptUnavailable(executable, "no such file") from e
        except PermissionError as e:
            raise ScriptUnavailable(executable, "permission denied") from e
        except OSError as e:
            raise ScriptUnavailable(executable, e.strerror or str(e)) from e

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=actual_timeout)
        except TimeoutError:
            _kill(process)
            await process.communicate()
            logger.warning("Script %s killed after %ss", executable, actual_timeout)
            raise ScriptTimeout(executable, actual_timeout) from None
        except asyncio.CancelledError:
            _kill(process)
            await process.communicate()
            raise

        result = ExecutionResult(
            argv=argv,
            exit_code=process.returncode if process.returncode is not None else -1,
            stdout=stdout.decode("utf-8", errors="replace") if stdout else "",
            stderr=stderr.decode("utf-8", errors="replace") if stderr else "",
            duration=time.monotonic() - started,
        )
        logger.debug(
            "Script %s exited with %d in %.2fs", executable, result.exit_code, result.duration
        )

        if not result.succeeded:
            raise ScriptFailed(result)
        return result


def _kill(process: asyncio.subprocess.Process) -> None:
    """Kill the child and everything it started (it leads its own session)."""
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass
    except PermissionError:
        process.kill()
