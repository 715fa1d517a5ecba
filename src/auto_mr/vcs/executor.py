"""Bounded execution of external git commands."""

import asyncio
import logging
import os
import signal
import time
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import NamedTuple

from auto_mr.security.sanitize import sanitize_string
from auto_mr.vcs.exceptions import GitCommandError, GitTimeoutError

logger = logging.getLogger(__name__)

# Local operations (switch, delete) should fail fast on lock contention
LOCAL_GIT_TIMEOUT = 10.0

# Network operations (push, pull, fetch) need headroom for slow transports
NETWORK_GIT_TIMEOUT = 120.0

# Upper bound for reaping a killed process group
REAP_TIMEOUT = 5.0


class CommandOutput(NamedTuple):
    """Result of a successful external command."""

    output: str
    returncode: int


def remaining_timeout(timeout: float, deadline: float | None) -> float:
    """Bound a timeout by an absolute deadline.

    Args:
        timeout: Timeout of the operation class, in seconds
        deadline: Absolute deadline on the ``time.monotonic()`` clock, or None

    Returns:
        Effective timeout in seconds (may be zero or negative if the deadline passed)
    """
    if deadline is None:
        return timeout
    return min(timeout, deadline - time.monotonic())


class BoundedExecutor:
    """Runs external commands under a hard deadline.

    Output is captured combined (stdout and stderr interleaved). Failure output
    is sanitized before it becomes part of an exception.
    """

    def __init__(self, base_env: Mapping[str, str] | None = None) -> None:
        """Initialize the executor.

        Args:
            base_env: Environment for spawned commands (default: ``os.environ``)
        """
        self.base_env = dict(os.environ if base_env is None else base_env)
        # Never block on an interactive credential prompt
        self.base_env["GIT_TERMINAL_PROMPT"] = "0"

    async def run(
        self,
        operation: str,
        argv: Sequence[str],
        cwd: Path,
        timeout: float,
        *,
        deadline: float | None = None,
        env: Mapping[str, str] | None = None,
    ) -> CommandOutput:
        """Run a command and wait for it under a deadline.

        Args:
            operation: Operation name used in errors, e.g. "pull"
            argv: Full command line
            cwd: Working directory, normally the repository root
            timeout: Maximum run time in seconds
            deadline: Optional absolute caller deadline (``time.monotonic()`` clock)
            env: Extra environment variables for this command

        Returns:
            CommandOutput with the combined output

        Raises:
            GitTimeoutError: If the command does not finish in time
            GitCommandError: If the command exits non-zero or cannot be started
        """
        effective = remaining_timeout(timeout, deadline)
        if effective <= 0:
            raise GitTimeoutError(operation, max(effective, 0.0), asyncio.TimeoutError("deadline already expired"))

        command_env = dict(self.base_env)
        if env:
            command_env.update(env)

        logger.debug(sanitize_string(f"Running {operation}: {' '.join(argv)} (timeout {effective:.0f}s)"))
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                cwd=str(cwd),
                env=command_env,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
                # Own process group so helpers (ssh, git-remote-https) die with git
                start_new_session=True,
            )
        except OSError as e:
            raise GitCommandError(operation, None, str(e)) from None

        try:
            stdout_bytes, _ = await asyncio.wait_for(process.communicate(), timeout=effective)
        except asyncio.TimeoutError as e:
            await self._terminate(process)
            raise GitTimeoutError(operation, effective, e) from e
        except asyncio.CancelledError:
            await self._terminate(process)
            raise

        output = stdout_bytes.decode(errors="replace") if stdout_bytes else ""
        if process.returncode != 0:
            raise GitCommandError(operation, process.returncode, output)

        return CommandOutput(output=output, returncode=process.returncode)

    @staticmethod
    async def _terminate(process: asyncio.subprocess.Process) -> None:
        """Kill the whole process group of a command and reap it.

        The group is killed even if the direct child already exited, since
        helpers it spawned may still hold the output pipe.
        """
        try:
            os.killpg(process.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass

        try:
            await asyncio.wait_for(process.wait(), timeout=REAP_TIMEOUT)
        except asyncio.TimeoutError:
            logger.warning("Process %s did not exit within %.0fs after kill", process.pid, REAP_TIMEOUT)
