"""Subprocess execution with Result-based error handling.

`run_cancellable` runs install actions. It enforces a timeout, watches a
cancel event, and always reaps the child before returning.

Usage:
    result = run_cancellable(["sudo", "apt-get", "install", "-y", "jq"], timeout=900)
    match result:
        case Ok(output):
            ...
        case Err(error) if error.timed_out:
            ...
"""

from __future__ import annotations

import logging
import subprocess
import threading
import time
from dataclasses import dataclass

from cdt.core.result import Err, Ok, Result

__all__ = ["ProcessError", "run_cancellable"]

logger = logging.getLogger(__name__)

# Seconds to wait for a terminated child before escalating to SIGKILL
_KILL_AFTER = 5.0


@dataclass(frozen=True, slots=True)
class ProcessError:
    """Error from a failed subprocess execution.

    Attributes:
        command: The command that was executed.
        returncode: Exit code, or -1 if the process never ran or was killed.
        stdout: Captured output (stdout and stderr merged for install actions).
        stderr: Error details.
        timed_out: The process was stopped because it hit the timeout.
        cancelled: The process was stopped because the run was cancelled.
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str
    timed_out: bool = False
    cancelled: bool = False

    def __str__(self) -> str:
        cmd_str = " ".join(self.command[:3])
        if len(self.command) > 3:
            cmd_str += " ..."
        if self.timed_out:
            return f"{cmd_str} timed out"
        if self.cancelled:
            return f"{cmd_str} cancelled"
        return f"{cmd_str} failed (exit {self.returncode})"


def run_cancellable(
    cmd: list[str],
    *,
    timeout: float | None = None,
    cancel: threading.Event | None = None,
    grace_period: float = 10.0,
    env: dict[str, str] | None = None,
    poll_interval: float = 0.2,
) -> Result[str, ProcessError]:
    """Execute a long-running command that can time out or be cancelled.

    stdout and stderr are merged into one captured stream. stdin is inherited
    so ``sudo`` can still prompt on the terminal.

    Args:
        cmd: Command and arguments to execute.
        timeout: Seconds before the process is terminated (None for no limit).
        cancel: When set, the process gets ``grace_period`` seconds to finish
            on its own before it is terminated.
        grace_period: Seconds an in-flight process may keep running after
            cancellation.
        env: Environment variables (uses current env if None).
        poll_interval: How often the timeout and cancel event are checked.

    Returns:
        Ok(output) on exit 0, Err(ProcessError) otherwise.
    """
    command = tuple(cmd)
    try:
        proc = subprocess.Popen(
            cmd,
            env=env,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
        )
    except OSError as e:
        return Err(ProcessError(command=command, returncode=-1, stdout="", stderr=str(e)))

    logger.debug("spawned pid %d: %s", proc.pid, " ".join(cmd))
    deadline = None if timeout is None else time.monotonic() + timeout
    cancelled_at: float | None = None
    chunks: list[str] = []

    while True:
        try:
            out, _ = proc.communicate(timeout=poll_interval)
            chunks.append(out or "")
            break
        except subprocess.TimeoutExpired:
            # communicate() keeps buffered output across retries
            pass

        now = time.monotonic()
        if deadline is not None and now >= deadline:
            logger.debug("pid %d timed out after %ss", proc.pid, timeout)
            chunks.append(_terminate(proc))
            return Err(
                ProcessError(
                    command=command,
                    returncode=-1,
                    stdout="".join(chunks),
                    stderr=f"timed out after {timeout}s",
                    timed_out=True,
                )
            )

        if cancel is not None and cancel.is_set():
            if cancelled_at is None:
                cancelled_at = now
            elif now - cancelled_at >= grace_period:
                logger.debug("pid %d still running after grace period", proc.pid)
                chunks.append(_terminate(proc))
                return Err(
                    ProcessError(
                        command=command,
                        returncode=-1,
                        stdout="".join(chunks),
                        stderr="cancelled",
                        cancelled=True,
                    )
                )

    output = "".join(chunks)
    if proc.returncode != 0:
        return Err(
            ProcessError(
                command=command,
                returncode=proc.returncode,
                stdout=output,
                stderr="",
            )
        )
    return Ok(output)


def _terminate(proc: subprocess.Popen[str]) -> str:
    """Terminate, then kill, and reap the process. Returns remaining output."""
    proc.terminate()
    try:
        out, _ = proc.communicate(timeout=_KILL_AFTER)
    except subprocess.TimeoutExpired:
        proc.kill()
        out, _ = proc.communicate()
    return out or ""
