"""Subprocess execution for cargo-lockstep.

All external tool calls (``cargo``, ``git``) go through :func:`run_command`,
which logs every invocation and turns process-level failures into
:class:`~lockstep.errors.ToolError` subclasses:

- the executable can't be started → :class:`ToolInvocationError`
- the process was killed by a signal → :class:`ToolInvocationError`
- the process exited non-zero → :class:`ToolExitError` (only when
  ``check=True``; otherwise the caller inspects ``return_code``)

No timeout is applied; a hung tool hangs the run.
"""

import subprocess
import time
from dataclasses import dataclass
from pathlib import Path

import structlog

from .errors import ToolExitError, ToolInvocationError

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CommandResult:
    """Result of a finished subprocess.

    Attributes:
        command: The command that was executed
        return_code: Process exit code
        stdout: Captured standard output (empty unless captured)
        stderr: Captured standard error (empty unless captured)
        duration: Wall-clock duration in milliseconds
    """

    command: list[str]
    return_code: int
    stdout: str = ""
    stderr: str = ""
    duration: float = 0.0

    @property
    def ok(self) -> bool:
        return self.return_code == 0

    @property
    def command_str(self) -> str:
        return " ".join(self.command)


def run_command(
    cmd: list[str],
    *,
    cwd: Path | str | None = None,
    quiet: bool = False,
    capture: bool = False,
    check: bool = False,
) -> CommandResult:
    """Run a command to completion.

    Args:
        cmd: Command and arguments
        cwd: Working directory for the command
        quiet: Connect stdin, stdout and stderr to the null device
        capture: Capture stdout and stderr instead of inheriting them
        check: Raise :class:`ToolExitError` on a non-zero exit code

    Returns:
        The finished command's result
    """
    cmd_str = " ".join(cmd)
    log.debug("run_command", cmd=cmd_str, cwd=str(cwd or "."))

    if quiet:
        streams = {
            "stdin": subprocess.DEVNULL,
            "stdout": subprocess.DEVNULL,
            "stderr": subprocess.DEVNULL,
        }
    elif capture:
        streams = {"stdout": subprocess.PIPE, "stderr": subprocess.PIPE}
    else:
        streams = {}

    start = time.monotonic()
    try:
        completed = subprocess.run(cmd, cwd=cwd, text=True, **streams)
    except OSError as exc:
        raise ToolInvocationError(f"Failed to start `{cmd_str}`", cmd) from exc
    duration = (time.monotonic() - start) * 1000

    if completed.returncode < 0:
        raise ToolInvocationError(
            f"`{cmd_str}` was terminated by signal {-completed.returncode}", cmd
        )

    result = CommandResult(
        command=list(cmd),
        return_code=completed.returncode,
        stdout=completed.stdout or "",
        stderr=completed.stderr or "",
        duration=duration,
    )

    if result.ok:
        log.debug("command_ok", cmd=cmd_str, duration=duration)
        return result

    if check:
        log.warning(
            "command_failed",
            cmd=cmd_str,
            return_code=result.return_code,
            stderr=result.stderr[:500],
        )
        raise ToolExitError(
            f"`{cmd_str}` returned a nonzero exit code",
            cmd,
            return_code=result.return_code,
            stderr=result.stderr,
        )
    log.debug("command_exit", cmd=cmd_str, return_code=result.return_code)
    return result
