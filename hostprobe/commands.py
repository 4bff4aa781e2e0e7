"""Blocking execution of the external diagnostic commands.

The probes call :func:`run_command`, which runs a fixed argv with no stdin and
captured stdout/stderr.  The default runner waits for the child without a
timeout; a hung command hangs the caller.  Callers that need a deadline pass
their own ``runner`` (for example ``functools.partial(default_runner,
timeout=5)``); a ``subprocess.TimeoutExpired`` raised by it is reported like
any other launch failure.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

logger = logging.getLogger(__name__)

Runner = Callable[[Sequence[str]], Any]


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a single synchronous command invocation."""

    returncode: Optional[int]
    stdout: str
    stderr: str
    error: Optional[str] = None

    @property
    def launched(self) -> bool:
        """``True`` when the command ran, regardless of its exit status."""
        return self.error is None


def default_runner(cmd: Sequence[str], timeout: float | None = None) -> subprocess.CompletedProcess[str]:
    return subprocess.run(
        list(cmd),
        stdin=subprocess.DEVNULL,
        capture_output=True,
        text=True,
        check=False,
        timeout=timeout,
    )


def run_command(cmd: Sequence[str], runner: Runner | None = None) -> CommandResult:
    """Run *cmd* and return a :class:`CommandResult`.

    A command that cannot be started (missing binary, permission problem,
    runner timeout) yields a result with ``error`` set instead of raising.
    A non-zero exit status is not an error; the output is still returned.
    """

    run = runner or default_runner
    try:
        proc = run(cmd)
    except (OSError, subprocess.SubprocessError) as exc:
        logger.debug("Running %s failed: %s", " ".join(cmd), exc)
        return CommandResult(None, "", "", str(exc))
    return CommandResult(
        proc.returncode,
        proc.stdout or "",
        proc.stderr or "",
    )
