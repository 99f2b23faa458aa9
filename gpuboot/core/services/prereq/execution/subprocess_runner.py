"""
L4 Execution — Core subprocess runner.

The SINGLE PLACE where ``subprocess.run`` is called for install and
build operations.  Logging and error capture are centralised here.
Callers classify ``returncode`` themselves; this module never decides
whether an exit code means success.
"""

from __future__ import annotations

import logging
import subprocess
import time
from dataclasses import dataclass
from typing import Mapping, Sequence

logger = logging.getLogger(__name__)

_TAIL = 2000


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one external command.

    ``returncode`` is ``None`` when the process never produced one
    (binary missing, timed out, could not be launched); ``error`` then
    says why.
    """

    returncode: int | None
    stdout: str = ""
    stderr: str = ""
    elapsed_ms: int = 0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def run_command(
    cmd: Sequence[str] | str,
    *,
    timeout: float | None = 120,
    env: Mapping[str, str] | None = None,
    cwd: str | None = None,
    capture: bool = True,
    tail: int | None = _TAIL,
) -> CommandResult:
    """Run a command to completion.

    Args:
        cmd: Command list for ``subprocess.run()``.  A plain string is
            passed through untouched (Windows command lines whose
            quoting ``list2cmdline`` would mangle).
        timeout: Seconds before giving up, or ``None`` for no limit.
        env: Full environment for the child (default: inherit).
        cwd: Working directory for the command.
        capture: Capture stdout/stderr.  When False the child writes
            straight to this process's console (long builds).
        tail: Keep only the last N characters of each stream
            (``None`` keeps everything).

    Returns:
        ``CommandResult``.  Never raises for process-level failures.
    """
    if isinstance(cmd, str):
        args: list[str] | str = cmd
        display, program = cmd, cmd.split()[0]
    else:
        args = [str(c) for c in cmd]
        display, program = " ".join(args), args[0]
    logger.debug("Running: %s (cwd=%s)", display, cwd)

    start = time.monotonic()
    try:
        result = subprocess.run(
            args,
            capture_output=capture,
            text=True,
            timeout=timeout,
            env=dict(env) if env is not None else None,
            cwd=cwd,
        )
    except FileNotFoundError:
        return CommandResult(returncode=None, error=f"Command not found: {program}")
    except subprocess.TimeoutExpired:
        return CommandResult(returncode=None, error=f"Command timed out ({timeout}s)")
    except OSError as e:
        logger.exception("Subprocess error: %s", display)
        return CommandResult(returncode=None, error=str(e))

    elapsed_ms = int((time.monotonic() - start) * 1000)
    stdout = result.stdout or ""
    stderr = result.stderr or ""
    if tail is not None:
        stdout, stderr = stdout[-tail:], stderr[-tail:]

    logger.debug("Exit %s after %d ms: %s", result.returncode, elapsed_ms, program)
    if result.returncode != 0 and stderr:
        logger.debug("stderr: %s", stderr)

    return CommandResult(
        returncode=result.returncode,
        stdout=stdout,
        stderr=stderr,
        elapsed_ms=elapsed_ms,
    )
