"""
L4 Execution — Import the MSVC developer environment.

``vcvars64.bat`` only changes the environment of the ``cmd`` that runs
it.  Running it followed by ``set`` and parsing the dump carries the
compiler's INCLUDE/LIB/PATH into this process's snapshot.
"""

from __future__ import annotations

import logging
from pathlib import Path

from gpuboot.core.errors import InstallFailure
from gpuboot.core.services.prereq.data.catalog import VCVARS_RELATIVE
from gpuboot.core.services.prereq.detection.toolchain import locate_msvc
from gpuboot.core.services.prereq.execution.environment import ProcessEnvironmentSnapshot
from gpuboot.core.services.prereq.execution.subprocess_runner import run_command

logger = logging.getLogger(__name__)

_STRATEGY = "vendor-environment"


def parse_set_output(text: str) -> dict[str, str]:
    """Parse ``set`` output (``NAME=value`` per line)."""
    values: dict[str, str] = {}
    for line in text.splitlines():
        if "=" not in line or line.startswith("="):
            continue
        name, value = line.split("=", 1)
        values[name] = value
    return values


def import_msvc_environment(snapshot: ProcessEnvironmentSnapshot) -> int:
    """Export the variables ``vcvars64.bat`` sets into ``snapshot``.

    Returns:
        Number of variables that changed.

    Raises:
        InstallFailure: No toolchain, no vcvars script, or the script failed.
    """
    install_path = locate_msvc()
    if install_path is None:
        raise InstallFailure("vs-build-tools", _STRATEGY, None, "toolchain not found")

    vcvars = Path(install_path) / VCVARS_RELATIVE
    if not vcvars.is_file():
        raise InstallFailure("vs-build-tools", _STRATEGY, None, f"missing {vcvars}")

    result = run_command(
        f'cmd /d /s /c ""{vcvars}" >nul && set"',
        timeout=120,
        env=snapshot.as_dict(),
        tail=None,
    )
    if not result.ok:
        raise InstallFailure(
            "vs-build-tools", _STRATEGY, result.returncode, result.error or result.stderr.strip(),
        )

    changed = 0
    for name, value in parse_set_output(result.stdout).items():
        if snapshot.get(name) != value:
            snapshot.export(name, value)
            changed += 1

    logger.info("Imported MSVC environment from %s (%d variables)", vcvars, changed)
    return changed
