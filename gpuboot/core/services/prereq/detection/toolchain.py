"""
L3 Detection — Compiler toolchain discovery.

The MSVC toolchain is located through ``vswhere``, the Visual Studio
locator that ships with the Visual Studio installer.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from gpuboot.core.services.prereq.data.catalog import VC_TOOLS_COMPONENT, vswhere_path

logger = logging.getLogger(__name__)


def locate_msvc(vswhere: Path | None = None) -> str | None:
    """Installation path of the newest Visual Studio with the C++ tools.

    Returns:
        The installation path, or ``None`` if the locator is missing,
        fails, or reports nothing.
    """
    vswhere = vswhere or vswhere_path()
    if not vswhere.is_file():
        logger.debug("vswhere not found at %s", vswhere)
        return None

    try:
        r = subprocess.run(
            [
                str(vswhere), "-latest", "-products", "*",
                "-requires", VC_TOOLS_COMPONENT,
                "-property", "installationPath",
            ],
            capture_output=True, text=True, timeout=30,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug("vswhere failed: %s", e)
        return None

    if r.returncode != 0:
        logger.debug("vswhere exited %s", r.returncode)
        return None

    for line in r.stdout.splitlines():
        if line.strip():
            return line.strip()
    return None


def has_msvc(vswhere: Path | None = None) -> bool:
    """True iff the locator reports a toolchain with the C++ component."""
    return locate_msvc(vswhere) is not None
