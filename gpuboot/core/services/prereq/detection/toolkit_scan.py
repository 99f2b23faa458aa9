"""
L3 Detection — Accelerator toolkit discovery by filesystem scan.

Installations live side by side under one well-known root::

    <root>/v12.4/bin/nvcc.exe
    <root>/v12.6/bin/nvcc.exe

The scan is a pure function of the filesystem, re-run on every query.
A missing root is "nothing installed", never an error.
"""

from __future__ import annotations

import logging
from pathlib import Path

from gpuboot.core.models.toolkit import ToolkitInstallation
from gpuboot.core.services.prereq.data.catalog import TOOLKIT_VERIFY_BINARY
from gpuboot.core.services.prereq.domain.version import (
    at_least,
    matches_exactly,
    parse_toolkit_dir,
)

logger = logging.getLogger(__name__)


def scan_toolkits(
    root: Path,
    verify_binary: str = TOOLKIT_VERIFY_BINARY,
) -> list[ToolkitInstallation]:
    """Discover toolkit installations under ``root``.

    Only ``v<major>.<minor>`` directories that contain
    ``bin/<verify_binary>`` count.

    Returns:
        Installations sorted by version, highest first.
    """
    if not root.is_dir():
        return []

    found: list[ToolkitInstallation] = []
    try:
        children = list(root.iterdir())
    except OSError as e:
        logger.debug("Cannot list %s: %s", root, e)
        return []

    for child in children:
        version = parse_toolkit_dir(child.name)
        if version is None or not child.is_dir():
            continue
        exe = child / "bin" / verify_binary
        if not exe.is_file():
            logger.debug("Ignoring %s: no %s", child, verify_binary)
            continue
        found.append(ToolkitInstallation(
            major=version[0], minor=version[1], root=child, executable=exe,
        ))

    found.sort(key=lambda t: t.version, reverse=True)
    return found


def toolkit_at_least(root: Path, floor: str, verify_binary: str = TOOLKIT_VERIFY_BINARY) -> bool:
    """True iff some discovered installation is >= ``floor``."""
    return any(at_least(t.version, floor) for t in scan_toolkits(root, verify_binary))


def toolkit_exact(root: Path, target: str, verify_binary: str = TOOLKIT_VERIFY_BINARY) -> bool:
    """True iff some discovered installation is exactly ``target``."""
    return any(matches_exactly(t.version, target) for t in scan_toolkits(root, verify_binary))
