"""
L5 Orchestration — Pick the toolkit the build will use.

Selection exports the choice into the process environment:

    CUDA_PATH               <root>
    CUDA_PATH_V<maj>_<min>  <root>
    PATH                    <root>/bin prepended (once)
"""

from __future__ import annotations

import logging
from pathlib import Path

from gpuboot.core.errors import NoMatchingToolkit
from gpuboot.core.models.toolkit import ToolkitInstallation, ToolkitPolicy
from gpuboot.core.services.prereq.data.catalog import TOOLKIT_VERIFY_BINARY
from gpuboot.core.services.prereq.detection.toolkit_scan import scan_toolkits
from gpuboot.core.services.prereq.domain.version import at_least, matches_exactly
from gpuboot.core.services.prereq.execution.environment import ProcessEnvironmentSnapshot

logger = logging.getLogger(__name__)


def choose_toolkit(
    installations: list[ToolkitInstallation],
    policy: ToolkitPolicy,
) -> ToolkitInstallation | None:
    """Highest installation satisfying ``policy``, or None (pure)."""
    if policy.exact:
        candidates = [t for t in installations if matches_exactly(t.version, policy.exact)]
    else:
        candidates = [t for t in installations if at_least(t.version, policy.floor)]
    if not candidates:
        return None
    return sorted(candidates, key=lambda t: t.version, reverse=True)[0]


def select_for_build(
    policy: ToolkitPolicy,
    snapshot: ProcessEnvironmentSnapshot,
    root: Path,
    verify_binary: str = TOOLKIT_VERIFY_BINARY,
) -> ToolkitInstallation:
    """Choose the build toolkit and export it into ``snapshot``.

    Raises:
        NoMatchingToolkit: Nothing on disk satisfies ``policy``.
    """
    installations = scan_toolkits(root, verify_binary)
    chosen = choose_toolkit(installations, policy)
    if chosen is None:
        raise NoMatchingToolkit(
            policy.floor, policy.exact, [t.version_str for t in installations],
        )

    snapshot.export("CUDA_PATH", str(chosen.root))
    snapshot.export(f"CUDA_PATH_V{chosen.major}_{chosen.minor}", str(chosen.root))
    snapshot.prepend_path(str(chosen.bin_dir))

    logger.info("Selected CUDA %s at %s", chosen.version_str, chosen.root)
    return chosen
