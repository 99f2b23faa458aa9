"""
L4 Execution — Prerequisite removal.

The reverse of the installer strategies, used by teardown.  Removal of
something that is not there counts as success.
"""

from __future__ import annotations

import logging
from pathlib import Path

from gpuboot.core.errors import InstallFailure
from gpuboot.core.models.config import BootstrapConfig
from gpuboot.core.models.requirement import (
    STRATEGY_PORTABLE,
    STRATEGY_VENDOR,
    STRATEGY_WINGET,
    Requirement,
)
from gpuboot.core.services.prereq.data.exit_codes import (
    NO_MATCHING_PACKAGE,
    WINGET_EXIT_CODES,
)
from gpuboot.core.services.prereq.domain.exit_classification import classify_exit
from gpuboot.core.services.prereq.execution.download import remove_tree
from gpuboot.core.services.prereq.execution.environment import ProcessEnvironmentSnapshot
from gpuboot.core.services.prereq.execution.subprocess_runner import run_command

logger = logging.getLogger(__name__)

# winget sentinels that mean "nothing to uninstall"
_WINGET_ABSENT = frozenset({NO_MATCHING_PACKAGE})


def winget_uninstall_command(req: Requirement) -> list[str]:
    return [
        "winget", "uninstall",
        "--id", req.package_id,
        "--exact",
        "--silent",
        "--accept-source-agreements",
        "--disable-interactivity",
    ]


def remove_requirement(
    req: Requirement,
    snapshot: ProcessEnvironmentSnapshot,
    config: BootstrapConfig,
) -> bool:
    """Uninstall one prerequisite.

    Returns:
        True if something was removed, False if there was nothing to do
        (or the strategy has no automated removal).

    Raises:
        InstallFailure: The uninstaller reported an unexpected failure.
    """
    if req.strategy == STRATEGY_WINGET:
        result = run_command(
            winget_uninstall_command(req),
            timeout=config.installer_timeout,
            env=snapshot.as_dict(),
        )
        if result.returncode is None:
            raise InstallFailure(req.name, "winget-uninstall", None, result.error or "")
        outcome = classify_exit(result.returncode, WINGET_EXIT_CODES)
        if outcome.kind == "ok":
            logger.info("Uninstalled %s", req.name)
            return True
        if outcome.sentinel in _WINGET_ABSENT:
            logger.info("%s is not installed", req.name)
            return False
        raise InstallFailure(req.name, "winget-uninstall", outcome.code)

    if req.strategy == STRATEGY_PORTABLE:
        target = Path(req.install_dir)
        removed = remove_tree(target)
        try:
            unregistered = snapshot.store.remove_machine_path(str(target))
        except OSError as e:
            raise InstallFailure(
                req.name, "portable-uninstall", None, f"cannot update machine PATH: {e}",
            ) from e
        if removed or unregistered:
            logger.info("Removed %s", target)
        return removed or unregistered

    if req.strategy == STRATEGY_VENDOR:
        logger.warning(
            "%s was installed by its vendor installer; remove it from "
            "Settings > Apps if it is no longer needed", req.name,
        )
    return False
