"""
Uninstall use case — remove the project and, optionally, its prerequisites.

Prerequisites are removed in reverse declaration order so nothing is
removed while something declared after it still depends on it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from gpuboot.core.models.config import BootstrapConfig
from gpuboot.core.models.toolkit import ToolkitPolicy
from gpuboot.core.services.prereq import (
    ProcessEnvironmentSnapshot,
    build_requirements,
    default_store,
    ensure_elevated,
    remove_requirement,
)
from gpuboot.core.services.prereq.execution.download import remove_tree

logger = logging.getLogger(__name__)


@dataclass
class UninstallResult:
    """What teardown removed."""

    project_removed: bool = False
    removed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "project_removed": self.project_removed,
            "removed": list(self.removed),
            "skipped": list(self.skipped),
        }


def run_uninstall(
    config: BootstrapConfig,
    *,
    remove_prerequisites: bool = True,
    snapshot: ProcessEnvironmentSnapshot | None = None,
) -> UninstallResult:
    """Tear down what ``run_install`` set up.

    Raises:
        PrivilegeError: Prerequisite removal was requested without elevation.
        InstallFailure: An uninstaller failed.
    """
    if remove_prerequisites:
        ensure_elevated()

    result = UninstallResult()
    result.project_removed = remove_tree(config.install_dir)
    if result.project_removed:
        logger.info("Removed %s", config.install_dir)

    if not remove_prerequisites:
        return result

    if snapshot is None:
        snapshot = ProcessEnvironmentSnapshot(default_store())
        snapshot.refresh()

    # The policy only shapes probes; removal needs just names and strategies
    policy = ToolkitPolicy(floor=config.toolkit_floor)
    for req in reversed(build_requirements(config, policy, snapshot)):
        if remove_requirement(req, snapshot, config):
            result.removed.append(req.name)
        else:
            result.skipped.append(req.name)
        snapshot.refresh()
    return result
