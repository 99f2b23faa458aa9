"""
Install use case — provision prerequisites, then build the project.

    elevation check
    → hardware profile → toolkit policy
    → resolve requirements (install what is missing)
    → select toolkit for build
    → import MSVC environment → fetch source → build
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from gpuboot.core.models.config import BootstrapConfig
from gpuboot.core.models.toolkit import HardwareProfile, ToolkitInstallation, ToolkitPolicy
from gpuboot.core.services.prereq import (
    ProcessEnvironmentSnapshot,
    ResolutionReport,
    build_hardware_profile,
    build_requirements,
    default_store,
    ensure_elevated,
    import_msvc_environment,
    resolve_requirements,
    select_for_build,
    select_toolkit_policy,
)
from gpuboot.core.services.project_build import build_project, fetch_source

logger = logging.getLogger(__name__)


@dataclass
class InstallResult:
    """Outcome of a successful install run."""

    profile: HardwareProfile
    policy: ToolkitPolicy
    report: ResolutionReport = field(default_factory=ResolutionReport)
    toolkit: ToolkitInstallation | None = None
    source_action: str | None = None
    build_dir: Path | None = None

    def to_dict(self) -> dict:
        return {
            "hardware": self.profile.to_dict(),
            "policy": self.policy.to_dict(),
            "requirements": self.report.to_dict(),
            "toolkit": self.toolkit.to_dict() if self.toolkit else None,
            "source": self.source_action,
            "build_dir": str(self.build_dir) if self.build_dir else None,
        }


def decide_policy(config: BootstrapConfig, profile: HardwareProfile) -> ToolkitPolicy:
    """Toolkit policy for a profile under this config."""
    return select_toolkit_policy(
        profile.compute_capability,
        floor=config.toolkit_floor,
        legacy_version=config.legacy_toolkit_version,
        threshold=config.legacy_capability_threshold,
    )


def run_install(
    config: BootstrapConfig,
    *,
    arch_override: int | None = None,
    prereqs_only: bool = False,
    snapshot: ProcessEnvironmentSnapshot | None = None,
    progress: Callable[[str], None] | None = None,
) -> InstallResult:
    """Provision the machine and build the downstream project.

    Raises:
        BootstrapError: Any fatal condition; the run stops at the first.
    """
    ensure_elevated()

    if snapshot is None:
        snapshot = ProcessEnvironmentSnapshot(default_store())
        snapshot.refresh()

    profile = build_hardware_profile(
        arch_override, default_architecture=config.default_cuda_architecture,
    )
    policy = decide_policy(config, profile)
    logger.info(
        "Toolkit policy: %s",
        f"exactly {policy.exact}" if policy.exact else f">= {policy.floor}",
    )

    result = InstallResult(profile=profile, policy=policy)
    requirements = build_requirements(config, policy, snapshot)
    result.report = resolve_requirements(requirements, snapshot, config, progress=progress)
    result.toolkit = select_for_build(policy, snapshot, config.toolkit_root)

    if prereqs_only:
        logger.info("Prerequisites ready, skipping build")
        return result

    import_msvc_environment(snapshot)
    result.source_action = fetch_source(config, snapshot)
    if progress is not None:
        progress(f"Building in {config.build_dir}...")
    result.build_dir = build_project(config, snapshot, profile, result.toolkit)
    return result
