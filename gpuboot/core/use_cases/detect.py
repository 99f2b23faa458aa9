"""
Detect use case — report what a run would decide, without changing anything.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from gpuboot.core.models.config import BootstrapConfig
from gpuboot.core.models.toolkit import HardwareProfile, ToolkitInstallation, ToolkitPolicy
from gpuboot.core.services.prereq import (
    ProcessEnvironmentSnapshot,
    build_hardware_profile,
    build_requirements,
    choose_toolkit,
    default_store,
    is_satisfied,
    scan_toolkits,
)
from gpuboot.core.use_cases.install import decide_policy


@dataclass
class DetectResult:
    """Read-only view of the machine."""

    profile: HardwareProfile
    policy: ToolkitPolicy
    toolkits: list[ToolkitInstallation] = field(default_factory=list)
    selected: ToolkitInstallation | None = None
    requirements: dict[str, bool] = field(default_factory=dict)

    @property
    def missing(self) -> list[str]:
        return [name for name, ok in self.requirements.items() if not ok]

    def to_dict(self) -> dict:
        return {
            "hardware": self.profile.to_dict(),
            "policy": self.policy.to_dict(),
            "toolkits": [t.to_dict() for t in self.toolkits],
            "selected_toolkit": self.selected.to_dict() if self.selected else None,
            "requirements": dict(self.requirements),
            "missing": self.missing,
        }


def run_detect(
    config: BootstrapConfig,
    *,
    arch_override: int | None = None,
    snapshot: ProcessEnvironmentSnapshot | None = None,
) -> DetectResult:
    """Probe hardware, toolkits, and every requirement."""
    if snapshot is None:
        snapshot = ProcessEnvironmentSnapshot(default_store())
        snapshot.refresh()

    profile = build_hardware_profile(
        arch_override, default_architecture=config.default_cuda_architecture,
    )
    policy = decide_policy(config, profile)
    toolkits = scan_toolkits(config.toolkit_root)

    result = DetectResult(
        profile=profile,
        policy=policy,
        toolkits=toolkits,
        selected=choose_toolkit(toolkits, policy),
    )
    for req in build_requirements(config, policy, snapshot):
        result.requirements[req.name] = is_satisfied(req)
    return result
