"""
L5 Orchestration — The requirement list for one run.

Order is installation order.  ``depends_on`` makes it checkable:
the MSVC toolchain comes before the CUDA toolkit (whose installer
integrates with it) and before the vcvars import that follows
resolution.
"""

from __future__ import annotations

from gpuboot.core.models.config import BootstrapConfig
from gpuboot.core.models.requirement import (
    STRATEGY_PORTABLE,
    STRATEGY_VENDOR,
    STRATEGY_WINGET,
    Requirement,
)
from gpuboot.core.models.toolkit import ToolkitPolicy
from gpuboot.core.services.prereq.data.catalog import (
    VS_BUILD_TOOLS_OVERRIDE,
    WINGET_IDS,
    cuda_components,
    cuda_installer_url,
)
from gpuboot.core.services.prereq.detection.prober import executable_present
from gpuboot.core.services.prereq.detection.toolchain import has_msvc
from gpuboot.core.services.prereq.detection.toolkit_scan import (
    toolkit_at_least,
    toolkit_exact,
)
from gpuboot.core.services.prereq.execution.environment import ProcessEnvironmentSnapshot


def build_requirements(
    config: BootstrapConfig,
    policy: ToolkitPolicy,
    snapshot: ProcessEnvironmentSnapshot,
) -> tuple[Requirement, ...]:
    """Assemble the ordered requirement list.

    Predicates close over ``snapshot`` so they always read the
    refreshed PATH, and over ``policy`` so the toolkit test matches
    the hardware decision.
    """
    if policy.exact:
        target = policy.exact

        def toolkit_test() -> bool:
            return toolkit_exact(config.toolkit_root, target)
    else:
        floor = policy.floor

        def toolkit_test() -> bool:
            return toolkit_at_least(config.toolkit_root, floor)

    return (
        Requirement(
            name="git",
            test=lambda: executable_present(snapshot.path, "git"),
            strategy=STRATEGY_WINGET,
            package_id=WINGET_IDS["git"],
            verify_command=("git", "--version"),
            verify_timeout=config.verify_timeout,
        ),
        Requirement(
            name="cmake",
            test=lambda: executable_present(snapshot.path, "cmake"),
            strategy=STRATEGY_WINGET,
            package_id=WINGET_IDS["cmake"],
            verify_command=("cmake", "--version"),
            verify_timeout=config.verify_timeout,
        ),
        Requirement(
            name="vs-build-tools",
            test=has_msvc,
            strategy=STRATEGY_WINGET,
            package_id=WINGET_IDS["vs-build-tools"],
            installer_args=VS_BUILD_TOOLS_OVERRIDE,
            verify_timeout=config.verify_timeout,
        ),
        Requirement(
            name="ninja",
            test=lambda: executable_present(snapshot.path, "ninja"),
            strategy=STRATEGY_PORTABLE,
            download_url=config.ninja_url,
            install_dir=str(config.ninja_dir),
            verify_command=("ninja", "--version"),
            verify_timeout=config.verify_timeout,
        ),
        Requirement(
            name="cuda-toolkit",
            test=toolkit_test,
            strategy=STRATEGY_WINGET,
            package_id=WINGET_IDS["cuda-toolkit"],
            version=policy.exact,
            fallback=STRATEGY_VENDOR if policy.exact else None,
            download_url=(cuda_installer_url(policy.exact) or "") if policy.exact else "",
            components=cuda_components(policy.exact) if policy.exact else (),
            depends_on=("vs-build-tools",),
            verify_timeout=config.verify_timeout,
        ),
    )
