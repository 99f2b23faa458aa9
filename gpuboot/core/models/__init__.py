"""
Domain models for gpuboot.

    from gpuboot.core.models import BootstrapConfig, Requirement, ToolkitPolicy
"""

from gpuboot.core.models.config import BootstrapConfig
from gpuboot.core.models.requirement import (
    STRATEGIES,
    STRATEGY_PORTABLE,
    STRATEGY_VENDOR,
    STRATEGY_WINGET,
    Requirement,
)
from gpuboot.core.models.toolkit import (
    HardwareProfile,
    ToolkitInstallation,
    ToolkitPolicy,
)

__all__ = [
    "BootstrapConfig",
    "HardwareProfile",
    "Requirement",
    "STRATEGIES",
    "STRATEGY_PORTABLE",
    "STRATEGY_VENDOR",
    "STRATEGY_WINGET",
    "ToolkitInstallation",
    "ToolkitPolicy",
]
