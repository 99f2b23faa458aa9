"""
Toolkit and hardware models.

``ToolkitInstallation`` values are rediscovered by filesystem scan on
every query and never cached: an install step can create one mid-run.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal


@dataclass(frozen=True)
class ToolkitInstallation:
    """One accelerator toolkit found on disk."""

    major: int
    minor: int
    root: Path
    executable: Path

    @property
    def version(self) -> tuple[int, int]:
        return (self.major, self.minor)

    @property
    def version_str(self) -> str:
        return f"{self.major}.{self.minor}"

    @property
    def bin_dir(self) -> Path:
        return self.root / "bin"

    def to_dict(self) -> dict:
        return {
            "version": self.version_str,
            "root": str(self.root),
            "executable": str(self.executable),
        }


@dataclass(frozen=True)
class HardwareProfile:
    """GPU compute capability as seen at the start of a run.

    ``compute_capability`` is an integer like ``86`` (for "8.6"), or
    ``None`` when it could not be determined.
    """

    compute_capability: int | None
    source: Literal["override", "detected", "default"]
    default_architecture: str = "all-major"

    @property
    def cuda_architecture(self) -> str:
        """Value for ``CMAKE_CUDA_ARCHITECTURES``."""
        if self.compute_capability is None:
            return self.default_architecture
        return str(self.compute_capability)

    def to_dict(self) -> dict:
        return {
            "compute_capability": self.compute_capability,
            "source": self.source,
            "cuda_architecture": self.cuda_architecture,
        }


@dataclass(frozen=True)
class ToolkitPolicy:
    """Which toolkit versions are acceptable.

    When ``exact`` is set only that major.minor satisfies the policy;
    otherwise anything at or above ``floor`` does.
    """

    floor: str
    exact: str | None = None

    @property
    def pinned(self) -> bool:
        return self.exact is not None

    def to_dict(self) -> dict:
        return {"floor": self.floor, "exact": self.exact}
