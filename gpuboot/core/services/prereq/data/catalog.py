"""
L0 Data — Prerequisite catalog constants.

Package identifiers, locator paths, and vendor installer coordinates.
Requirement objects themselves are assembled in
``orchestration.requirement_set`` because their predicates close over
live probes.
"""

from __future__ import annotations

import os
from pathlib import Path

# ── winget package identifiers ─────────────────────────────────

WINGET_IDS: dict[str, str] = {
    "git": "Git.Git",
    "cmake": "Kitware.CMake",
    "vs-build-tools": "Microsoft.VisualStudio.2022.BuildTools",
    "cuda-toolkit": "Nvidia.CUDA",
}

# Opaque arguments forwarded to the Visual Studio bootstrapper
VS_BUILD_TOOLS_OVERRIDE = (
    "--wait --quiet --norestart "
    "--add Microsoft.VisualStudio.Workload.VCTools "
    "--add Microsoft.VisualStudio.Component.VC.Tools.x86.x64 "
    "--add Microsoft.VisualStudio.Component.Windows11SDK.22621 "
    "--includeRecommended"
)

# ── Compiler toolchain locator ─────────────────────────────────

VC_TOOLS_COMPONENT = "Microsoft.VisualStudio.Component.VC.Tools.x86.x64"


def vswhere_path() -> Path:
    """Fixed install location of the Visual Studio locator."""
    base = os.environ.get("ProgramFiles(x86)", r"C:\Program Files (x86)")
    return Path(base) / "Microsoft Visual Studio" / "Installer" / "vswhere.exe"


VCVARS_RELATIVE = Path("VC") / "Auxiliary" / "Build" / "vcvars64.bat"

# ── CUDA toolkit ───────────────────────────────────────────────

# Binary whose presence marks a toolkit directory as a real install
TOOLKIT_VERIFY_BINARY = "nvcc.exe" if os.name == "nt" else "nvcc"

# major.minor → (full release version, bundled driver version) for the
# vendor local installer URL
CUDA_RELEASES: dict[str, tuple[str, str]] = {
    "11.8": ("11.8.0", "522.06"),
    "12.1": ("12.1.1", "531.14"),
    "12.2": ("12.2.2", "537.13"),
    "12.4": ("12.4.1", "551.78"),
    "12.6": ("12.6.3", "561.17"),
    "12.8": ("12.8.1", "572.61"),
}

CUDA_INSTALLER_URL = (
    "https://developer.download.nvidia.com/compute/cuda/{release}/"
    "local_installers/cuda_{release}_{driver}_windows.exe"
)

# Sub-components installed by the vendor installer: compiler, runtime,
# math library runtime and headers.  The display driver and GUI
# utilities are left out so an existing newer driver is never downgraded.
CUDA_COMPONENTS: tuple[str, ...] = ("nvcc", "cudart", "cublas", "cublas_dev")


def cuda_installer_url(version: str) -> str | None:
    """Vendor installer URL for a major.minor version, if known."""
    release = CUDA_RELEASES.get(version)
    if release is None:
        return None
    full, driver = release
    return CUDA_INSTALLER_URL.format(release=full, driver=driver)


def cuda_components(version: str) -> tuple[str, ...]:
    """Component selectors for the vendor installer, e.g. ``nvcc_12.4``."""
    return tuple(f"{c}_{version}" for c in CUDA_COMPONENTS)
