"""
Downstream project — fetch the source and build it.

Everything here is a sequential shell-out: git for the source,
CMake + Ninja for the build.  Commands run with the snapshot's
environment so they see the toolchain and toolkit selected earlier.
"""

from __future__ import annotations

import logging
from pathlib import Path

from gpuboot.core.errors import BuildFailure
from gpuboot.core.models.config import BootstrapConfig
from gpuboot.core.models.toolkit import HardwareProfile, ToolkitInstallation
from gpuboot.core.services.prereq.execution.environment import ProcessEnvironmentSnapshot
from gpuboot.core.services.prereq.execution.subprocess_runner import run_command

logger = logging.getLogger(__name__)

# Build commands stream to the console; no overall limit
_BUILD_TIMEOUT = None


def _run_step(
    step: str,
    cmd: list[str],
    snapshot: ProcessEnvironmentSnapshot,
    *,
    cwd: Path | None = None,
    capture: bool = True,
) -> None:
    cmd = [snapshot.which(cmd[0]) or cmd[0], *cmd[1:]]
    result = run_command(
        cmd,
        timeout=_BUILD_TIMEOUT,
        env=snapshot.as_dict(),
        cwd=str(cwd) if cwd else None,
        capture=capture,
    )
    if not result.ok:
        raise BuildFailure(step, result.returncode, result.error or result.stderr.strip()[-500:])


def fetch_source(config: BootstrapConfig, snapshot: ProcessEnvironmentSnapshot) -> str:
    """Clone the project, or fast-forward an existing checkout.

    Returns:
        ``"cloned"`` or ``"updated"``.
    """
    src = config.source_dir
    if (src / ".git").is_dir():
        logger.info("Updating %s", src)
        _run_step("git pull", ["git", "pull", "--ff-only"], snapshot, cwd=src)
        action = "updated"
    else:
        if src.exists() and any(src.iterdir()):
            raise BuildFailure(
                "git clone", None, f"{src} exists and is not a git checkout",
            )
        logger.info("Cloning %s into %s", config.repository_url, src)
        src.parent.mkdir(parents=True, exist_ok=True)
        _run_step(
            "git clone",
            ["git", "clone", config.repository_url, str(src)],
            snapshot,
        )
        action = "cloned"

    _run_step(
        "git submodule update",
        ["git", "submodule", "update", "--init", "--recursive"],
        snapshot,
        cwd=src,
    )
    return action


def configure_command(
    config: BootstrapConfig,
    profile: HardwareProfile,
    toolkit: ToolkitInstallation,
) -> list[str]:
    """The CMake configure line for a CUDA build."""
    return [
        "cmake",
        "-S", str(config.source_dir),
        "-B", str(config.build_dir),
        "-G", "Ninja",
        "-DGGML_CUDA=ON",
        "-DCMAKE_BUILD_TYPE=Release",
        f"-DCMAKE_CUDA_ARCHITECTURES={profile.cuda_architecture}",
        f"-DCUDAToolkit_ROOT={toolkit.root}",
    ]


def build_project(
    config: BootstrapConfig,
    snapshot: ProcessEnvironmentSnapshot,
    profile: HardwareProfile,
    toolkit: ToolkitInstallation,
) -> Path:
    """Configure and compile the project.

    Returns:
        The build directory.
    """
    logger.info(
        "Configuring build (CUDA %s, architecture %s)",
        toolkit.version_str, profile.cuda_architecture,
    )
    _run_step("cmake configure", configure_command(config, profile, toolkit), snapshot)
    _run_step(
        "cmake build",
        ["cmake", "--build", str(config.build_dir), "--config", "Release"],
        snapshot,
        capture=False,
    )
    return config.build_dir


def server_binary(config: BootstrapConfig) -> Path | None:
    """Locate the built server executable."""
    for name in ("llama-server.exe", "llama-server"):
        for sub in ("bin", "bin/Release", ""):
            candidate = config.build_dir / sub / name
            if candidate.is_file():
                return candidate
    return None
