"""
Bootstrap configuration — loaded from gpuboot.yml.

Every field has a default, so a missing config file means "use the
stock layout".  Paths default to the Windows locations the vendor
installers write to; override them in gpuboot.yml for other layouts.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field, field_validator


def _program_files() -> Path:
    return Path(os.environ.get("ProgramFiles", r"C:\Program Files"))


def _default_toolkit_root() -> Path:
    return _program_files() / "NVIDIA GPU Computing Toolkit" / "CUDA"


def _default_ninja_dir() -> Path:
    return _program_files() / "Ninja"


class BootstrapConfig(BaseModel):
    """Everything a bootstrap run can be tuned with."""

    # Downstream project layout
    install_dir: Path = Field(default_factory=lambda: Path.home() / "llama.cpp")
    cache_dir: Path = Field(
        default_factory=lambda: Path.home() / ".cache" / "gpuboot" / "downloads"
    )
    repository_url: str = "https://github.com/ggml-org/llama.cpp.git"

    # Accelerator toolkit policy
    toolkit_root: Path = Field(default_factory=_default_toolkit_root)
    toolkit_floor: str = "12.4"
    legacy_toolkit_version: str = "12.4"
    legacy_capability_threshold: int = 70
    default_cuda_architecture: str = "all-major"

    # Portable build driver
    ninja_url: str = (
        "https://github.com/ninja-build/ninja/releases/latest/download/ninja-win.zip"
    )
    ninja_dir: Path = Field(default_factory=_default_ninja_dir)

    # Server launch
    model_url: str = (
        "https://huggingface.co/ggml-org/gemma-3-1b-it-GGUF/resolve/main/"
        "gemma-3-1b-it-Q4_K_M.gguf"
    )
    server_port: int = 8080

    # Timing (seconds)
    verify_timeout: float = 60.0
    poll_interval: float = 2.0
    installer_timeout: int = 3600

    @field_validator("toolkit_floor", "legacy_toolkit_version")
    @classmethod
    def _major_minor(cls, v: str) -> str:
        parts = v.split(".")
        if len(parts) != 2 or not all(p.isdigit() for p in parts):
            raise ValueError(f"expected '<major>.<minor>', got {v!r}")
        return v

    @property
    def source_dir(self) -> Path:
        return self.install_dir / "src"

    @property
    def build_dir(self) -> Path:
        return self.install_dir / "build"

    @property
    def models_dir(self) -> Path:
        return self.install_dir / "models"
