"""
Shared test fixtures and configuration.
"""

import logging
import os
from pathlib import Path

import pytest

from gpuboot.core.models.config import BootstrapConfig
from gpuboot.core.services.prereq.data.catalog import TOOLKIT_VERIFY_BINARY
from gpuboot.core.services.prereq.execution.environment import (
    MemoryEnvironmentStore,
    ProcessEnvironmentSnapshot,
)


def _make_executable(directory: Path, name: str) -> Path:
    """Create an executable stub that ``shutil.which`` will resolve."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / (f"{name}.exe" if os.name == "nt" else name)
    path.write_text("")
    path.chmod(0o755)
    return path


def _make_toolkit(root: Path, version: str, binary: str = TOOLKIT_VERIFY_BINARY) -> Path:
    """Create ``<root>/v<version>/bin/<binary>``."""
    bin_dir = root / f"v{version}" / "bin"
    bin_dir.mkdir(parents=True)
    (bin_dir / binary).write_text("")
    return root / f"v{version}"


@pytest.fixture(autouse=True)
def _isolated_log_file(tmp_path: Path, monkeypatch) -> None:
    """Keep CLI runs from writing into the real home directory."""
    monkeypatch.setenv("GPUBOOT_LOG_FILE", str(tmp_path / "gpuboot.log"))
    monkeypatch.delenv("GPUBOOT_LOG_LEVEL", raising=False)


@pytest.fixture
def store() -> MemoryEnvironmentStore:
    return MemoryEnvironmentStore(machine={"PATH": ""}, user={})


@pytest.fixture
def snapshot(store: MemoryEnvironmentStore) -> ProcessEnvironmentSnapshot:
    return ProcessEnvironmentSnapshot(store, environ={"PATH": ""}, sep=os.pathsep)


@pytest.fixture
def config(tmp_path: Path) -> BootstrapConfig:
    """Config with every location inside ``tmp_path`` and fast polling."""
    return BootstrapConfig(
        install_dir=tmp_path / "llama.cpp",
        cache_dir=tmp_path / "cache",
        toolkit_root=tmp_path / "CUDA",
        ninja_dir=tmp_path / "Ninja",
        ninja_url="https://example.invalid/ninja-win.zip",
        verify_timeout=0.0,
        poll_interval=0.0,
    )


@pytest.fixture
def make_executable():
    return _make_executable


@pytest.fixture
def make_toolkit():
    return _make_toolkit


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """Undo ``setup_logging`` calls made by a test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
