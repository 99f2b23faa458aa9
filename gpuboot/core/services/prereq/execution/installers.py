"""
L4 Execution — Installer strategies.

Three strategies, bound statically per requirement through
``INSTALLERS``:

    winget     package-manager install, optionally version-pinned
    vendor     vendor installer download + silent component install
    portable   zip download, extraction, machine PATH registration

Each raises ``InstallFailure`` (or ``UnsatisfiableVersionRequest``) and
returns None on success.  Success here only means "the installer said
so"; the resolver re-probes afterwards.
"""

from __future__ import annotations

import logging
import zipfile
from pathlib import Path
from typing import Callable

from gpuboot.core.errors import InstallFailure, UnsatisfiableVersionRequest
from gpuboot.core.models.config import BootstrapConfig
from gpuboot.core.models.requirement import (
    STRATEGY_PORTABLE,
    STRATEGY_VENDOR,
    STRATEGY_WINGET,
    Requirement,
)
from gpuboot.core.services.prereq.data.exit_codes import (
    CUDA_INSTALLER_EXIT_CODES,
    CUDA_INSTALLER_SUCCESS_SENTINELS,
    NO_MATCHING_PACKAGE,
    WINGET_EXIT_CODES,
    WINGET_SUCCESS_SENTINELS,
)
from gpuboot.core.services.prereq.domain.exit_classification import classify_exit
from gpuboot.core.services.prereq.execution.download import (
    download_file,
    extract_zip,
    fetch_cached,
    filename_from_url,
)
from gpuboot.core.services.prereq.execution.environment import ProcessEnvironmentSnapshot
from gpuboot.core.services.prereq.execution.polling import wait_until
from gpuboot.core.services.prereq.execution.subprocess_runner import run_command

logger = logging.getLogger(__name__)

Installer = Callable[[Requirement, ProcessEnvironmentSnapshot, BootstrapConfig], None]


# ── winget ─────────────────────────────────────────────────────


def winget_install_command(req: Requirement) -> list[str]:
    """Non-interactive ``winget install`` for one requirement."""
    cmd = [
        "winget", "install",
        "--id", req.package_id,
        "--exact",
        "--source", "winget",
        "--silent",
        "--accept-package-agreements",
        "--accept-source-agreements",
        "--disable-interactivity",
    ]
    if req.version:
        cmd += ["--version", req.version]
    if req.installer_args:
        cmd += ["--override", req.installer_args]
    return cmd


def install_with_package_manager(
    req: Requirement,
    snapshot: ProcessEnvironmentSnapshot,
    config: BootstrapConfig,
) -> None:
    """Install through winget.

    Raises:
        UnsatisfiableVersionRequest: The pinned version does not exist.
        InstallFailure: Any other unexpected outcome.
    """
    pinned = f" {req.version}" if req.version else ""
    logger.info("Installing %s%s via winget (%s)", req.name, pinned, req.package_id)

    result = run_command(
        winget_install_command(req),
        timeout=config.installer_timeout,
        env=snapshot.as_dict(),
    )
    if result.returncode is None:
        raise InstallFailure(req.name, STRATEGY_WINGET, None, result.error or "")

    outcome = classify_exit(result.returncode, WINGET_EXIT_CODES)
    if outcome.is_success(WINGET_SUCCESS_SENTINELS):
        if outcome.sentinel:
            logger.info("%s: winget reports %s", req.name, outcome.sentinel)
        return

    if outcome.sentinel == NO_MATCHING_PACKAGE:
        if req.version:
            raise UnsatisfiableVersionRequest(
                req.name, STRATEGY_WINGET, req.version, outcome.code,
            )
        raise InstallFailure(
            req.name, STRATEGY_WINGET, outcome.code,
            f"no package with id {req.package_id}",
        )

    raise InstallFailure(
        req.name, STRATEGY_WINGET, outcome.code, result.stderr.strip()[-300:],
    )


# ── Vendor installer ───────────────────────────────────────────


def vendor_install_command(installer: Path, req: Requirement) -> list[str]:
    """Silent install restricted to ``req.components``, no reboot."""
    return [str(installer), "-s", *req.components, "-n"]


def install_from_vendor(
    req: Requirement,
    snapshot: ProcessEnvironmentSnapshot,
    config: BootstrapConfig,
) -> None:
    """Download the vendor installer (cached by file name) and run it silently."""
    if not req.download_url:
        raise InstallFailure(
            req.name, STRATEGY_VENDOR, None,
            f"no vendor installer known for version {req.version}",
        )

    try:
        installer = fetch_cached(req.download_url, config.cache_dir)
    except OSError as e:
        raise InstallFailure(req.name, STRATEGY_VENDOR, None, f"download failed: {e}") from e

    logger.info(
        "Running %s (components: %s)", installer.name, " ".join(req.components),
    )
    result = run_command(
        vendor_install_command(installer, req),
        timeout=config.installer_timeout,
        env=snapshot.as_dict(),
    )
    if result.returncode is None:
        raise InstallFailure(req.name, STRATEGY_VENDOR, None, result.error or "")

    outcome = classify_exit(result.returncode, CUDA_INSTALLER_EXIT_CODES)
    if not outcome.is_success(CUDA_INSTALLER_SUCCESS_SENTINELS):
        raise InstallFailure(req.name, STRATEGY_VENDOR, outcome.code)
    if outcome.sentinel:
        logger.warning("%s installed; a reboot is required to finish", req.name)


# ── Portable archive ───────────────────────────────────────────


def install_portable(
    req: Requirement,
    snapshot: ProcessEnvironmentSnapshot,
    config: BootstrapConfig,
) -> None:
    """Extract a zip into a fixed directory and put it on the machine PATH."""
    target = Path(req.install_dir)
    archive = config.cache_dir / filename_from_url(req.download_url)

    try:
        download_file(req.download_url, archive)
    except OSError as e:
        raise InstallFailure(req.name, STRATEGY_PORTABLE, None, f"download failed: {e}") from e

    try:
        extract_zip(archive, target)
    except (OSError, ValueError, zipfile.BadZipFile) as e:
        raise InstallFailure(req.name, STRATEGY_PORTABLE, None, f"extraction failed: {e}") from e
    finally:
        archive.unlink(missing_ok=True)

    try:
        changed = snapshot.store.append_machine_path(str(target))
    except OSError as e:
        raise InstallFailure(
            req.name, STRATEGY_PORTABLE, None, f"cannot update machine PATH: {e}",
        ) from e
    if changed:
        logger.info("Added %s to the machine PATH", target)

    snapshot.refresh()
    wait_until(
        req.test,
        timeout=req.verify_timeout,
        interval=config.poll_interval,
        what=req.name,
        on_retry=snapshot.refresh,
    )


INSTALLERS: dict[str, Installer] = {
    STRATEGY_WINGET: install_with_package_manager,
    STRATEGY_VENDOR: install_from_vendor,
    STRATEGY_PORTABLE: install_portable,
}


def install(
    req: Requirement,
    snapshot: ProcessEnvironmentSnapshot,
    config: BootstrapConfig,
) -> str:
    """Install one requirement with its bound strategy.

    A pinned package-manager request that proves unsatisfiable falls
    back to ``req.fallback`` when one is declared; otherwise the error
    propagates.  The snapshot is refreshed after every successful install.

    Returns:
        The strategy that completed the install.
    """
    strategy = req.strategy
    try:
        INSTALLERS[strategy](req, snapshot, config)
    except UnsatisfiableVersionRequest as e:
        if req.fallback is None:
            raise
        logger.warning("%s; falling back to %s installer", e, req.fallback)
        strategy = req.fallback
        INSTALLERS[strategy](req, snapshot, config)

    snapshot.refresh()
    return strategy
