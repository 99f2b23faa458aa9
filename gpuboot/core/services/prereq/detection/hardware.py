"""
L3 Detection — GPU compute capability.

Detection is advisory: a missing ``nvidia-smi`` or any failure while
running it yields ``None`` and the run continues with defaults.
"""

from __future__ import annotations

import logging
import shutil
import subprocess

from gpuboot.core.models.toolkit import HardwareProfile

logger = logging.getLogger(__name__)


def parse_compute_capability(text: str) -> int | None:
    """Turn ``"8.6"`` into ``86``.

    Only the first non-empty line is considered (the first GPU).
    """
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        digits = line.replace(".", "")
        return int(digits) if digits.isdigit() else None
    return None


def detect_compute_capability() -> int | None:
    """Ask the GPU driver for the compute capability of the first GPU."""
    if not shutil.which("nvidia-smi"):
        logger.info("nvidia-smi not found, compute capability unknown")
        return None
    try:
        r = subprocess.run(
            ["nvidia-smi", "--query-gpu=compute_cap", "--format=csv,noheader"],
            capture_output=True, text=True, timeout=10,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.warning("nvidia-smi failed: %s", e)
        return None
    if r.returncode != 0:
        logger.warning("nvidia-smi exited %s", r.returncode)
        return None
    capability = parse_compute_capability(r.stdout)
    if capability is None:
        logger.warning("Unrecognised compute capability: %r", r.stdout.strip())
    return capability


def build_hardware_profile(
    override: int | None = None,
    *,
    default_architecture: str = "all-major",
) -> HardwareProfile:
    """Compute the hardware profile for this run.

    An explicit ``override`` skips detection and is authoritative.
    """
    if override is not None:
        logger.info("Using architecture override %d", override)
        return HardwareProfile(
            compute_capability=override,
            source="override",
            default_architecture=default_architecture,
        )

    capability = detect_compute_capability()
    if capability is None:
        return HardwareProfile(
            compute_capability=None,
            source="default",
            default_architecture=default_architecture,
        )
    logger.info("Detected compute capability %d", capability)
    return HardwareProfile(
        compute_capability=capability,
        source="detected",
        default_architecture=default_architecture,
    )
