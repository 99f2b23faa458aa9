"""
L1 Domain — Hardware-version policy (pure).

Older accelerator generations cannot run newer toolkit releases, so
the toolkit version is decided from the compute capability before any
install is attempted.
"""

from __future__ import annotations

from gpuboot.core.models.toolkit import ToolkitPolicy

# Capabilities below this are the pre-Volta generations
LEGACY_CAPABILITY_THRESHOLD = 70


def select_toolkit_policy(
    capability: int | None,
    *,
    floor: str,
    legacy_version: str,
    threshold: int = LEGACY_CAPABILITY_THRESHOLD,
) -> ToolkitPolicy:
    """Choose the toolkit policy for a compute capability.

    Args:
        capability: Integer capability (``86`` for "8.6"), or ``None``
            when undetectable.
        floor: Minimum toolkit version for modern or unknown hardware.
        legacy_version: Exact toolkit version pinned for old hardware.
        threshold: Capabilities strictly below this are "legacy".

    Returns:
        ``ToolkitPolicy(floor, exact=legacy_version)`` for legacy hardware,
        ``ToolkitPolicy(floor)`` otherwise.
    """
    if capability is not None and capability < threshold:
        return ToolkitPolicy(floor=floor, exact=legacy_version)
    return ToolkitPolicy(floor=floor)
