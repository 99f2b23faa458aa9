"""
Requirement model — one prerequisite of a bootstrap run.

A requirement pairs a niladic test predicate with the installer
strategy that can make it true.  The strategy is bound statically
when the requirement list is built; nothing dispatches on the
predicate's result type at runtime.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

# Installer strategy identifiers
STRATEGY_WINGET = "winget"
STRATEGY_VENDOR = "vendor"
STRATEGY_PORTABLE = "portable"

STRATEGIES = (STRATEGY_WINGET, STRATEGY_VENDOR, STRATEGY_PORTABLE)


@dataclass(frozen=True)
class Requirement:
    """A prerequisite and how to satisfy it.

    Attributes:
        name: Identifier used in logs, errors and ``depends_on``.
        test: Niladic predicate.  True means satisfied.  Never raises.
        strategy: One of ``STRATEGIES``.
        package_id: Package-manager identifier (winget strategy).
        version: Exact version to pin, if any.
        installer_args: Opaque arguments forwarded to the underlying
            installer (``winget --override``).
        fallback: Strategy to use when a pinned package-manager request
            turns out to be unsatisfiable.
        download_url: Artifact URL (vendor / portable strategies).
        install_dir: Extraction target (portable strategy).
        components: Sub-components to select (vendor strategy).
        verify_command: Optional command that must exit 0 after install.
        depends_on: Names of requirements that must come earlier.
        verify_timeout: Seconds to poll ``test`` after installing.
    """

    name: str
    test: Callable[[], bool] = field(compare=False, repr=False)
    strategy: str
    package_id: str = ""
    version: str | None = None
    installer_args: str = ""
    fallback: str | None = None
    download_url: str = ""
    install_dir: str = ""
    components: tuple[str, ...] = ()
    verify_command: tuple[str, ...] = ()
    depends_on: tuple[str, ...] = ()
    verify_timeout: float = 60.0

    def __post_init__(self) -> None:
        if self.strategy not in STRATEGIES:
            raise ValueError(f"Unknown installer strategy: {self.strategy}")
        if self.fallback is not None and self.fallback not in STRATEGIES:
            raise ValueError(f"Unknown fallback strategy: {self.fallback}")
