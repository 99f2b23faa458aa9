"""
Error taxonomy — every fatal condition of a bootstrap run.

All errors derive from ``BootstrapError`` so the CLI can catch them in
one place, print a human-readable message plus the diagnostic log
location, and exit non-zero.  Nothing here is retried automatically.

GPU detection failure is deliberately NOT an error: it degrades to a
documented default inside the hardware selector.
"""

from __future__ import annotations


class BootstrapError(Exception):
    """Base class for all fatal bootstrap conditions."""


class ConfigError(BootstrapError):
    """Raised when gpuboot.yml is unreadable or invalid."""


class PrivilegeError(BootstrapError):
    """The process lacks the elevated rights installers need."""


class RequirementOrderError(BootstrapError):
    """The requirement list is not a valid dependency order."""


class InstallFailure(BootstrapError):
    """An installer exited with a code that is not known to mean success.

    Attributes:
        requirement: Requirement name, e.g. ``"cmake"``.
        strategy: Installer strategy that was running, e.g. ``"winget"``.
        code: Exit code (or ``None`` when the failure had no exit code).
    """

    def __init__(
        self,
        requirement: str,
        strategy: str,
        code: int | None = None,
        detail: str = "",
    ) -> None:
        self.requirement = requirement
        self.strategy = strategy
        self.code = code
        self.detail = detail
        msg = f"Installing '{requirement}' via {strategy} failed"
        if code is not None:
            msg += f" (exit {code})"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class UnsatisfiableVersionRequest(InstallFailure):
    """The package manager has no package matching the pinned version.

    Distinct from ``InstallFailure``: the request itself can never
    succeed, so retrying is pointless.
    """

    def __init__(
        self,
        requirement: str,
        strategy: str,
        version: str,
        code: int | None = None,
    ) -> None:
        self.version = version
        super().__init__(
            requirement,
            strategy,
            code,
            detail=(
                f"no package matches version {version}. "
                "Pick a version the package source actually publishes."
            ),
        )


class InstallVerificationTimeout(BootstrapError):
    """The post-install re-probe never succeeded within its bound."""

    def __init__(self, requirement: str, timeout: float) -> None:
        self.requirement = requirement
        self.timeout = timeout
        super().__init__(
            f"'{requirement}' is still not available {timeout:g}s after "
            "installation"
        )


class NoMatchingToolkit(BootstrapError):
    """No discovered toolkit installation satisfies the policy."""

    def __init__(self, floor: str, exact: str | None, found: list[str]) -> None:
        self.floor = floor
        self.exact = exact
        self.found = found
        wanted = f"exactly {exact}" if exact else f">= {floor}"
        have = ", ".join(found) if found else "none"
        super().__init__(
            f"No CUDA toolkit installation matches {wanted} (found: {have})"
        )


class BuildFailure(BootstrapError):
    """A downstream source-control or build command failed."""

    def __init__(self, step: str, code: int | None, detail: str = "") -> None:
        self.step = step
        self.code = code
        msg = f"{step} failed"
        if code is not None:
            msg += f" (exit {code})"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class ServerError(BootstrapError):
    """The built server could not be found, started, or reached."""
