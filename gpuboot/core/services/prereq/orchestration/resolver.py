"""
L5 Orchestration — Prerequisite resolution loop.

    for each requirement, in declared order:
        probe → satisfied? skip
              → install → refresh snapshot → re-probe (bounded)
                → verify command → next

Any failure is fatal and propagates; nothing is retried.  A run over
an already provisioned machine performs zero installs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Sequence

from gpuboot.core.errors import InstallFailure
from gpuboot.core.models.config import BootstrapConfig
from gpuboot.core.models.requirement import Requirement
from gpuboot.core.services.prereq.detection.prober import is_satisfied
from gpuboot.core.services.prereq.domain.ordering import validate_order
from gpuboot.core.services.prereq.execution.environment import ProcessEnvironmentSnapshot
from gpuboot.core.services.prereq.execution.installers import install
from gpuboot.core.services.prereq.execution.polling import wait_until
from gpuboot.core.services.prereq.execution.subprocess_runner import run_command

logger = logging.getLogger(__name__)


@dataclass
class ResolutionReport:
    """What a resolution pass did."""

    already_satisfied: list[str] = field(default_factory=list)
    installed: list[tuple[str, str]] = field(default_factory=list)  # (name, strategy)

    @property
    def all_satisfied(self) -> bool:
        """True when nothing had to be installed."""
        return not self.installed

    def to_dict(self) -> dict:
        return {
            "already_satisfied": list(self.already_satisfied),
            "installed": [{"name": n, "strategy": s} for n, s in self.installed],
            "all_satisfied": self.all_satisfied,
        }


def run_verify_command(req: Requirement, snapshot: ProcessEnvironmentSnapshot) -> None:
    """Run the requirement's post-install check, if it has one.

    Raises:
        InstallFailure: The check did not exit 0.
    """
    if not req.verify_command:
        return
    cmd = list(req.verify_command)
    cmd[0] = snapshot.which(cmd[0]) or cmd[0]
    result = run_command(cmd, timeout=60, env=snapshot.as_dict())
    if not result.ok:
        raise InstallFailure(
            req.name, "verify", result.returncode,
            result.error or result.stderr.strip()[-300:],
        )
    first_line = result.stdout.strip().splitlines()[0] if result.stdout.strip() else ""
    logger.info("%s: %s", req.name, first_line)


def resolve_requirements(
    requirements: Sequence[Requirement],
    snapshot: ProcessEnvironmentSnapshot,
    config: BootstrapConfig,
    *,
    progress: Callable[[str], None] | None = None,
) -> ResolutionReport:
    """Make every requirement true, installing what is missing.

    Args:
        requirements: Ordered requirement list.
        snapshot: Process environment, refreshed after each install.
        config: Timeouts, cache locations.
        progress: Optional callback for user-facing progress lines.

    Returns:
        ``ResolutionReport``.

    Raises:
        RequirementOrderError: Before any probe, if the order is invalid.
        InstallFailure / UnsatisfiableVersionRequest /
        InstallVerificationTimeout: On the first failing requirement.
    """
    validate_order(requirements)
    report = ResolutionReport()

    def say(msg: str) -> None:
        logger.info(msg)
        if progress is not None:
            progress(msg)

    for req in requirements:
        if is_satisfied(req):
            report.already_satisfied.append(req.name)
            logger.info("%s: already satisfied", req.name)
            continue

        say(f"Installing {req.name}...")
        strategy = install(req, snapshot, config)

        wait_until(
            lambda: is_satisfied(req),
            timeout=req.verify_timeout,
            interval=config.poll_interval,
            what=req.name,
            on_retry=snapshot.refresh,
        )
        run_verify_command(req, snapshot)

        report.installed.append((req.name, strategy))
        say(f"Installed {req.name} ({strategy})")

    if report.all_satisfied:
        logger.info("All %d requirements already satisfied", len(requirements))
    return report
