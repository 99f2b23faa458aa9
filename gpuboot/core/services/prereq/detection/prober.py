"""
L3 Detection — Requirement satisfaction.

A requirement is satisfied only by its own predicate, never by the
fact that an installer exited cleanly.
"""

from __future__ import annotations

import logging
import shutil

from gpuboot.core.models.requirement import Requirement

logger = logging.getLogger(__name__)


def executable_present(search_path: str, name: str) -> bool:
    """True iff ``name`` resolves on ``search_path`` (a PATH-style string)."""
    if not search_path:
        return False
    return shutil.which(name, path=search_path) is not None


def is_satisfied(req: Requirement) -> bool:
    """Evaluate the requirement's predicate."""
    ok = bool(req.test())
    logger.debug("probe %s -> %s", req.name, "satisfied" if ok else "missing")
    return ok
