"""
L1 Domain — Requirement ordering validation (pure).

The requirement list is processed strictly in declaration order, so
that order must be a topological order of the ``depends_on`` graph.
No I/O, no subprocess.
"""

from __future__ import annotations

from typing import Sequence

from gpuboot.core.errors import RequirementOrderError
from gpuboot.core.models.requirement import Requirement


def order_errors(requirements: Sequence[Requirement]) -> list[str]:
    """Check the requirement list against its declared dependencies.

    Checks for:
    - Duplicate requirement names
    - References to unknown requirements
    - Dependencies declared after their dependents (which also rules
      out cycles, since a cycle can never be laid out front-to-back)

    Returns:
        List of error strings (empty = valid).
    """
    errors: list[str] = []
    names = {r.name for r in requirements}

    seen: set[str] = set()
    for r in requirements:
        if r.name in seen:
            errors.append(f"Duplicate requirement: {r.name}")
        seen.add(r.name)

    for r in requirements:
        for dep in r.depends_on:
            if dep not in names:
                errors.append(f"'{r.name}' depends on unknown requirement '{dep}'")

    if errors:
        return errors

    earlier: set[str] = set()
    for r in requirements:
        for dep in r.depends_on:
            if dep not in earlier:
                errors.append(f"'{r.name}' is declared before its dependency '{dep}'")
        earlier.add(r.name)

    return errors


def validate_order(requirements: Sequence[Requirement]) -> None:
    """Raise ``RequirementOrderError`` unless the list is correctly ordered."""
    errors = order_errors(requirements)
    if errors:
        raise RequirementOrderError("; ".join(errors))
