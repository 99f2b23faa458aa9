"""
L1 Domain — major.minor version parsing and comparison (pure).

Toolkit versions are compared as ``(major, minor)`` integer tuples,
so ``12.10`` sorts above ``12.9``.
"""

from __future__ import annotations

import re

_TOOLKIT_DIR_RE = re.compile(r"^v(\d+)\.(\d+)$")


def parse_version(text: str) -> tuple[int, int]:
    """Parse ``"12.4"`` (or ``"v12.4"``) into ``(12, 4)``.

    Raises:
        ValueError: If the text is not ``<major>.<minor>``.
    """
    parts = text.strip().lstrip("v").split(".")
    if len(parts) != 2:
        raise ValueError(f"expected '<major>.<minor>', got {text!r}")
    return int(parts[0]), int(parts[1])


def parse_toolkit_dir(name: str) -> tuple[int, int] | None:
    """Parse a toolkit directory name like ``v12.4``.

    Returns:
        ``(major, minor)`` or ``None`` if the name does not match.
    """
    m = _TOOLKIT_DIR_RE.match(name)
    if not m:
        return None
    return int(m.group(1)), int(m.group(2))


def at_least(version: tuple[int, int], floor: str) -> bool:
    """True iff ``version`` >= ``floor`` under (major, minor) ordering."""
    return version >= parse_version(floor)


def matches_exactly(version: tuple[int, int], target: str) -> bool:
    """True iff major AND minor equal ``target``."""
    return version == parse_version(target)
