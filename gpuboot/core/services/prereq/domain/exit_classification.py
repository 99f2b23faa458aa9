"""
L1 Domain — Typed classification of external process exit codes (pure).

Turns a raw exit code into ``ExitClass``:

    ok                  exit 0
    sentinel(name)      a code listed in the tool's table
    failure(code)       anything else
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True)
class ExitClass:
    """Classified exit code."""

    kind: Literal["ok", "sentinel", "failure"]
    code: int
    sentinel: str | None = None

    def is_success(self, success_sentinels: frozenset[str] = frozenset()) -> bool:
        """True for exit 0 or for a sentinel the caller treats as success."""
        if self.kind == "ok":
            return True
        return self.kind == "sentinel" and self.sentinel in success_sentinels


def normalise_exit_code(code: int) -> int:
    """Map an unsigned 32-bit Windows exit code onto its signed value.

    ``2316632107`` (0x8A15002B) becomes ``-1978335189``.  Codes already in
    signed range are returned unchanged.
    """
    if code >= 2**31:
        return code - 2**32
    return code


def classify_exit(code: int, table: dict[int, str]) -> ExitClass:
    """Classify ``code`` against a tool's sentinel table."""
    code = normalise_exit_code(code)
    if code == 0:
        return ExitClass(kind="ok", code=0)
    name = table.get(code)
    if name is not None:
        return ExitClass(kind="sentinel", code=code, sentinel=name)
    return ExitClass(kind="failure", code=code)
