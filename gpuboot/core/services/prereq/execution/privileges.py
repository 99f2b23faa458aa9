"""
L4 Execution — Elevation check.

Installers write machine-wide state (Program Files, HKLM), so a run
that mutates anything must start elevated.  Checked first, fatal.
"""

from __future__ import annotations

import os
import sys

from gpuboot.core.errors import PrivilegeError


def is_elevated() -> bool:
    """True when running as Administrator (Windows) or root (POSIX)."""
    if sys.platform == "win32":
        import ctypes

        try:
            return bool(ctypes.windll.shell32.IsUserAnAdmin())
        except OSError:
            return False
    return os.geteuid() == 0


def ensure_elevated() -> None:
    """Raise ``PrivilegeError`` unless the process is elevated."""
    if not is_elevated():
        hint = (
            "Re-run from an elevated (Run as administrator) terminal."
            if sys.platform == "win32"
            else "Re-run as root."
        )
        raise PrivilegeError(f"Administrator rights are required. {hint}")
