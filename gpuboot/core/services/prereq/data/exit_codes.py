"""
L0 Data — Exit-code classification tables per external tool.

Each table maps a (signed) process exit code to a named sentinel.
Callers never compare against raw numbers; they classify first and
match on the sentinel name.

winget codes are HRESULTs.  Windows reports them to Python as
unsigned 32-bit values, so they are normalised to signed before lookup
(see ``domain.exit_classification.normalise_exit_code``).
"""

from __future__ import annotations

# ── Sentinel names ─────────────────────────────────────────────

ALREADY_CURRENT = "already_current"
ALREADY_INSTALLED = "already_installed"
NO_MATCHING_PACKAGE = "no_matching_package"
REBOOT_REQUIRED = "reboot_required"

# ── winget ─────────────────────────────────────────────────────

WINGET_EXIT_CODES: dict[int, str] = {
    -1978335189: ALREADY_CURRENT,       # 0x8A15002B UPDATE_NOT_APPLICABLE
    -1978335135: ALREADY_INSTALLED,     # 0x8A150061 PACKAGE_ALREADY_INSTALLED
    -1978335212: NO_MATCHING_PACKAGE,   # 0x8A150014 NO_APPLICATIONS_FOUND
}

# Sentinels that mean "the package is where you asked it to be"
WINGET_SUCCESS_SENTINELS = frozenset({ALREADY_CURRENT, ALREADY_INSTALLED})

# ── CUDA local installer ───────────────────────────────────────

CUDA_INSTALLER_EXIT_CODES: dict[int, str] = {
    3010: REBOOT_REQUIRED,              # ERROR_SUCCESS_REBOOT_REQUIRED
}

CUDA_INSTALLER_SUCCESS_SENTINELS = frozenset({REBOOT_REQUIRED})
