"""
L3 Detection — read-only probes.

These functions READ system state but never WRITE.  Every probe is
total: absence of a tool or directory reads as "not satisfied".
"""

from gpuboot.core.services.prereq.detection.hardware import (  # noqa: F401
    build_hardware_profile,
    detect_compute_capability,
    parse_compute_capability,
)
from gpuboot.core.services.prereq.detection.toolchain import (  # noqa: F401
    has_msvc,
    locate_msvc,
)
from gpuboot.core.services.prereq.detection.toolkit_scan import (  # noqa: F401
    scan_toolkits,
    toolkit_at_least,
    toolkit_exact,
)
from gpuboot.core.services.prereq.detection.prober import (  # noqa: F401
    executable_present,
    is_satisfied,
)
