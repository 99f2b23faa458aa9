"""
Prerequisite resolution service — package re-exports.

Each symbol lives in its single-responsibility module inside the
appropriate layer (data → domain → detection → execution →
orchestration)::

    from gpuboot.core.services.prereq import resolve_requirements
"""

# ── L1: Domain ──
from gpuboot.core.services.prereq.domain.ordering import validate_order  # noqa: F401
from gpuboot.core.services.prereq.domain.policy import select_toolkit_policy  # noqa: F401

# ── L3: Detection ──
from gpuboot.core.services.prereq.detection.hardware import (  # noqa: F401
    build_hardware_profile,
    detect_compute_capability,
)
from gpuboot.core.services.prereq.detection.prober import is_satisfied  # noqa: F401
from gpuboot.core.services.prereq.detection.toolkit_scan import (  # noqa: F401
    scan_toolkits,
    toolkit_at_least,
    toolkit_exact,
)

# ── L4: Execution ──
from gpuboot.core.services.prereq.execution.environment import (  # noqa: F401
    ProcessEnvironmentSnapshot,
    default_store,
)
from gpuboot.core.services.prereq.execution.installers import install  # noqa: F401
from gpuboot.core.services.prereq.execution.msvc_env import (  # noqa: F401
    import_msvc_environment,
)
from gpuboot.core.services.prereq.execution.privileges import ensure_elevated  # noqa: F401
from gpuboot.core.services.prereq.execution.tool_management import (  # noqa: F401
    remove_requirement,
)

# ── L5: Orchestration ──
from gpuboot.core.services.prereq.orchestration.requirement_set import (  # noqa: F401
    build_requirements,
)
from gpuboot.core.services.prereq.orchestration.resolver import (  # noqa: F401
    ResolutionReport,
    resolve_requirements,
)
from gpuboot.core.services.prereq.orchestration.toolkit_select import (  # noqa: F401
    choose_toolkit,
    select_for_build,
)
