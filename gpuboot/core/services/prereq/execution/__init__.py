"""
L4 Execution — everything that runs a process or writes state.
"""

from gpuboot.core.services.prereq.execution.environment import (  # noqa: F401
    EnvironmentStore,
    EtcEnvironmentStore,
    MemoryEnvironmentStore,
    ProcessEnvironmentSnapshot,
    WindowsRegistryStore,
    default_store,
)
from gpuboot.core.services.prereq.execution.installers import (  # noqa: F401
    INSTALLERS,
    install,
)
from gpuboot.core.services.prereq.execution.polling import wait_until  # noqa: F401
from gpuboot.core.services.prereq.execution.privileges import (  # noqa: F401
    ensure_elevated,
    is_elevated,
)
from gpuboot.core.services.prereq.execution.subprocess_runner import (  # noqa: F401
    CommandResult,
    run_command,
)
