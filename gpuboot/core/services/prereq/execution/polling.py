"""
L4 Execution — Bounded polling.

The only suspension point in a run: block until a predicate holds or
a deadline passes.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from gpuboot.core.errors import InstallVerificationTimeout

logger = logging.getLogger(__name__)


def wait_until(
    predicate: Callable[[], bool],
    *,
    timeout: float,
    interval: float,
    what: str,
    on_retry: Callable[[], None] | None = None,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Poll ``predicate`` until it returns True.

    The predicate is always evaluated at least once, even with a zero
    timeout.

    Args:
        predicate: Niladic test.
        timeout: Seconds before giving up.
        interval: Seconds between attempts.
        what: Requirement name, used in the error.
        on_retry: Called before each re-test (e.g. a snapshot refresh).

    Raises:
        InstallVerificationTimeout: If the deadline passes first.
    """
    deadline = clock() + timeout
    attempt = 1
    while True:
        if predicate():
            if attempt > 1:
                logger.debug("%s satisfied after %d attempts", what, attempt)
            return
        if clock() >= deadline:
            raise InstallVerificationTimeout(what, timeout)
        sleep(interval)
        attempt += 1
        if on_retry is not None:
            on_retry()
