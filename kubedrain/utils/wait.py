from __future__ import annotations

import time
from collections.abc import Callable

from ..exceptions import WaitTimeoutError


def poll_immediate(interval: float, timeout: float, condition: Callable[[], bool]) -> None:
    """Run ``condition`` now and then every ``interval`` seconds until it returns True.

    Raises ``WaitTimeoutError`` once ``timeout`` seconds have passed without the
    condition being met. Exceptions raised by the condition propagate as-is and
    end the wait.
    """
    if interval <= 0:
        raise ValueError("interval must be greater than zero")
    if timeout <= 0:
        raise ValueError("timeout must be greater than zero")

    deadline = time.monotonic() + timeout
    while True:
        if condition():
            return
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise WaitTimeoutError()
        time.sleep(min(interval, remaining))
