"""
Shared wall-clock budget for one send or read invocation.
"""

import time
from typing import Callable


class Deadline:
    def __init__(self, timeout: float, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self.timeout = timeout
        self._expires_at = clock() + timeout

    def remaining(self) -> float:
        return max(0.0, self._expires_at - self._clock())

    def __repr__(self) -> str:
        return f"Deadline(timeout={self.timeout}, remaining={self.remaining():.3f})"
