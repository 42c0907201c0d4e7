"""
Inter-call pacing for rate-limited providers.

Items are processed sequentially; a pacer sits between successive calls.
Tests inject a no-op ``sleep`` so a full cascade runs without wall-clock delay.
"""

import time
from typing import Callable, Optional


class CallPacer:
    """Fixed delay between successive calls to an external provider."""

    def __init__(self, delay_ms: int, sleep: Optional[Callable[[float], None]] = None):
        self.delay_ms = max(0, delay_ms)
        self._sleep = sleep or time.sleep
        self.waits = 0

    def wait(self):
        """Block for the configured delay"""
        self.waits += 1
        if self.delay_ms > 0:
            self._sleep(self.delay_ms / 1000)

    def between(self, index: int, total: int):
        """Wait unless ``index`` is the last of ``total`` items"""
        if index < total - 1:
            self.wait()
