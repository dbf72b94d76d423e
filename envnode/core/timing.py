from __future__ import annotations

import math
import time
from typing import Callable

# Below this, sleeping is too coarse for sensor protocol timing.
BUSY_WAIT_THRESHOLD_US = 10_000


class Delay:
    """Blocking waits used by sensor drivers and the schedules.

    Waits shorter than 10 ms spin on a high resolution clock without giving
    up the CPU. Longer waits sleep so other threads can run, then spin out
    whatever the sleep fell short of. A wait always runs to completion.
    """

    def __init__(
        self,
        clock_ns: Callable[[], int] = time.perf_counter_ns,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._clock_ns = clock_ns
        self._sleep = sleep

    def delay_us(self, us: int) -> None:
        if us <= 0:
            return
        if us < BUSY_WAIT_THRESHOLD_US:
            self._busy_wait(us)
        else:
            self._yield_wait(us)

    def delay_ms(self, ms: float) -> None:
        self.delay_us(math.ceil(ms * 1000))

    def wait(self, seconds: float) -> None:
        self.delay_us(math.ceil(seconds * 1_000_000))

    def _busy_wait(self, us: int) -> None:
        deadline = self._clock_ns() + us * 1000
        while self._clock_ns() < deadline:
            pass

    def _yield_wait(self, us: int) -> None:
        deadline = self._clock_ns() + us * 1000
        self._sleep(us / 1_000_000)
        # time.sleep may return a hair early on some platforms
        while self._clock_ns() < deadline:
            pass
