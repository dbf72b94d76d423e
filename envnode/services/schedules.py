from __future__ import annotations
import logging
import threading
import time
from typing import Callable, Optional

from ..core.timing import Delay
from ..domain.interfaces import TelemetrySink
from ..domain.state import SharedState


logger = logging.getLogger(__name__)


class GasFeedTask:
    """
    Fast schedule: feeds the gas sensor once per period against absolute
    deadlines. Sensor access happens under the shared lock; pacing never does.
    """

    def __init__(
        self,
        state: SharedState,
        delay: Delay,
        period_s: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._state = state
        self._delay = delay
        self._period = period_s
        self._clock = clock

        self._thread: Optional[threading.Thread] = None
        self._stop = threading.Event()

    def start(self) -> None:
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="gas_feed", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread:
            self._thread.join(timeout)
            self._thread = None

    def run_once(self) -> None:
        try:
            reading = self._state.feed_gas()
            if reading is not None:
                logger.debug("Gas feed: co2eq=%d ppm tvoc=%d ppb", reading.co2eq, reading.tvoc)
        except Exception as e:
            logger.exception("Gas feed cycle error: %s", e)

    def _run(self) -> None:
        logger.info("Gas feed loop started (period=%.3fs)", self._period)
        deadline = self._clock()
        while not self._stop.is_set():
            self.run_once()

            deadline += self._period
            remaining = deadline - self._clock()
            if remaining > 0:
                self._delay.wait(remaining)
            else:
                # Overran a whole period: resync rather than burst to catch up
                logger.warning("Gas feed overran its period by %.3fs", -remaining)
                deadline = self._clock()

        logger.info("Gas feed loop stopped")


class TelemetryLoop:
    """
    Slow schedule: reads the other sensors, takes the composite snapshot,
    then submits it with the shared lock released.
    """

    def __init__(
        self,
        state: SharedState,
        sink: TelemetrySink,
        delay: Delay,
        period_s: float = 60.0,
    ) -> None:
        self._state = state
        self._sink = sink
        self._delay = delay
        self._period = period_s
        self._stop = threading.Event()

        self.cycles = 0
        self.last_ok: Optional[bool] = None

    def stop(self) -> None:
        self._stop.set()

    def run_once(self) -> None:
        try:
            snapshot = self._state.collect()
            logger.info("Snapshot: %s", snapshot)

            # Lock released: a slow upload must not stall the 1 Hz gas feed
            self.last_ok = self._sink.submit(snapshot)
        except Exception as e:
            self.last_ok = False
            logger.exception("Telemetry loop error: %s", e)
        self.cycles += 1

    def run(self, cycles: Optional[int] = None) -> None:
        logger.info("Telemetry loop started (period=%.1fs)", self._period)
        while not self._stop.is_set():
            self.run_once()
            if cycles is not None and self.cycles >= cycles:
                break
            self._delay.wait(self._period)
        logger.info("Telemetry loop stopped")
