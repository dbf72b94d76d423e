from __future__ import annotations
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from threading import Lock, get_ident
from typing import Iterator, Optional

from .models import GasReading, Measurements
from .registry import SensorRegistry

logger = logging.getLogger(__name__)

TICK_MAX = 2**32 - 1


@dataclass
class CalibrationCounter:
    """Fast-schedule periods since start-up. Saturates instead of wrapping."""

    ticks: int = 0

    def tick(self) -> int:
        if self.ticks < TICK_MAX:
            self.ticks += 1
        return self.ticks


@dataclass
class Shared:
    registry: SensorRegistry
    snapshot: Measurements = field(default_factory=Measurements)
    calibration: CalibrationCounter = field(default_factory=CalibrationCounter)


class SharedState:
    """
    Registry and measurement snapshot behind one lock.
    They are only reachable through `locked()`, so neither schedule can ever
    see one without the other.
    """

    def __init__(self, registry: SensorRegistry, gas_warmup_ticks: int = 32) -> None:
        self._lock = Lock()
        self._owner: Optional[int] = None
        self._shared = Shared(registry=registry)
        self.gas_warmup_ticks = gas_warmup_ticks

    @property
    def is_locked(self) -> bool:
        return self._lock.locked()

    @property
    def held_by_current_thread(self) -> bool:
        return self._owner == get_ident()

    @contextmanager
    def locked(self) -> Iterator[Shared]:
        with self._lock:
            self._owner = get_ident()
            try:
                yield self._shared
            finally:
                self._owner = None

    def feed_gas(self) -> Optional[GasReading]:
        """
        One fast-schedule tick: advance the calibration counter, feed the gas
        sensor, and keep the reading only once the warm-up window has passed.
        Returns the accepted reading, or None.
        """
        with self.locked() as s:
            tick = s.calibration.tick()
            if s.registry.gas is None:
                return None
            reading = s.registry.gas.read()
            if tick < self.gas_warmup_ticks:
                logger.debug("Gas warm-up tick %d/%d: discarding %s", tick, self.gas_warmup_ticks, reading)
                return None
            s.snapshot.set_gas(reading)
            return reading

    def collect(self) -> Measurements:
        """
        Slow-schedule step: read the non-gas sensors into the snapshot, hand
        back the composite and reset the snapshot to all-absent.
        """
        with self.locked() as s:
            s.registry.read_into(s.snapshot)
            out = s.snapshot.copy()
            s.snapshot.clear()
            return out
