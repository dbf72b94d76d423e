"""
Sensor registry: the fixed set of installed drivers, one optional slot per
sensor class, and the read orchestration over it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

from ..core.timing import Delay
from ..drivers.bus_arbiter import BusArbiter
from ..sensors.base import Sensor
from ..sensors.sgp30 import SGP30
from ..sensors.shtc3 import SHTC3
from ..sensors.tsl2591 import TSL2591
from .models import Measurements

logger = logging.getLogger(__name__)

S = TypeVar("S", bound=Sensor)


@dataclass
class SensorRegistry:
    climate: Optional[SHTC3] = None
    light: Optional[TSL2591] = None
    gas: Optional[SGP30] = None

    def installed(self) -> list[str]:
        return [s.sensor_id for s in (self.climate, self.light, self.gas) if s is not None]

    def read_into(self, snapshot: Measurements) -> list[str]:
        """
        Read every installed non-gas sensor into `snapshot`.
        Failed or missing sensors leave their fields untouched. Never raises;
        returns the ids of the sensors whose read failed.
        """
        failed: list[str] = []

        if self.climate is not None:
            try:
                snapshot.set_climate(self.climate.read())
            except Exception as e:
                logger.warning("Sensor read FAILED (%s): %s", self.climate.sensor_id, e)
                failed.append(self.climate.sensor_id)

        if self.light is not None:
            try:
                snapshot.illuminance = self.light.read()
            except Exception as e:
                logger.warning("Sensor read FAILED (%s): %s", self.light.sensor_id, e)
                failed.append(self.light.sensor_id)

        return failed


def _try_init(name: str, factory: Callable[[], S]) -> Optional[S]:
    try:
        sensor = factory()
        sensor.initialize()
        return sensor
    except Exception as e:
        logger.warning("%s not available, continuing without it: %s", name, e)
        return None


def build_registry(
    arbiter: BusArbiter,
    delay: Delay,
    tsl2591_gain: str = "medium",
    tsl2591_integration_ms: int = 100,
) -> SensorRegistry:
    registry = SensorRegistry(
        climate=_try_init("shtc3", lambda: SHTC3(arbiter.handle("shtc3"), delay)),
        light=_try_init("tsl2591", lambda: TSL2591(
            arbiter.handle("tsl2591"), delay,
            gain=tsl2591_gain, integration_ms=tsl2591_integration_ms,
        )),
        gas=_try_init("sgp30", lambda: SGP30(arbiter.handle("sgp30"), delay)),
    )
    logger.info("Sensors installed: %s", ", ".join(registry.installed()) or "none")
    return registry
