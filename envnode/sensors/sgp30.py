"""SGP30 I2C gas sensor driver (CO2-equivalent and TVOC)."""

from __future__ import annotations

import logging

from .base import Sensor, unpack_words
from ..domain.models import GasReading

logger = logging.getLogger(__name__)

SGP30_ADDRESS = 0x58

# Commands
CMD_GET_SERIAL_ID = 0x3682
CMD_IAQ_INIT = 0x2003
CMD_MEASURE_IAQ = 0x2008

SERIAL_US = 1_000
IAQ_INIT_US = 10_000
MEASURE_IAQ_US = 12_000


def _cmd(word: int) -> bytes:
    return bytes([(word >> 8) & 0xFF, word & 0xFF])


class SGP30(Sensor[GasReading]):
    """
    The on-chip baseline algorithm starts at `initialize()` and expects
    `read()` once per second from then on. Late or skipped calls do not fail,
    they only make the baseline drift. The first ~15 s return 400 ppm / 0 ppb.
    """

    DEFAULT_ADDRESS = SGP30_ADDRESS

    def __init__(self, bus, delay, address: int | None = None):
        super().__init__(bus, delay, address)
        self.serial: int | None = None

    @property
    def sensor_id(self) -> str:
        return "sgp30"

    def initialize(self) -> None:
        self._bus.write(self._address, _cmd(CMD_GET_SERIAL_ID))
        self._delay.delay_us(SERIAL_US)
        w0, w1, w2 = unpack_words(self._bus.read(self._address, 9), self.sensor_id)
        self.serial = (w0 << 32) | (w1 << 16) | w2

        self._bus.write(self._address, _cmd(CMD_IAQ_INIT))
        self._delay.delay_us(IAQ_INIT_US)
        logger.info("SGP30 found at 0x%02x (serial=0x%012x)", self._address, self.serial)

    def read(self) -> GasReading:
        self._bus.write(self._address, _cmd(CMD_MEASURE_IAQ))
        self._delay.delay_us(MEASURE_IAQ_US)
        co2eq, tvoc = unpack_words(self._bus.read(self._address, 6), self.sensor_id)
        return GasReading(co2eq=co2eq, tvoc=tvoc)
