"""SHTC3 I2C temperature & humidity sensor driver."""

from __future__ import annotations

import logging

from .base import Sensor, SensorError, unpack_words
from ..domain.models import ClimateReading

logger = logging.getLogger(__name__)

SHTC3_ADDRESS = 0x70

# Commands
CMD_WAKEUP = 0x3517
CMD_SLEEP = 0xB098
CMD_READ_ID = 0xEFC8
CMD_MEASURE_NORMAL_T_FIRST = 0x7866  # no clock stretching

ID_MASK = 0x083F
ID_VALUE = 0x0807

WAKEUP_US = 240
MEASURE_US = 12_100  # max measurement time, normal mode


def _cmd(word: int) -> bytes:
    return bytes([(word >> 8) & 0xFF, word & 0xFF])


class SHTC3(Sensor[ClimateReading]):
    DEFAULT_ADDRESS = SHTC3_ADDRESS

    @property
    def sensor_id(self) -> str:
        return "shtc3"

    def _wakeup(self) -> None:
        self._bus.write(self._address, _cmd(CMD_WAKEUP))
        self._delay.delay_us(WAKEUP_US)

    def _sleep(self) -> None:
        self._bus.write(self._address, _cmd(CMD_SLEEP))

    def initialize(self) -> None:
        self._wakeup()
        (ident,) = unpack_words(self._bus.write_read(self._address, _cmd(CMD_READ_ID), 3), self.sensor_id)
        if ident & ID_MASK != ID_VALUE:
            raise SensorError(f"shtc3: unexpected device id 0x{ident:04x}")
        logger.info("SHTC3 found at 0x%02x (id=0x%04x)", self._address, ident)
        self._sleep()

    def read(self) -> ClimateReading:
        self._wakeup()
        try:
            self._bus.write(self._address, _cmd(CMD_MEASURE_NORMAL_T_FIRST))
            self._delay.delay_us(MEASURE_US)
            raw_t, raw_rh = unpack_words(self._bus.read(self._address, 6), self.sensor_id)
        finally:
            self._sleep()

        temperature = -45.0 + 175.0 * raw_t / 65536.0
        humidity = 100.0 * raw_rh / 65536.0
        return ClimateReading(temperature=temperature, humidity=humidity)
