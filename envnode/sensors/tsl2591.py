"""TSL2591 I2C ambient light sensor driver."""

from __future__ import annotations

import logging

from .base import Sensor, SensorError

logger = logging.getLogger(__name__)

TSL2591_ADDRESS = 0x29

_COMMAND = 0xA0  # command bit + normal operation

# Registers
REG_ENABLE = 0x00
REG_CONTROL = 0x01
REG_ID = 0x12
REG_C0DATAL = 0x14

DEVICE_ID = 0x50

ENABLE_PON = 0x01
ENABLE_AEN = 0x02

# name -> (CONTROL bits, multiplier)
GAINS = {
    "low": (0x00, 1.0),
    "medium": (0x10, 25.0),
    "high": (0x20, 428.0),
    "max": (0x30, 9876.0),
}

# integration ms -> CONTROL bits
INTEGRATION_TIMES = {100: 0x00, 200: 0x01, 300: 0x02, 400: 0x03, 500: 0x04, 600: 0x05}

LUX_DF = 408.0
STARTUP_MS = 5
SATURATED = 0xFFFF


def compute_lux(ch0: int, ch1: int, integration_ms: int, gain: float) -> float:
    if ch0 == SATURATED or ch1 == SATURATED:
        raise SensorError("tsl2591: channel saturated, lower the gain")
    if ch0 == 0:
        return 0.0
    cpl = (integration_ms * gain) / LUX_DF
    return (ch0 - ch1) * (1.0 - ch1 / ch0) / cpl


class TSL2591(Sensor[float]):
    DEFAULT_ADDRESS = TSL2591_ADDRESS

    def __init__(self, bus, delay, address: int | None = None, gain: str = "medium", integration_ms: int = 100):
        super().__init__(bus, delay, address)
        if gain not in GAINS:
            raise ValueError(f"Unsupported TSL2591 gain: {gain}")
        if integration_ms not in INTEGRATION_TIMES:
            raise ValueError(f"Unsupported TSL2591 integration time: {integration_ms} ms")
        self._gain = gain
        self._integration_ms = integration_ms

    @property
    def sensor_id(self) -> str:
        return "tsl2591"

    def _write_reg(self, reg: int, value: int) -> None:
        self._bus.write(self._address, bytes([_COMMAND | reg, value]))

    def _read_regs(self, reg: int, count: int) -> bytes:
        return self._bus.write_read(self._address, bytes([_COMMAND | reg]), count)

    def initialize(self) -> None:
        dev_id = self._read_regs(REG_ID, 1)[0]
        if dev_id != DEVICE_ID:
            raise SensorError(f"tsl2591: unexpected device id 0x{dev_id:02x}")

        gain_bits, _ = GAINS[self._gain]
        self._write_reg(REG_CONTROL, gain_bits | INTEGRATION_TIMES[self._integration_ms])
        self._write_reg(REG_ENABLE, ENABLE_PON | ENABLE_AEN)

        # Nothing meaningful until the first integration cycle has completed
        self._delay.delay_ms(STARTUP_MS + self._integration_ms)
        logger.info(
            "TSL2591 found at 0x%02x (gain=%s integration=%dms)",
            self._address, self._gain, self._integration_ms,
        )

    def read(self) -> float:
        raw = self._read_regs(REG_C0DATAL, 4)
        if len(raw) != 4:
            raise SensorError(f"tsl2591: short read ({len(raw)} bytes)")
        ch0 = raw[0] | (raw[1] << 8)
        ch1 = raw[2] | (raw[3] << 8)
        _, multiplier = GAINS[self._gain]
        return compute_lux(ch0, ch1, self._integration_ms, multiplier)
