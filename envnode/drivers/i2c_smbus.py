from __future__ import annotations

import logging
from dataclasses import dataclass

from smbus2 import SMBus, i2c_msg

from .bus_arbiter import BusError

logger = logging.getLogger(__name__)


@dataclass
class SMBusConfig:
    bus: int = 1        # /dev/i2c-1 on a Raspberry Pi


class SMBusTransport:
    """
    Linux i2c-dev transport.
    Responsible for: opening the adapter, raw write / read / combined transfers.
    """

    def __init__(self, cfg: SMBusConfig):
        self.cfg = cfg
        try:
            self._bus = SMBus(cfg.bus)
        except OSError as e:
            raise BusError(f"Unable to open I2C bus /dev/i2c-{cfg.bus}: {e}") from e
        logger.info("I2C bus opened on /dev/i2c-%d", cfg.bus)

    def close(self) -> None:
        self._bus.close()

    def write(self, address: int, data: bytes) -> None:
        self._bus.i2c_rdwr(i2c_msg.write(address, list(data)))

    def read(self, address: int, length: int) -> bytes:
        msg = i2c_msg.read(address, length)
        self._bus.i2c_rdwr(msg)
        return bytes(list(msg))

    def write_read(self, address: int, data: bytes, length: int) -> bytes:
        """
        Write then read with a repeated start, as one transfer.
        """
        w = i2c_msg.write(address, list(data))
        r = i2c_msg.read(address, length)
        self._bus.i2c_rdwr(w, r)
        return bytes(list(r))
