from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from ..core.timing import Delay
from ..drivers.bus_arbiter import BusHandle

T = TypeVar("T")


class SensorError(RuntimeError):
    """Device answered, but not the way the protocol says it should."""


class Sensor(ABC, Generic[T]):
    """Driver for one device on the shared bus.

    `initialize()` must succeed before `read()` is called. Both raise
    BusError or SensorError on failure.
    """

    DEFAULT_ADDRESS: int

    def __init__(self, bus: BusHandle, delay: Delay, address: int | None = None) -> None:
        self._bus = bus
        self._delay = delay
        self._address = self.DEFAULT_ADDRESS if address is None else address

    @property
    @abstractmethod
    def sensor_id(self) -> str:
        ...

    @abstractmethod
    def initialize(self) -> None:
        ...

    @abstractmethod
    def read(self) -> T:
        ...


# --- Sensirion word framing (SHTC3, SGP30) ---

def crc8(data: bytes) -> int:
    """CRC-8 with polynomial 0x31 (x^8 + x^5 + x^4 + 1), init 0xFF."""
    crc = 0xFF
    for byte in data:
        crc ^= byte
        for _ in range(8):
            if crc & 0x80:
                crc = (crc << 1) ^ 0x31
            else:
                crc = crc << 1
            crc &= 0xFF
    return crc


def pack_words(*words: int) -> bytes:
    out = bytearray()
    for w in words:
        hi_lo = bytes([(w >> 8) & 0xFF, w & 0xFF])
        out += hi_lo
        out.append(crc8(hi_lo))
    return bytes(out)


def unpack_words(data: bytes, sensor_id: str) -> list[int]:
    if len(data) % 3:
        raise SensorError(f"{sensor_id}: short read ({len(data)} bytes)")
    words = []
    for i in range(0, len(data), 3):
        chunk = data[i:i + 2]
        if crc8(chunk) != data[i + 2]:
            raise SensorError(f"{sensor_id}: CRC error in word {i // 3}")
        words.append((chunk[0] << 8) | chunk[1])
    return words
