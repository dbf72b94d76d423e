from __future__ import annotations
from typing import Protocol, runtime_checkable
from .models import Measurements


@runtime_checkable
class BusTransport(Protocol):
    """Raw byte transactions on an I2C-style bus. Raises OSError on NACK/timeout."""

    def write(self, address: int, data: bytes) -> None:
        ...

    def read(self, address: int, length: int) -> bytes:
        ...

    def write_read(self, address: int, data: bytes, length: int) -> bytes:
        ...

    def close(self) -> None:
        ...


@runtime_checkable
class TelemetrySink(Protocol):
    def submit(self, snapshot: Measurements) -> bool:
        ...
