from __future__ import annotations

import logging
from threading import Lock

from ..domain.interfaces import BusTransport

logger = logging.getLogger(__name__)


class BusError(RuntimeError):
    """A bus transaction was not acknowledged or timed out."""


class BusArbiter:
    """
    Owns the one physical bus and hands out proxy handles to sensor drivers.
    Exactly one transaction is in flight at any time, whichever thread issues it.
    """

    def __init__(self, transport: BusTransport):
        self._transport = transport
        self._lock = Lock()

    def handle(self, name: str) -> BusHandle:
        return BusHandle(self, name)

    def close(self) -> None:
        with self._lock:
            self._transport.close()

    def _run(self, name: str, op: str, fn, *args):
        with self._lock:
            try:
                return fn(*args)
            except OSError as e:
                logger.debug("Bus %s failed for %s: %s", op, name, e)
                raise BusError(f"{name}: bus {op} at 0x{args[0]:02x} failed: {e}") from e


class BusHandle:
    """Serialized view of the shared bus, used by one driver."""

    def __init__(self, arbiter: BusArbiter, name: str):
        self._arbiter = arbiter
        self.name = name

    def write(self, address: int, data: bytes) -> None:
        t = self._arbiter._transport
        self._arbiter._run(self.name, "write", t.write, address, bytes(data))

    def read(self, address: int, length: int) -> bytes:
        t = self._arbiter._transport
        return self._arbiter._run(self.name, "read", t.read, address, length)

    def write_read(self, address: int, data: bytes, length: int) -> bytes:
        t = self._arbiter._transport
        return self._arbiter._run(self.name, "write_read", t.write_read, address, bytes(data), length)
