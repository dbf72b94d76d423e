from __future__ import annotations
import errno
import math
import random
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional

from ..sensors.base import pack_words
from ..sensors import shtc3, sgp30, tsl2591


@dataclass
class PatternConfig:
    baseline: float
    amplitude: float = 0.0
    period_s: float = 600.0
    noise: float = 0.0

    def value(self, t: float) -> float:
        v = self.baseline + self.amplitude * math.sin(2 * math.pi * t / max(self.period_s, 1.0))
        if self.noise > 0:
            v += random.uniform(-self.noise, self.noise)
        return v


def _nack(address: int) -> OSError:
    return OSError(errno.EREMOTEIO, f"No ACK from 0x{address:02x}")


class SimDevice(ABC):
    """One emulated bus device. `fail` makes every transaction NACK."""

    address: int

    def __init__(self) -> None:
        self.fail = False
        self._pending = b""
        self._t0 = time.monotonic()

    def elapsed(self) -> float:
        return time.monotonic() - self._t0

    @abstractmethod
    def on_write(self, data: bytes) -> None:
        ...

    def on_read(self, length: int) -> bytes:
        out, self._pending = self._pending[:length], b""
        return out


class SimSHTC3(SimDevice):
    address = shtc3.SHTC3_ADDRESS

    def __init__(self, temperature: Optional[PatternConfig] = None, humidity: Optional[PatternConfig] = None) -> None:
        super().__init__()
        self.temperature = temperature or PatternConfig(baseline=21.5, amplitude=1.5, noise=0.05)
        self.humidity = humidity or PatternConfig(baseline=45.0, amplitude=5.0, noise=0.2)

    def on_write(self, data: bytes) -> None:
        cmd = (data[0] << 8) | data[1]
        if cmd == shtc3.CMD_READ_ID:
            self._pending = pack_words(0x0887)
        elif cmd == shtc3.CMD_MEASURE_NORMAL_T_FIRST:
            t = self.elapsed()
            raw_t = int((self.temperature.value(t) + 45.0) * 65536.0 / 175.0)
            raw_rh = int(self.humidity.value(t) * 65536.0 / 100.0)
            self._pending = pack_words(max(0, min(raw_t, 0xFFFF)), max(0, min(raw_rh, 0xFFFF)))


class SimTSL2591(SimDevice):
    address = tsl2591.TSL2591_ADDRESS

    def __init__(self, lux: Optional[PatternConfig] = None) -> None:
        super().__init__()
        self.lux = lux or PatternConfig(baseline=350.0, amplitude=150.0, noise=5.0)
        self._regs: Dict[int, int] = {tsl2591.REG_ID: tsl2591.DEVICE_ID}
        self._reg = 0

    def _channels(self) -> bytes:
        control = self._regs.get(tsl2591.REG_CONTROL, 0)
        gain = next(m for bits, m in tsl2591.GAINS.values() if bits == control & 0x30)
        integration_ms = 100 * ((control & 0x07) + 1)
        cpl = integration_ms * gain / tsl2591.LUX_DF
        # ch1 = 0 keeps the lux formula linear in ch0
        ch0 = min(int(max(0.0, self.lux.value(self.elapsed())) * cpl), 0xFFFF)
        return bytes([ch0 & 0xFF, ch0 >> 8, 0, 0])

    def on_write(self, data: bytes) -> None:
        self._reg = data[0] & 0x1F
        if len(data) > 1:
            self._regs[self._reg] = data[1]
            return
        if self._reg == tsl2591.REG_C0DATAL:
            self._pending = self._channels()
        else:
            self._pending = bytes([self._regs.get(self._reg, 0)])


class SimSGP30(SimDevice):
    address = sgp30.SGP30_ADDRESS

    def __init__(self, co2eq: Optional[PatternConfig] = None, tvoc: Optional[PatternConfig] = None, warmup: int = 15) -> None:
        super().__init__()
        self.co2eq = co2eq or PatternConfig(baseline=600.0, amplitude=150.0, noise=10.0)
        self.tvoc = tvoc or PatternConfig(baseline=40.0, amplitude=20.0, noise=3.0)
        self.serial = 0x0000_0123_4567
        self.warmup = warmup
        self.measurements = 0
        self.initialized = False

    def on_write(self, data: bytes) -> None:
        cmd = (data[0] << 8) | data[1]
        if cmd == sgp30.CMD_GET_SERIAL_ID:
            self._pending = pack_words(self.serial >> 32, (self.serial >> 16) & 0xFFFF, self.serial & 0xFFFF)
        elif cmd == sgp30.CMD_IAQ_INIT:
            self.initialized = True
            self.measurements = 0
        elif cmd == sgp30.CMD_MEASURE_IAQ:
            self.measurements += 1
            if not self.initialized or self.measurements <= self.warmup:
                self._pending = pack_words(400, 0)
            else:
                t = self.elapsed()
                self._pending = pack_words(
                    max(400, min(int(self.co2eq.value(t)), 60000)),
                    max(0, min(int(self.tvoc.value(t)), 60000)),
                )


class SimulatedBus:
    """In-process bus transport with emulated devices attached."""

    def __init__(self, *devices: SimDevice) -> None:
        self.devices: Dict[int, SimDevice] = {d.address: d for d in devices}
        self.transactions = 0

    def _device(self, address: int) -> SimDevice:
        self.transactions += 1
        dev = self.devices.get(address)
        if dev is None or dev.fail:
            raise _nack(address)
        return dev

    def write(self, address: int, data: bytes) -> None:
        self._device(address).on_write(bytes(data))

    def read(self, address: int, length: int) -> bytes:
        return self._device(address).on_read(length)

    def write_read(self, address: int, data: bytes, length: int) -> bytes:
        dev = self._device(address)
        dev.on_write(bytes(data))
        return dev.on_read(length)

    def close(self) -> None:
        pass


def default_sim_bus() -> SimulatedBus:
    return SimulatedBus(SimSHTC3(), SimTSL2591(), SimSGP30())
