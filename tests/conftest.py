from __future__ import annotations

from typing import Callable, Optional

import httpx
import pytest

from envnode.core.timing import Delay
from envnode.drivers.bus_arbiter import BusArbiter
from envnode.drivers.bus_sim import PatternConfig, SimSGP30, SimSHTC3, SimTSL2591, SimulatedBus
from envnode.services.telemetry import InfluxWriter


class RecordingDelay(Delay):
    """Delay that records requested waits instead of blocking."""

    def __init__(self, on_wait: Optional[Callable[[int], None]] = None) -> None:
        super().__init__()
        self.calls: list[int] = []
        self._on_wait = on_wait

    def delay_us(self, us: int) -> None:
        self.calls.append(us)
        if self._on_wait is not None:
            self._on_wait(us)


def fixed(value: float) -> PatternConfig:
    return PatternConfig(baseline=value)


@pytest.fixture
def delay() -> RecordingDelay:
    return RecordingDelay()


@pytest.fixture
def shtc3_dev() -> SimSHTC3:
    return SimSHTC3(temperature=fixed(21.5), humidity=fixed(45.0))


@pytest.fixture
def tsl2591_dev() -> SimTSL2591:
    return SimTSL2591(lux=fixed(123.4))


@pytest.fixture
def sgp30_dev() -> SimSGP30:
    return SimSGP30(co2eq=fixed(450), tvoc=fixed(12), warmup=0)


@pytest.fixture
def sim_bus(shtc3_dev, tsl2591_dev, sgp30_dev) -> SimulatedBus:
    return SimulatedBus(shtc3_dev, tsl2591_dev, sgp30_dev)


@pytest.fixture
def arbiter(sim_bus) -> BusArbiter:
    return BusArbiter(sim_bus)


class Backend:
    """Captures write requests made through httpx.MockTransport."""

    def __init__(self, status: int = 204, body: bytes = b"") -> None:
        self.status = status
        self.body = body
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status, content=self.body)

    @property
    def payloads(self) -> list[str]:
        return [r.content.decode("utf-8") for r in self.requests]


@pytest.fixture
def backend() -> Backend:
    return Backend()


def make_writer(handler, node_name: str = "N", version: str = "1.0") -> InfluxWriter:
    return InfluxWriter(
        base_url="http://influx.local:8086/",
        org="home",
        bucket="sensors",
        token="tok",
        node_name=node_name,
        version=version,
        client=httpx.Client(transport=httpx.MockTransport(handler)),
    )


@pytest.fixture
def writer(backend) -> InfluxWriter:
    return make_writer(backend)
