import pytest

from envnode.domain.models import GasReading, Measurements
from envnode.domain.registry import SensorRegistry, build_registry
from envnode.domain.state import TICK_MAX, CalibrationCounter, SharedState
from envnode.drivers.bus_arbiter import BusArbiter
from envnode.drivers.bus_sim import SimulatedBus


def test_counter_saturates():
    c = CalibrationCounter(ticks=TICK_MAX - 1)
    assert c.tick() == TICK_MAX
    assert c.tick() == TICK_MAX


def test_gas_is_fed_every_tick_but_kept_only_after_warmup(arbiter, delay, sgp30_dev):
    state = SharedState(build_registry(arbiter, delay), gas_warmup_ticks=32)

    for _ in range(31):
        assert state.feed_gas() is None
    assert sgp30_dev.measurements == 31
    with state.locked() as s:
        assert s.snapshot.co2eq is None and s.snapshot.tvoc is None

    assert state.feed_gas() == GasReading(co2eq=450, tvoc=12)
    with state.locked() as s:
        assert s.calibration.ticks == 32
        assert (s.snapshot.co2eq, s.snapshot.tvoc) == (450, 12)


def test_ticks_advance_without_a_gas_sensor(delay):
    state = SharedState(build_registry(BusArbiter(SimulatedBus()), delay))
    for _ in range(3):
        assert state.feed_gas() is None
    with state.locked() as s:
        assert s.calibration.ticks == 3


def test_gas_read_failure_propagates_and_releases_lock(arbiter, delay, sgp30_dev):
    state = SharedState(build_registry(arbiter, delay), gas_warmup_ticks=1)
    sgp30_dev.fail = True
    with pytest.raises(Exception):
        state.feed_gas()
    assert not state.is_locked


def test_collect_hands_off_and_resets(arbiter, delay):
    state = SharedState(build_registry(arbiter, delay), gas_warmup_ticks=1)
    state.feed_gas()

    out = state.collect()
    assert out.temperature == pytest.approx(21.5, abs=0.01)
    assert out.illuminance == pytest.approx(123.4, abs=0.5)
    assert out.co2eq == 450

    with state.locked() as s:
        assert s.snapshot.is_empty


def test_gas_values_are_delivered_once(delay, sgp30_dev):
    state = SharedState(build_registry(BusArbiter(SimulatedBus(sgp30_dev)), delay), gas_warmup_ticks=1)
    state.feed_gas()
    state.feed_gas()

    first = state.collect()
    second = state.collect()
    assert first.co2eq == 450
    assert second.is_empty


def test_collect_with_empty_registry_is_empty():
    state = SharedState(SensorRegistry())
    assert state.collect() == Measurements()
