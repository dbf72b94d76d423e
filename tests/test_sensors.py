import pytest

from envnode.drivers.bus_arbiter import BusArbiter, BusError
from envnode.drivers.bus_sim import SimDevice, SimSGP30, SimSHTC3, SimulatedBus
from envnode.sensors.base import SensorError, crc8, pack_words, unpack_words
from envnode.sensors.sgp30 import SGP30
from envnode.sensors.shtc3 import CMD_SLEEP, SHTC3
from envnode.sensors.tsl2591 import TSL2591, compute_lux

from conftest import fixed


def test_crc8_matches_sensirion_reference():
    # Datasheet example: 0xBEEF -> 0x92
    assert crc8(b"\xbe\xef") == 0x92
    assert unpack_words(pack_words(0xBEEF, 0x0001), "x") == [0xBEEF, 0x0001]


def test_unpack_rejects_bad_crc_and_short_reads():
    data = bytearray(pack_words(0x1234))
    data[2] ^= 0xFF
    with pytest.raises(SensorError, match="CRC"):
        unpack_words(bytes(data), "shtc3")
    with pytest.raises(SensorError, match="short"):
        unpack_words(b"\x12\x34", "shtc3")


def test_shtc3_reads_temperature_and_humidity(arbiter, delay):
    s = SHTC3(arbiter.handle("shtc3"), delay)
    s.initialize()
    r = s.read()
    assert r.temperature == pytest.approx(21.5, abs=0.01)
    assert r.humidity == pytest.approx(45.0, abs=0.01)
    # measurement wait follows the wake-up
    assert 12_100 in delay.calls


def test_shtc3_rejects_unknown_device_id(delay):
    class OtherChip(SimSHTC3):
        def on_write(self, data):
            super().on_write(data)
            if (data[0] << 8 | data[1]) == 0xEFC8:
                self._pending = pack_words(0x1234)

    s = SHTC3(BusArbiter(SimulatedBus(OtherChip())).handle("shtc3"), delay)
    with pytest.raises(SensorError, match="device id"):
        s.initialize()


def test_shtc3_missing_device_raises_bus_error(delay):
    s = SHTC3(BusArbiter(SimulatedBus()).handle("shtc3"), delay)
    with pytest.raises(BusError):
        s.initialize()


def test_tsl2591_waits_startup_plus_integration(arbiter, delay):
    s = TSL2591(arbiter.handle("tsl2591"), delay, gain="medium", integration_ms=200)
    s.initialize()
    assert delay.calls[-1] == (5 + 200) * 1000
    assert s.read() == pytest.approx(123.4, abs=0.5)


def test_tsl2591_rejects_bad_configuration(arbiter, delay):
    with pytest.raises(ValueError):
        TSL2591(arbiter.handle("tsl2591"), delay, gain="huge")
    with pytest.raises(ValueError):
        TSL2591(arbiter.handle("tsl2591"), delay, integration_ms=150)


def test_compute_lux():
    assert compute_lux(0, 0, 100, 25.0) == 0.0
    # ch1 == 0 -> lux is ch0 / counts-per-lux
    assert compute_lux(408, 0, 100, 1.0) == pytest.approx(1664.64)
    with pytest.raises(SensorError, match="saturated"):
        compute_lux(0xFFFF, 10, 100, 1.0)


def test_sgp30_serial_and_warmup_values(delay):
    dev = SimSGP30(co2eq=fixed(450), tvoc=fixed(12), warmup=15)
    s = SGP30(BusArbiter(SimulatedBus(dev)).handle("sgp30"), delay)
    s.initialize()
    assert s.serial == dev.serial
    assert dev.initialized

    early = [s.read() for _ in range(15)]
    assert {(r.co2eq, r.tvoc) for r in early} == {(400, 0)}
    r = s.read()
    assert (r.co2eq, r.tvoc) == (450, 12)
    assert dev.measurements == 16


def test_shtc3_goes_back_to_sleep_after_a_failed_read(delay):
    class CorruptChip(SimSHTC3):
        def __init__(self):
            super().__init__(temperature=fixed(20.0), humidity=fixed(40.0))
            self.commands: list[int] = []

        def on_write(self, data):
            self.commands.append(data[0] << 8 | data[1])
            super().on_write(data)

        def on_read(self, length):
            data = bytearray(super().on_read(length))
            if length == 6:
                data[2] ^= 0xFF
            return bytes(data)

    dev = CorruptChip()
    s = SHTC3(BusArbiter(SimulatedBus(dev)).handle("shtc3"), delay)
    s.initialize()

    with pytest.raises(SensorError, match="CRC"):
        s.read()
    assert dev.commands[-1] == CMD_SLEEP


def test_sim_device_requires_a_command_handler():
    with pytest.raises(TypeError):
        SimDevice()
