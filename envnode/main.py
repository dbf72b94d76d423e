#!/usr/bin/env python3
"""
Environmental sensor node.

Reads SHTC3 (temperature/humidity), TSL2591 (illuminance) and SGP30
(CO2eq/TVOC) over one I2C bus and uploads them to InfluxDB.

Usage:
    envnode                          # settings from env / .env
    envnode --sim                    # no hardware, simulated bus
    envnode --interval 30 --cycles 5 -v
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from typing import Optional

from .core.config import Settings, settings
from .core.log import configure_logging
from .core.timing import Delay
from .domain.interfaces import BusTransport
from .domain.registry import build_registry
from .domain.state import SharedState
from .drivers.bus_arbiter import BusArbiter, BusError
from .drivers.bus_sim import default_sim_bus
from .services.schedules import GasFeedTask, TelemetryLoop
from .services.telemetry import InfluxWriter


logger = logging.getLogger(__name__)


def open_bus(cfg: Settings) -> BusTransport:
    if cfg.sensor_mode.lower() == "sim":
        logger.info("Using simulated I2C bus")
        return default_sim_bus()

    from .drivers.i2c_smbus import SMBusConfig, SMBusTransport
    return SMBusTransport(SMBusConfig(bus=cfg.i2c_bus))


@dataclass
class Node:
    arbiter: BusArbiter
    state: SharedState
    writer: InfluxWriter
    gas_task: GasFeedTask
    loop: TelemetryLoop

    def close(self) -> None:
        self.gas_task.stop(timeout=5.0)
        self.writer.close()
        self.arbiter.close()


def build_node(
    cfg: Settings,
    transport: Optional[BusTransport] = None,
    writer: Optional[InfluxWriter] = None,
    delay: Optional[Delay] = None,
) -> Node:
    """Bring-up. Bus and HTTP client failures propagate; missing sensors do not."""
    delay = delay or Delay()
    arbiter = BusArbiter(transport or open_bus(cfg))

    registry = build_registry(
        arbiter,
        delay,
        tsl2591_gain=cfg.tsl2591_gain,
        tsl2591_integration_ms=cfg.tsl2591_integration_ms,
    )
    state = SharedState(registry, gas_warmup_ticks=cfg.gas_warmup_ticks)

    writer = writer or InfluxWriter(
        base_url=cfg.influx_url,
        org=cfg.influx_org,
        bucket=cfg.influx_bucket,
        token=cfg.influx_token,
        node_name=cfg.node_name,
        version=cfg.firmware_version,
        auth_scheme=cfg.influx_auth_scheme,
        timeout=cfg.http_timeout_s,
    )

    return Node(
        arbiter=arbiter,
        state=state,
        writer=writer,
        gas_task=GasFeedTask(state, delay, period_s=cfg.gas_feed_interval_s),
        loop=TelemetryLoop(state, writer, delay, period_s=cfg.report_interval_s),
    )


def run(cfg: Settings, cycles: Optional[int] = None) -> None:
    log = logging.getLogger("envnode")
    log.info("Starting %s v%s (mode=%s)", cfg.node_name, cfg.firmware_version, cfg.sensor_mode)
    log.info("  Backend:  %s org=%s bucket=%s", cfg.influx_url, cfg.influx_org, cfg.influx_bucket)
    log.info("  Report:   every %.1fs, gas feed every %.3fs (warm-up %d ticks)",
             cfg.report_interval_s, cfg.gas_feed_interval_s, cfg.gas_warmup_ticks)

    node = build_node(cfg)
    try:
        node.gas_task.start()
        node.loop.run(cycles=cycles)
    except KeyboardInterrupt:
        log.info("Shutting down")
    finally:
        node.close()


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def main(argv: Optional[list[str]] = None) -> int:
    p = argparse.ArgumentParser(description="Environmental sensor node")

    p.add_argument("--sim", action="store_true", help="Use the simulated I2C bus")
    p.add_argument("--i2c-bus", type=int, default=None, help="I2C adapter number (default from settings)")
    p.add_argument("--node-name", default=None, help="Node name tag")
    p.add_argument("--interval", type=float, default=None, help="Seconds between reports")
    p.add_argument("--cycles", type=int, default=None, help="Stop after this many reports")
    p.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    args = p.parse_args(argv)

    overrides = {}
    if args.sim:
        overrides["sensor_mode"] = "sim"
    if args.i2c_bus is not None:
        overrides["i2c_bus"] = args.i2c_bus
    if args.node_name:
        overrides["node_name"] = args.node_name
    if args.interval is not None:
        overrides["report_interval_s"] = args.interval
    cfg = settings.model_copy(update=overrides)

    configure_logging("DEBUG" if args.verbose else None)

    try:
        run(cfg, cycles=args.cycles)
    except BusError as e:
        logger.critical("Start-up failed: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
