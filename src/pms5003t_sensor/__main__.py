"""
Canonical entry point for pms5003t_sensor package.

Usage:
    pms5003t probe --port /dev/ttyUSB0
    pms5003t read --count 5 --passive
    pms5003t monitor --count 20
    pms5003t --environment testing --test-mode read
"""

import argparse
import logging
import os
import queue
import sys
import time
from typing import Callable, List, Optional

from pms5003t_sensor.config.environments import get_settings
from pms5003t_sensor.poller import SensorPoller
from pms5003t_sensor.sensing.errors import PMSError
from pms5003t_sensor.sensing.pms5003t import PMS5003T, PMS5003TConfig, probe
from pms5003t_sensor.sensor_types import SensorReading
from pms5003t_sensor.utils.mocks import FakePMS5003T

log = logging.getLogger(__name__)

SessionFactory = Callable[[], PMS5003T]


def setup_logging(config) -> None:
    """Set up logging configuration."""
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )
    return None


def make_session_factory(port: str, driver_config: PMS5003TConfig, test_mode: bool) -> SessionFactory:
    """Create the factory opening sensor sessions, real or simulated."""
    if test_mode:

        def mock_session_factory() -> PMS5003T:
            """Factory function that creates a session on a simulated sensor."""
            return PMS5003T(FakePMS5003T(), driver_config, owns_port=True)

        return mock_session_factory

    return lambda: PMS5003T.open(port, driver_config)


def emit(device_id: str, payload) -> None:
    print(SensorReading(ts=time.time(), device_id=device_id, payload=payload).to_string(), flush=True)


def run_probe(factory: SessionFactory, args, device_id: str) -> int:
    with factory() as sensor:
        found = probe(sensor)
    log.info(f"{args.port}: {'PMS5003T' if found else 'no sensor found'}")
    return 0 if found else 1


def run_read(factory: SessionFactory, args, device_id: str) -> int:
    with factory() as sensor:
        if args.passive:
            sensor.set_read_mode(True)
        try:
            for _ in range(args.count):
                reading = sensor.passive_read() if args.passive else sensor.read()
                emit(device_id, reading)
                if args.interval:
                    time.sleep(args.interval)
        finally:
            if args.passive:
                sensor.set_read_mode(False)
    return 0


def run_standby(factory: SessionFactory, args, device_id: str) -> int:
    with factory() as sensor:
        sensor.set_standby_mode(True)
    log.info("Sensor is in standby mode")
    return 0


def run_wake(factory: SessionFactory, args, device_id: str) -> int:
    with factory() as sensor:
        reading = sensor.set_standby_mode(False)
    log.info("Sensor is awake")
    emit(device_id, reading)
    return 0


def run_monitor(factory: SessionFactory, args, device_id: str, interval: float, max_failures: int) -> int:
    q: "queue.Queue[SensorReading]" = queue.Queue(maxsize=100)
    poller = SensorPoller(interval, device_id, factory, q, max_failures=max_failures)
    poller.start()
    received = 0
    try:
        while args.count is None or received < args.count:
            try:
                reading = q.get(timeout=1.0)
            except queue.Empty:
                continue
            print(reading.to_string(), flush=True)
            received += 1
    except KeyboardInterrupt:
        log.info("Interrupted, stopping monitor")
    finally:
        poller.stop()
        poller.join()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pms5003t", description="PMS5003T particulate sensor")
    parser.add_argument(
        "--environment",
        choices=["production", "development", "testing"],
        default=None,
        help="Environment to run in",
    )
    parser.add_argument("--device-id", help="Device ID (overrides config)")
    parser.add_argument(
        "--test-mode", action="store_true", help="Run against a simulated sensor instead of a port"
    )

    sub = parser.add_subparsers(dest="command", required=True)

    def add(name: str, help_: str) -> argparse.ArgumentParser:
        p = sub.add_parser(name, help=help_)
        p.add_argument("--port", help="Serial port (overrides config)")
        return p

    add("probe", "Check whether a sensor answers on the port")
    p = add("read", "Print readings as JSON lines")
    p.add_argument("--count", type=int, default=1, help="Number of readings")
    p.add_argument("--passive", action="store_true", help="Use passive (request/response) reads")
    p.add_argument("--interval", type=float, default=0.0, help="Seconds between readings")
    add("standby", "Put the sensor into standby mode")
    add("wake", "Wake the sensor from standby mode")
    p = add("monitor", "Poll the sensor on a background thread")
    p.add_argument("--count", type=int, default=None, help="Stop after this many readings")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for pms5003t_sensor."""
    args = build_parser().parse_args(argv)

    # Set environment variable for config
    if args.environment:
        os.environ["PMS5003T_ENV"] = args.environment

    # Get configuration
    config = get_settings()

    # Set up logging
    setup_logging(config)

    device_id = args.device_id or config.DEVICE_ID
    args.port = args.port or config.PMS_PORT
    factory = make_session_factory(args.port, PMS5003TConfig.from_settings(config), args.test_mode)

    log.debug(f"Environment: {config.ENVIRONMENT.value}, port: {args.port}, device: {device_id}")

    try:
        if args.command == "probe":
            return run_probe(factory, args, device_id)
        if args.command == "read":
            return run_read(factory, args, device_id)
        if args.command == "standby":
            return run_standby(factory, args, device_id)
        if args.command == "wake":
            return run_wake(factory, args, device_id)
        return run_monitor(
            factory, args, device_id, config.READ_INTERVAL_SEC, config.MAX_READ_FAILURES
        )
    except PMSError as e:
        log.error(f"{args.command} failed: {type(e).__name__}: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
