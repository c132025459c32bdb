"""
Command-line interface for the application.

This module provides the main entry point for the CLI and is the only place
that turns errors into process exit codes.
"""

from __future__ import annotations

import argparse
import logging
import sys

from pws_mqtt import __version__
from pws_mqtt.config import load_settings
from pws_mqtt.datasources.wunderground import resolve_observation, station_fetcher
from pws_mqtt.exceptions import (
    BrokerClosedError,
    BrokerProtocolError,
    ConfigError,
    InvalidPollIntervalError,
    InvalidSensorNameError,
    MissingConfigError,
    PwsMqttError,
    StationsExhaustedError,
)
from pws_mqtt.flows.publish import publish_weather
from pws_mqtt.scheduler import Scheduler
from pws_mqtt.sensors import map_observation
from pws_mqtt.services.mqtt import MqttBroker

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130

#: Error class → process exit code. Subclasses resolve through the MRO.
EXIT_CODES: dict[type[PwsMqttError], int] = {
    ConfigError: 2,
    MissingConfigError: 2,
    InvalidPollIntervalError: 3,
    InvalidSensorNameError: 4,
    BrokerClosedError: 5,
    BrokerProtocolError: 6,
    StationsExhaustedError: 7,
}

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s %(message)s"


def exit_code_for(exc: BaseException) -> int:
    """Exit code for an error that reached the top level."""
    for cls in type(exc).__mro__:
        if cls in EXIT_CODES:
            return EXIT_CODES[cls]
    return EXIT_FAILURE


def configure_logging(debug: bool = False) -> None:
    logging.basicConfig(level=logging.DEBUG if debug else logging.INFO, format=LOG_FORMAT)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="pws-mqtt",
        description="Publish personal weather station observations to MQTT "
        "with Home Assistant discovery",
    )
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # 'run' command - the long-running service
    run_parser = subparsers.add_parser("run", help="Connect to the broker and publish")
    run_parser.add_argument(
        "--once",
        action="store_true",
        help="Publish a single cycle and exit, regardless of EXEC_EVERY",
    )

    subparsers.add_parser("info", help="Show configuration (credentials masked)")

    # 'fetch' command - dry run without a broker
    fetch_parser = subparsers.add_parser(
        "fetch", help="Fetch one observation and print the sensors that would be published"
    )
    fetch_parser.add_argument(
        "--station",
        action="append",
        default=None,
        help="Station id to use instead of STATION_ID (repeatable)",
    )

    return parser


def cmd_run(args: argparse.Namespace) -> int:
    """Handle the 'run' command."""
    settings = load_settings()
    interval = None if args.once else settings.poll_interval

    broker = MqttBroker.from_settings(settings)
    scheduler = Scheduler(
        broker,
        lambda wait: publish_weather(settings, broker, sleep=wait),
        interval,
    )
    if interval is None:
        logger.info("Running a single publish cycle for %s", settings.sensor_name)
    else:
        logger.info(
            "Publishing %s every %ss", settings.sensor_name, interval.total_seconds()
        )
    scheduler.run()
    return EXIT_OK


def cmd_info(_args: argparse.Namespace) -> int:
    """Handle the 'info' command."""
    settings = load_settings()
    print(f"Version: {__version__}")
    for key, value in settings.redacted().items():
        print(f"{key}: {value}")
    print(f"stations (in order): {', '.join(settings.station_ids)}")
    print(f"mode: {'one-shot' if settings.one_shot else 'interval'}")
    return EXIT_OK


def cmd_fetch(args: argparse.Namespace) -> int:
    """Handle the 'fetch' command: resolve an observation and print its sensors."""
    settings = load_settings()
    stations = args.station or list(settings.station_ids)

    observation = resolve_observation(
        stations,
        settings.retries,
        fetch=station_fetcher(settings.api_key.get_secret_value()),
    )
    print(f"Station: {observation.station_id or '?'} at {observation.obs_time_utc or '?'}")
    for descriptor in map_observation(observation):
        unit = f" {descriptor.unit}" if descriptor.unit else ""
        print(f"{descriptor.key} = {descriptor.value}{unit}")
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_OK

    configure_logging(getattr(args, "debug", False))

    commands = {
        "run": cmd_run,
        "info": cmd_info,
        "fetch": cmd_fetch,
    }

    handler = commands.get(args.command)
    if not handler:
        parser.print_help()
        return EXIT_FAILURE

    try:
        return handler(args)
    except PwsMqttError as exc:
        logger.error("%s", exc)
        return exit_code_for(exc)
    except KeyboardInterrupt:
        logger.info("Interrupted, exiting.")
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
