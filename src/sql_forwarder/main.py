from __future__ import annotations

import argparse
import signal
import sys
from typing import List, Optional

from sql_forwarder.config_models import ForwarderConfig, load_and_validate_config, write_default_config
from sql_forwarder.core.factory import ComponentFactory
from sql_forwarder.core.models import TickOutcome
from sql_forwarder.errors import ForwarderError
from sql_forwarder.utils.logging import get_logger, setup_logging

DEFAULT_CONFIG = "forwarder.yaml"

log = get_logger("sql_forwarder.main")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sql-forwarder",
        description="Forward new rows from a SQL database to a Splunk HTTP Event Collector",
    )
    parser.add_argument("-c", "--config", default=DEFAULT_CONFIG, help="Path to YAML config file")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("run", help="Poll on the configured interval until stopped")
    sub.add_parser("run-once", help="Run a single tick and exit")
    sub.add_parser("clear-cursor", help="Delete the persisted cursor value")

    init = sub.add_parser("init-config", help="Write a default config file")
    init.add_argument("--overwrite", action="store_true", help="Overwrite the file if it exists")
    return parser


def run_forever(config: ForwarderConfig) -> int:
    """Run the scheduled forwarder until SIGINT/SIGTERM."""
    built = ComponentFactory().build(config)
    scheduler = built.scheduler

    def signal_handler(signum: int, frame: object) -> None:
        log.info("Received signal %s, initiating graceful shutdown", signum)
        scheduler.request_stop()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    log.info(
        "Starting forwarder: sequence_field=%s interval=%s ms max_interval=%s ms",
        built.poll_config.sequence_field,
        built.poll_config.interval_ms,
        built.poll_config.max_interval_ms,
    )
    try:
        scheduler.run_forever()
    finally:
        built.source.close()
    return 0


def run_once(config: ForwarderConfig) -> int:
    """Run a single tick."""
    built = ComponentFactory().build(config)
    try:
        outcome = built.loop.tick()
    finally:
        built.source.close()
    print("DONE:", outcome.value)
    return 1 if outcome == TickOutcome.ABORTED else 0


def clear_cursor(config: ForwarderConfig) -> int:
    ComponentFactory().cursor_store(config).clear()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the forwarder."""
    args = build_parser().parse_args(argv)

    if args.command == "init-config":
        if write_default_config(args.config, overwrite=args.overwrite):
            print(f"Wrote default options to {args.config}")
        else:
            print(f"{args.config} exists; use --overwrite to replace it")
        return 0

    try:
        config = load_and_validate_config(args.config)
        setup_logging(config.logging.config_path, config.logging.level)

        if args.command == "run":
            return run_forever(config)
        if args.command == "run-once":
            return run_once(config)
        return clear_cursor(config)
    except ForwarderError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
